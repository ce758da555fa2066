import functools
import logging
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from booking_service.errors import DuplicateSlot, StoreUnavailable
from booking_service.models import ACTIVE_STATUSES, STATUS_CANCELLED

logger = logging.getLogger(__name__)

SLOT_INDEX = "active_slot_unique"
REFERENCE_INDEX = "booking_reference_unique"


def _utcnow():
    return datetime.now(timezone.utc)


def _object_id(booking_id):
    if isinstance(booking_id, ObjectId):
        return booking_id
    try:
        return ObjectId(str(booking_id))
    except (InvalidId, TypeError):
        return None


def _store_call(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PyMongoError as e:
            logger.error("Booking store error in %s: %s", func.__name__, e)
            raise StoreUnavailable() from e
    return wrapper


class BookingStore:
    """Bookings collection.

    One active booking per slot is enforced by the database: a unique index over
    (room_id, booking_date) that only covers confirmed and completed
    bookings, so a cancelled booking frees its slot.
    """

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_config(cls, config):
        client = MongoClient(config.mongo_uri, serverSelectionTimeoutMS=30000)
        return cls(client[config.mongo_db]["bookings"])

    @_store_call
    def ensure_indexes(self):
        self.collection.create_index(
            [("room_id", ASCENDING), ("booking_date", ASCENDING)],
            name=SLOT_INDEX,
            unique=True,
            partialFilterExpression={"status": {"$in": list(ACTIVE_STATUSES)}},
        )
        self.collection.create_index(
            [("booking_reference", ASCENDING)], name=REFERENCE_INDEX, unique=True
        )
        self.collection.create_index([("user_id", ASCENDING), ("status", ASCENDING)])
        self.collection.create_index([("room_id", ASCENDING)])

    @_store_call
    def find_active_by_room_and_date(self, room_id, booking_date):
        return self.collection.find_one({
            "room_id": room_id,
            "booking_date": booking_date,
            "status": {"$in": list(ACTIVE_STATUSES)},
        })

    @_store_call
    def insert(self, booking):
        """Insert a booking, raising DuplicateSlot if its slot is taken."""
        now = _utcnow()
        booking.setdefault("created_at", now)
        booking.setdefault("updated_at", now)
        try:
            result = self.collection.insert_one(booking)
        except DuplicateKeyError as e:
            key_pattern = (e.details or {}).get("keyPattern") or {}
            if "booking_reference" in key_pattern:
                raise
            raise DuplicateSlot(booking.get("room_id"), booking.get("booking_date")) from e
        booking["_id"] = result.inserted_id
        return booking

    @_store_call
    def update_fields(self, booking_id, fields):
        oid = _object_id(booking_id)
        if oid is None:
            return None
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": _utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    @_store_call
    def update_status(self, booking_id, new_status, expected_status=None):
        """Move a booking to ``new_status``.

        With ``expected_status`` the write only applies while the booking is
        still in that status; returns None when nothing matched.
        """
        oid = _object_id(booking_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if expected_status is not None:
            query["status"] = expected_status
        now = _utcnow()
        fields = {"status": new_status, "updated_at": now}
        if new_status == STATUS_CANCELLED:
            fields["cancelled_at"] = now
        return self.collection.find_one_and_update(
            query, {"$set": fields}, return_document=ReturnDocument.AFTER
        )

    @_store_call
    def delete(self, booking_id):
        oid = _object_id(booking_id)
        if oid is None:
            return False
        return self.collection.delete_one({"_id": oid}).deleted_count == 1

    @_store_call
    def find_by_id(self, booking_id):
        oid = _object_id(booking_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    @_store_call
    def find_by_user(self, user_id, status=None):
        query = {"user_id": user_id}
        if status:
            query["status"] = status
        cursor = self.collection.find(query).sort(
            [("booking_date", DESCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return list(cursor)

    @_store_call
    def find_by_room_in_range(self, room_id, start_date, end_date):
        cursor = self.collection.find({
            "room_id": room_id,
            "booking_date": {"$gte": start_date, "$lte": end_date},
            "status": {"$in": list(ACTIVE_STATUSES)},
        }).sort("booking_date", ASCENDING)
        return list(cursor)

    @_store_call
    def find_all(self, status=None, booking_date=None, room_id=None):
        query = {}
        if status:
            query["status"] = status
        if booking_date:
            query["booking_date"] = booking_date
        if room_id:
            query["room_id"] = room_id
        cursor = self.collection.find(query).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return list(cursor)
