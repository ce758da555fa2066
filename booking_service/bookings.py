"""
Booking orchestration.

``BookingService`` coordinates the room catalog, the bookings store, the
weather oracle and the notification service to create, read and cancel
bookings. It owns two rules: a room can hold at most one live booking per
day, and the price is fixed at creation from the weather forecast.
"""

import logging
import random
import string
import time
from datetime import date, datetime, timezone

from booking_service import pricing
from booking_service.errors import (
    AlreadyCancelled,
    CannotCancelCompleted,
    DuplicateSlot,
    Forbidden,
    InvalidDate,
    NotFound,
    SlotAlreadyBooked,
    StoreUnavailable,
)
from booking_service.models import (
    BOOKING_STATUSES,
    PriceBreakdown,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def utc_today():
    return datetime.now(timezone.utc).date()


def parse_date(value):
    """Parse a YYYY-MM-DD string, raising InvalidDate on anything else."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidDate("Date must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate("Date must be in YYYY-MM-DD format")


def generate_reference():
    suffix = "".join(random.choices(_REFERENCE_ALPHABET, k=9))
    return f"BK{int(time.time() * 1000)}{suffix}"


class BookingService:
    def __init__(self, config, store, rooms, weather, notifications, today=utc_today):
        self.config = config
        self.store = store
        self.rooms = rooms
        self.weather = weather
        self.notifications = notifications
        self._today = today

    def create_booking(self, principal, room_id, booking_date):
        """
        Book a room for one whole day.

        Steps run in a fixed order: date check, room check, slot reservation,
        weather, pricing, finalize, notify. The slot is reserved before the
        weather call so a losing request never reaches the oracle.

        Returns:
            (booking, PriceBreakdown)

        Raises:
            InvalidDate, RoomNotFound, RoomInactive, CatalogUnavailable,
            SlotAlreadyBooked, StoreUnavailable
        """
        day = parse_date(booking_date)
        if day <= self._today():
            raise InvalidDate("Booking date must be in the future")
        booking_date = day.strftime(DATE_FORMAT)

        room = self.rooms.validate_room(room_id)

        booking = self._reserve_slot(principal, room, booking_date)

        comfortable = self.config.comfortable_temperature
        factor = self.config.price_adjustment_factor
        try:
            forecast = self.weather.get_forecast(room.location_id, booking_date)
            deviation, adjusted_price = pricing.compute_price(
                room.base_price, forecast.temperature, comfortable, factor
            )
            finalized = self.store.update_fields(booking["_id"], {
                "temperature": forecast.temperature,
                "deviation": deviation,
                "adjusted_price": adjusted_price,
                "weather_fallback": forecast.fallback,
            })
        except Exception:
            # a hold that never gets priced must not keep the slot
            self._release(booking)
            raise
        if finalized is None:
            # the hold vanished underneath us
            raise StoreUnavailable("Booking could not be finalized")

        logger.info(
            "Booking %s confirmed: room %s on %s for user %s at %.2f",
            finalized["booking_reference"], room.id, booking_date, principal.id, adjusted_price,
        )
        self.notifications.notify_confirmation(finalized)

        breakdown = PriceBreakdown(
            base_price=room.base_price,
            temperature=forecast.temperature,
            comfortable_temperature=comfortable,
            deviation=deviation,
            adjustment_factor=factor,
            adjusted_price=adjusted_price,
            adjustment_percentage=pricing.adjustment_percentage(room.base_price, adjusted_price),
            fallback=forecast.fallback,
        )
        return finalized, breakdown

    def get_user_bookings(self, principal, user_id, status=None):
        if not principal.can_access(user_id):
            raise Forbidden("Access denied. You can only view your own bookings.")
        if status and status not in BOOKING_STATUSES:
            return []
        return self.store.find_by_user(str(user_id), status)

    def get_booking(self, principal, booking_id):
        booking = self.store.find_by_id(booking_id)
        if booking is None:
            raise NotFound()
        if not principal.can_access(booking["user_id"]):
            raise Forbidden("Access denied. You can only view your own bookings.")
        return booking

    def cancel_booking(self, principal, booking_id):
        booking = self.store.find_by_id(booking_id)
        if booking is None:
            raise NotFound()
        if not principal.can_access(booking["user_id"]):
            raise Forbidden("Access denied. You can only cancel your own bookings.")
        self._check_cancellable(booking["status"])

        cancelled = self.store.update_status(
            booking["_id"], STATUS_CANCELLED, expected_status=STATUS_CONFIRMED
        )
        if cancelled is None:
            # status moved since we read it; report against the current state
            current = self.store.find_by_id(booking_id)
            if current is None:
                raise NotFound()
            self._check_cancellable(current["status"])
            raise StoreUnavailable("Booking could not be cancelled")

        logger.info("Booking %s cancelled by %s", cancelled["booking_reference"], principal.id)
        self.notifications.notify_cancellation(cancelled)
        return cancelled

    def check_availability(self, room_id, start_date, end_date):
        start = parse_date(start_date)
        end = parse_date(end_date)
        if start > end:
            raise InvalidDate("start_date must not be after end_date")
        bookings = self.store.find_by_room_in_range(
            room_id, start.strftime(DATE_FORMAT), end.strftime(DATE_FORMAT)
        )
        booked_dates = [b["booking_date"] for b in bookings]
        return {
            "room_id": room_id,
            "date_range": {
                "start": start.strftime(DATE_FORMAT),
                "end": end.strftime(DATE_FORMAT),
            },
            "booked_dates": booked_dates,
            "count": len(booked_dates),
        }

    def list_all_bookings(self, principal, status=None, booking_date=None, room_id=None):
        if not principal.is_admin:
            raise Forbidden("Access denied. Required role: admin")
        return self.store.find_all(status=status, booking_date=booking_date, room_id=room_id)

    def _reserve_slot(self, principal, room, booking_date):
        existing = self.store.find_active_by_room_and_date(room.id, booking_date)
        if existing is not None:
            raise self._slot_taken(existing, booking_date)

        booking = {
            "user_id": principal.id,
            "room_id": room.id,
            "booking_date": booking_date,
            "booking_reference": generate_reference(),
            "base_price": room.base_price,
            "temperature": None,
            "deviation": None,
            "adjusted_price": None,
            "status": STATUS_CONFIRMED,
            "user_email": principal.email,
            "user_name": principal.name,
            "room_name": room.name,
            "location_id": room.location_id,
            "location_name": room.location_name,
        }
        try:
            return self.store.insert(booking)
        except DuplicateSlot:
            # lost the race to a concurrent request
            existing = self.store.find_active_by_room_and_date(room.id, booking_date)
            raise self._slot_taken(existing, booking_date)

    def _slot_taken(self, existing, booking_date):
        logger.info("Slot %s already booked", booking_date)
        if existing is None:
            return SlotAlreadyBooked(booking_date=booking_date)
        return SlotAlreadyBooked(
            booking_id=str(existing["_id"]),
            booking_date=existing["booking_date"],
            status=existing["status"],
        )

    def _release(self, booking):
        try:
            self.store.delete(booking["_id"])
        except StoreUnavailable:
            logger.error(
                "Could not release hold %s for room %s on %s",
                booking["booking_reference"], booking["room_id"], booking["booking_date"],
            )

    @staticmethod
    def _check_cancellable(status):
        if status == STATUS_CANCELLED:
            raise AlreadyCancelled()
        if status == STATUS_COMPLETED:
            raise CannotCancelCompleted()
