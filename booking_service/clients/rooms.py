"""
Room Service Client

Fetches room details from the room/location catalog.
"""

from booking_service.clients.base import BaseClient
from booking_service.errors import CatalogUnavailable, RoomInactive, RoomNotFound
from booking_service.models import RoomSnapshot


class RoomClient(BaseClient):
    service_name = "Room service"
    unavailable_error = CatalogUnavailable

    def get_room(self, room_id):
        """
        Get room details by ID.

        Raises:
            RoomNotFound: No room with that id (404, or an id the catalog rejects)
            CatalogUnavailable: Network failure, 5xx or malformed response
        """
        response = self._send("GET", f"/rooms/{room_id}")
        self._raise_for_server_error(response)
        if response.status_code in (400, 404):
            raise RoomNotFound()
        if response.status_code != 200:
            raise CatalogUnavailable(
                f"{self.service_name} returned error {response.status_code}"
            )

        body = self._decode(response)
        if not body.get("success"):
            raise RoomNotFound()
        return self._to_snapshot(body.get("data"))

    def validate_room(self, room_id):
        """Get a room and make sure it is open for booking."""
        room = self.get_room(room_id)
        if not room.is_active:
            raise RoomInactive()
        return room

    def _to_snapshot(self, data):
        try:
            location = data["locationId"]
            return RoomSnapshot(
                id=str(data["_id"]),
                name=data["name"],
                location_id=str(location["_id"]),
                location_name=location["name"],
                capacity=int(data["capacity"]),
                base_price=float(data["basePrice"]),
                is_active=bool(data["isActive"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailable(f"{self.service_name} returned a malformed room") from e
