from datetime import date, timedelta
from unittest.mock import Mock

import mongomock
import pytest
import requests

from booking_service.bookings import BookingService
from booking_service.clients import AuthClient, NotificationClient, RoomClient, WeatherClient
from booking_service.config import Config
from booking_service.models import Forecast, Principal, RoomSnapshot
from booking_service.store import BookingStore

TODAY = date(2026, 3, 1)
ROOM_ID = "665f1c2e8a1b2c3d4e5f6a7b"
LOCATION_ID = "665f1c2e8a1b2c3d4e5f0001"


def day(offset):
    return (TODAY + timedelta(days=offset)).isoformat()


def make_response(status_code=200, body=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def config():
    return Config(
        mongo_uri="mongodb://localhost:27017/",
        auth_service_url="http://auth.test",
        room_service_url="http://rooms.test",
        weather_service_url="http://weather.test",
        notification_service_url="http://notify.test",
        service_timeout=5,
        weather_timeout=7,
        notification_timeout=3,
    )


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def store():
    collection = mongomock.MongoClient()["booking_service"]["bookings"]
    booking_store = BookingStore(collection)
    booking_store.ensure_indexes()
    return booking_store


@pytest.fixture
def room():
    return RoomSnapshot(
        id=ROOM_ID,
        name="The Churchill Room",
        location_id=LOCATION_ID,
        location_name="London, Westminster",
        capacity=50,
        base_price=250.0,
        is_active=True,
    )


@pytest.fixture
def rooms(room):
    client = Mock(spec=RoomClient)
    client.validate_room.return_value = room
    client.get_room.return_value = room
    return client


@pytest.fixture
def weather():
    client = Mock(spec=WeatherClient)
    client.get_forecast.side_effect = lambda location_id, booking_date: Forecast(
        location_id=location_id, date=booking_date, temperature=27, deviation=6
    )
    return client


@pytest.fixture
def notifications():
    return Mock(spec=NotificationClient)


@pytest.fixture
def service(config, store, rooms, weather, notifications):
    return BookingService(config, store, rooms, weather, notifications, today=lambda: TODAY)


@pytest.fixture
def user():
    return Principal(id="user-1", email="ada@example.com", name="Ada Lovelace", role="user")


@pytest.fixture
def other_user():
    return Principal(id="user-2", email="alan@example.com", name="Alan Turing", role="user")


@pytest.fixture
def admin():
    return Principal(id="admin-1", email="admin@example.com", name="Grace Hopper", role="admin")


@pytest.fixture
def auth(user, other_user, admin):
    tokens = {"user-token": user, "other-token": other_user, "admin-token": admin}

    def verify(token):
        from booking_service.errors import Unauthenticated

        if token not in tokens:
            raise Unauthenticated()
        return tokens[token]

    client = Mock(spec=AuthClient)
    client.verify.side_effect = verify
    return client
