import logging
import threading

import pytest
import requests
from bson import ObjectId

from booking_service.clients import NotificationClient
from conftest import make_response


@pytest.fixture
def booking():
    return {
        "_id": ObjectId(),
        "booking_reference": "BK1772323200000ABCDEFGHI",
        "user_email": "ada@example.com",
        "user_name": "Ada Lovelace",
        "room_name": "The Churchill Room",
        "location_name": "London, Westminster",
        "booking_date": "2026-03-31",
        "base_price": 250.0,
        "adjusted_price": 325.0,
        "temperature": 27,
        "deviation": 6,
        "status": "confirmed",
    }


@pytest.fixture
def client(session):
    notifier = NotificationClient("http://notify.test", timeout=3, queue_size=5, session=session)
    yield notifier
    notifier.close(timeout=5)


def test_confirmation_is_posted_in_background(client, session, booking):
    session.request.return_value = make_response(200, {"success": True})

    assert client.notify_confirmation(booking) is True
    client.flush()

    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://notify.test/notify")
    assert kwargs["timeout"] == 3
    message = kwargs["json"]
    assert message["type"] == "booking_confirmation"
    assert message["booking"]["booking_id"] == str(booking["_id"])
    assert message["booking"]["date"] == "2026-03-31"
    assert message["booking"]["adjusted_price"] == 325.0
    assert message["booking"]["deviation"] == 6


def test_cancellation_omits_pricing(client, session, booking):
    session.request.return_value = make_response(200, {"success": True})

    client.notify_cancellation(booking)
    client.flush()

    message = session.request.call_args.kwargs["json"]
    assert message["type"] == "booking_cancellation"
    assert message["booking"]["user_email"] == "ada@example.com"
    assert "adjusted_price" not in message["booking"]


@pytest.mark.parametrize(
    "outcome",
    [requests.ConnectionError("refused"), make_response(500, {"success": False})],
)
def test_delivery_failures_are_logged_not_raised(client, session, booking, caplog, outcome):
    if isinstance(outcome, Exception):
        session.request.side_effect = outcome
    else:
        session.request.return_value = outcome

    with caplog.at_level(logging.WARNING, logger="booking_service.clients.notifications"):
        assert client.notify_confirmation(booking) is True
        client.flush()

    assert "Failed to send booking_confirmation" in caplog.text


def test_worker_survives_a_failed_delivery(client, session, booking):
    session.request.side_effect = [
        requests.ConnectionError("refused"),
        make_response(200, {"success": True}),
    ]

    client.notify_confirmation(booking)
    client.notify_cancellation(booking)
    client.flush()

    assert session.request.call_count == 2


def test_enqueue_does_not_wait_for_delivery(session, booking):
    started = threading.Event()
    release = threading.Event()

    def slow_send(*args, **kwargs):
        started.set()
        release.wait(5)
        return make_response(200, {"success": True})

    session.request.side_effect = slow_send
    notifier = NotificationClient("http://notify.test", queue_size=1, session=session)
    try:
        assert notifier.notify_confirmation(booking) is True
        assert started.wait(5)
        # worker is busy with the first message, the queue holds one more
        assert notifier.notify_confirmation(booking) is True
        assert notifier.notify_confirmation(booking) is False
    finally:
        release.set()
        notifier.flush()
        notifier.close(timeout=5)

    assert session.request.call_count == 2
