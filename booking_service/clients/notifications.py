"""
Notification Service Client

Fire-and-forget delivery of booking confirmation and cancellation events.
Events go onto a bounded queue drained by a background worker thread, so
the request that produced a booking never waits on the notification
service. Delivery failures are logged and dropped.
"""

import logging
import queue
import threading

from booking_service.clients.base import BaseClient

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = "booking_confirmation"
BOOKING_CANCELLATION = "booking_cancellation"

_STOP = object()


class NotificationError(Exception):
    pass


class NotificationClient(BaseClient):
    service_name = "Notification service"
    unavailable_error = NotificationError

    def __init__(self, base_url, timeout=10.0, queue_size=100, session=None):
        super().__init__(base_url, timeout, session)
        self._queue = queue.Queue(maxsize=queue_size)
        self._worker = None
        self._worker_lock = threading.Lock()

    def notify_confirmation(self, booking):
        return self._enqueue({
            "type": BOOKING_CONFIRMATION,
            "booking": {
                **_booking_summary(booking),
                "base_price": booking.get("base_price"),
                "adjusted_price": booking.get("adjusted_price"),
                "temperature": booking.get("temperature"),
                "deviation": booking.get("deviation"),
            },
        })

    def notify_cancellation(self, booking):
        return self._enqueue({
            "type": BOOKING_CANCELLATION,
            "booking": _booking_summary(booking),
        })

    def send(self, message):
        """Deliver one message synchronously. Used by the worker thread."""
        response = self._send("POST", "/notify", json=message)
        if response.status_code >= 400:
            raise NotificationError(
                f"{self.service_name} returned error {response.status_code}"
            )

    def flush(self):
        """Block until every queued message has been attempted."""
        self._queue.join()

    def close(self, timeout=None):
        with self._worker_lock:
            worker, self._worker = self._worker, None
        if worker is not None:
            self._queue.put(_STOP)
            worker.join(timeout)
        super().close()

    def _enqueue(self, message):
        self._ensure_worker()
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            logger.error(
                "Notification queue full, dropping %s for booking %s",
                message["type"], message["booking"].get("booking_id"),
            )
            return False
        return True

    def _ensure_worker(self):
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="notification-worker", daemon=True
                )
                self._worker.start()

    def _run(self):
        while True:
            message = self._queue.get()
            try:
                if message is _STOP:
                    return
                self.send(message)
                logger.info(
                    "Sent %s for booking %s",
                    message["type"], message["booking"].get("booking_id"),
                )
            except Exception as e:  # delivery is best-effort
                logger.warning(
                    "Failed to send %s for booking %s: %s",
                    message["type"], message["booking"].get("booking_id"), e,
                )
            finally:
                self._queue.task_done()


def _booking_summary(booking):
    return {
        "booking_id": str(booking.get("_id")),
        "booking_reference": booking.get("booking_reference"),
        "user_email": booking.get("user_email"),
        "user_name": booking.get("user_name"),
        "room_name": booking.get("room_name"),
        "location_name": booking.get("location_name"),
        "date": booking.get("booking_date"),
    }
