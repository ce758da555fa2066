"""
Base HTTP Client

Shared base class for the thin clients the booking service uses to reach
its sibling services over REST.
"""

import logging
from typing import Any, Dict, Optional

import requests

from booking_service.errors import BookingError

logger = logging.getLogger(__name__)


class BaseClient:
    """HTTP client with a bounded timeout and upstream error wrapping.

    Subclasses set ``service_name`` and ``unavailable_error``; any network
    failure, 5xx or undecodable body surfaces as that error.
    """

    service_name = "upstream"
    unavailable_error = BookingError

    def __init__(self, base_url: str, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError(f"Base URL is required for the {self.service_name} client")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # one pooled session per client
        self._session = session or requests.Session()

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            return self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise self.unavailable_error(
                f"{self.service_name} request failed: {e}"
            ) from e

    def _decode(self, response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise self.unavailable_error(
                f"{self.service_name} returned a non-JSON response ({response.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise self.unavailable_error(f"{self.service_name} returned an unexpected body")
        return body

    def _raise_for_server_error(self, response: requests.Response) -> None:
        if response.status_code >= 500:
            raise self.unavailable_error(
                f"{self.service_name} returned error {response.status_code}"
            )

    def close(self) -> None:
        self._session.close()
