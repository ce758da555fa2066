"""
Weather Service Client

Fetches the forecast temperature for a location and date. The weather
signal only modifies price, so this client never fails its caller: any
oracle problem yields a neutral fallback forecast at the comfortable
temperature.
"""

import logging
import math
import threading
import time
from numbers import Number
from typing import Optional

from booking_service.clients.base import BaseClient
from booking_service.models import Forecast

logger = logging.getLogger(__name__)

DEFAULT_STRIPES = 16


class WeatherOracleError(Exception):
    """Any failure talking to the weather oracle. Never leaves this module."""


class ForecastCache:
    """TTL cache of temperatures keyed by (location_id, date).

    Entries are spread over a fixed set of lock stripes so concurrent
    bookings for different keys do not contend on one lock.
    """

    def __init__(self, ttl_seconds: int, stripes: int = DEFAULT_STRIPES, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._stripes = [(threading.Lock(), {}) for _ in range(stripes)]

    def _stripe(self, key):
        return self._stripes[hash(key) % len(self._stripes)]

    def get(self, location_id: str, date: str) -> Optional[float]:
        key = (location_id, date)
        lock, entries = self._stripe(key)
        with lock:
            entry = entries.get(key)
            if entry is None:
                return None
            temperature, expires_at = entry
            if expires_at <= self._clock():
                del entries[key]
                return None
            return temperature

    def set(self, location_id: str, date: str, temperature: float) -> None:
        key = (location_id, date)
        lock, entries = self._stripe(key)
        with lock:
            entries[key] = (temperature, self._clock() + self.ttl_seconds)

    def invalidate(self, location_id: str, date: str) -> bool:
        key = (location_id, date)
        lock, entries = self._stripe(key)
        with lock:
            return entries.pop(key, None) is not None

    def __len__(self):
        total = 0
        for lock, entries in self._stripes:
            with lock:
                total += len(entries)
        return total


class WeatherClient(BaseClient):
    service_name = "Weather service"
    unavailable_error = WeatherOracleError

    def __init__(self, config, session=None, cache: Optional[ForecastCache] = None):
        super().__init__(config.weather_service_url, config.weather_timeout, session)
        self.comfortable_temperature = config.comfortable_temperature
        self.cache = cache if cache is not None else ForecastCache(config.forecast_cache_ttl)

    def get_forecast(self, location_id: str, date: str) -> Forecast:
        """Cached forecast for a location/date, or a fallback if the oracle fails."""
        cached = self.cache.get(location_id, date)
        if cached is not None:
            logger.debug("Returning cached forecast for %s on %s", location_id, date)
            return self._forecast(location_id, date, cached)

        try:
            temperature = self._fetch_temperature(location_id, date)
        except Exception as e:  # any oracle failure degrades to the fallback
            logger.warning(
                "Weather forecast unavailable for %s on %s, using fallback: %s",
                location_id, date, e,
            )
            return self.fallback_forecast(location_id, date)

        self.cache.set(location_id, date, temperature)
        return self._forecast(location_id, date, temperature)

    def fallback_forecast(self, location_id: str, date: str) -> Forecast:
        return Forecast(
            location_id=location_id,
            date=date,
            temperature=self.comfortable_temperature,
            deviation=0,
            fallback=True,
        )

    def invalidate(self, location_id: str, date: str) -> bool:
        return self.cache.invalidate(location_id, date)

    def _forecast(self, location_id, date, temperature):
        return Forecast(
            location_id=location_id,
            date=date,
            temperature=temperature,
            deviation=abs(temperature - self.comfortable_temperature),
        )

    def _fetch_temperature(self, location_id: str, date: str) -> float:
        response = self._send("GET", f"/forecast/{location_id}/{date}")
        if response.status_code == 429:
            raise WeatherOracleError("rate limited")
        if response.status_code != 200:
            raise WeatherOracleError(f"returned error {response.status_code}")

        body = self._decode(response)
        data = body.get("data") if body.get("success") else None
        temperature = data.get("temperature") if isinstance(data, dict) else None
        if isinstance(temperature, bool) or not isinstance(temperature, Number):
            raise WeatherOracleError("malformed forecast response")
        if not math.isfinite(temperature):
            raise WeatherOracleError(f"non-finite temperature {temperature!r}")
        return temperature
