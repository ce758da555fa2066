import os
from dataclasses import dataclass


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Config:
    """Deployment settings for the booking service.

    Built once at startup with ``Config.from_env()`` and handed to the
    collaborators that need it, so nothing below reads the environment.
    """

    mongo_uri: str = "mongodb://booking-mongodb:27017/"
    mongo_db: str = "booking_service"

    auth_service_url: str = "http://auth-service:8001"
    room_service_url: str = "http://room-service:8002"
    weather_service_url: str = "http://weather-service:8004"
    notification_service_url: str = "http://notification-service:8005"

    comfortable_temperature: float = 21
    price_adjustment_factor: float = 0.05

    service_timeout: float = 30.0
    weather_timeout: float = 30.0
    notification_timeout: float = 10.0

    forecast_cache_ttl: int = 86400
    notification_queue_size: int = 100

    port: int = 8003
    log_level: str = "INFO"

    def __post_init__(self):
        if self.price_adjustment_factor < 0:
            raise ValueError("PRICE_ADJUSTMENT_FACTOR cannot be negative")
        for name in ("service_timeout", "weather_timeout", "notification_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be greater than zero")
        if self.forecast_cache_ttl < 0:
            raise ValueError("FORECAST_CACHE_TTL cannot be negative")
        if self.notification_queue_size < 1:
            raise ValueError("NOTIFICATION_QUEUE_SIZE must be at least 1")

    @classmethod
    def from_env(cls):
        return cls(
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            mongo_db=os.getenv("MONGO_DB", cls.mongo_db),
            auth_service_url=os.getenv("AUTH_SERVICE_URL", cls.auth_service_url),
            room_service_url=os.getenv("ROOM_SERVICE_URL", cls.room_service_url),
            weather_service_url=os.getenv("WEATHER_SERVICE_URL", cls.weather_service_url),
            notification_service_url=os.getenv(
                "NOTIFICATION_SERVICE_URL", cls.notification_service_url
            ),
            comfortable_temperature=_env_float(
                "COMFORTABLE_TEMPERATURE", cls.comfortable_temperature
            ),
            price_adjustment_factor=_env_float(
                "PRICE_ADJUSTMENT_FACTOR", cls.price_adjustment_factor
            ),
            service_timeout=_env_float("SERVICE_TIMEOUT", cls.service_timeout),
            weather_timeout=_env_float("WEATHER_TIMEOUT", cls.weather_timeout),
            notification_timeout=_env_float("NOTIFICATION_TIMEOUT", cls.notification_timeout),
            forecast_cache_ttl=_env_int("FORECAST_CACHE_TTL", cls.forecast_cache_ttl),
            notification_queue_size=_env_int(
                "NOTIFICATION_QUEUE_SIZE", cls.notification_queue_size
            ),
            port=_env_int("PORT", cls.port),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
