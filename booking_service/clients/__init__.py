from booking_service.clients.auth import AuthClient
from booking_service.clients.notifications import NotificationClient
from booking_service.clients.rooms import RoomClient
from booking_service.clients.weather import ForecastCache, WeatherClient

__all__ = ["AuthClient", "ForecastCache", "NotificationClient", "RoomClient", "WeatherClient"]
