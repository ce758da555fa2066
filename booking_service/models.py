from dataclasses import dataclass, asdict
from typing import Optional

STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

BOOKING_STATUSES = (STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED)
# statuses that occupy a slot
ACTIVE_STATUSES = (STATUS_CONFIRMED, STATUS_COMPLETED)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    name: str
    role: str = ROLE_USER

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def can_access(self, user_id):
        return self.is_admin or str(user_id) == self.id


@dataclass(frozen=True)
class RoomSnapshot:
    """Read-only view of a room as the room service reports it."""

    id: str
    name: str
    location_id: str
    location_name: str
    capacity: int
    base_price: float
    is_active: bool


@dataclass(frozen=True)
class Forecast:
    location_id: str
    date: str
    temperature: float
    fallback: bool = False
    deviation: Optional[float] = None


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: float
    temperature: float
    comfortable_temperature: float
    deviation: float
    adjustment_factor: float
    adjusted_price: float
    adjustment_percentage: float
    fallback: bool = False

    def to_dict(self):
        return asdict(self)
