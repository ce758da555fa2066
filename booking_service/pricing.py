import math
from decimal import Decimal, ROUND_HALF_UP

DEFAULT_COMFORTABLE_TEMP = 21
DEFAULT_ADJUSTMENT_FACTOR = 0.05

_CENTS = Decimal("0.01")


def _round2(value):
    return float(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def compute_price(base_price, temperature, comfortable_temp=DEFAULT_COMFORTABLE_TEMP,
                  factor=DEFAULT_ADJUSTMENT_FACTOR):
    """Return ``(deviation, adjusted_price)`` for a day's booking.

    adjusted_price = base_price * (1 + deviation * factor), rounded half-up
    to cents. Arithmetic runs on decimals built from the string form of each
    input so that identical inputs always give the same cents.
    """
    if base_price < 0:
        raise ValueError("base_price cannot be negative")
    if factor < 0:
        raise ValueError("factor cannot be negative")
    if not math.isfinite(temperature):
        raise ValueError("temperature must be a finite number")

    deviation = abs(Decimal(str(temperature)) - Decimal(str(comfortable_temp)))
    multiplier = 1 + deviation * Decimal(str(factor))
    adjusted_price = _round2(Decimal(str(base_price)) * multiplier)
    return float(deviation), adjusted_price


def adjustment_percentage(base_price, adjusted_price):
    """Percentage change from base to adjusted price, to two decimals."""
    if not base_price:
        return 0.0
    change = (Decimal(str(adjusted_price)) - Decimal(str(base_price))) / Decimal(str(base_price))
    return _round2(change * 100)


def format_price(price):
    return f"${price:.2f}"
