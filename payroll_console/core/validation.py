from __future__ import annotations

from datetime import date
from decimal import Decimal

MAX_PERIOD_HOURS = 744


class ValidationError(Exception):
    """Raised when domain validation fails."""


def validate_hours(value: int, *, field: str = "hours") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number of hours")
    if value < 0 or value > MAX_PERIOD_HOURS:
        raise ValidationError(f"{field} value out of bounds")
    return value


def validate_amount(value: Decimal, *, field: str = "amount") -> Decimal:
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if value < Decimal("0"):
        raise ValidationError(f"{field} cannot be negative")
    return value


def validate_period(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("pay period start must not be after its end")
