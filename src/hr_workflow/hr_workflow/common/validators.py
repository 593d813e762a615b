from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.constants import MAX_AMOUNT
from ..core.exceptions import ValidationError
from .money import to_money


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is not a valid number")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid number")
    if not number.is_finite():
        raise ValidationError(f"{field_name} is not a valid number")
    return number


def require_positive_amount(value: Any, field_name: str, *, maximum: Decimal = MAX_AMOUNT) -> Decimal:
    """Parse a money amount and round it to cents.

    Anything that rounds to 0.00 is refused, as is anything above `maximum`.
    """
    amount = require_decimal(value, field_name)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be positive")
    if amount > maximum:
        raise ValidationError(f"{field_name} must not exceed {maximum}")

    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be at least 0.01")
    return amount


def require_int(value: Any, field_name: str) -> int:
    # JSON true/false and 3.7 would otherwise become 1/0 and 3
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be an integer")


def require_in_range(value: int, field_name: str, low: int, high: int) -> int:
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return value
