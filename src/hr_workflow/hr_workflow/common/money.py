from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int(to_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def split_evenly(total, parts: int) -> list[Decimal]:
    """Split `total` into `parts` cent amounts; the last part absorbs the remainder.

    The returned amounts always sum to `total` rounded to cents.
    """
    if parts <= 0:
        raise ValueError("parts must be positive")
    total_cents = to_cents(total)
    base = total_cents // parts
    last = total_cents - base * (parts - 1)
    return [from_cents(base)] * (parts - 1) + [from_cents(last)]
