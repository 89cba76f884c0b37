"""Integer-cents money helpers.

Conventions (non-negotiable):
- Every amount that leaves a calculator is an ``int`` number of cents.
- Intermediate products are exact ``Decimal`` values; rounding happens once,
  half up, at the point a cents figure is produced.
- Hours are reported as ``Decimal`` with 2 decimal places.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("1")
HOURS_PRECISION = Decimal("0.01")
MINUTES_PER_HOUR = Decimal(60)


def round_cents(amount: Decimal | int) -> int:
    """Round a (possibly fractional) cents amount half up to whole cents."""
    return int(Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def minutes_to_hours(minutes: int) -> Decimal:
    """Convert whole minutes to hours with 2 decimal places."""
    return (Decimal(minutes) / MINUTES_PER_HOUR).quantize(
        HOURS_PRECISION, rounding=ROUND_HALF_UP
    )


def pay_for_minutes(rate_cents: int, minutes: int, multiplier: Decimal = Decimal("1")) -> Decimal:
    """Exact (unrounded) cents for ``minutes`` at an hourly rate."""
    return Decimal(rate_cents) * Decimal(minutes) * multiplier / MINUTES_PER_HOUR


def cents_to_dollars(cents: int) -> Decimal:
    """Convert cents to a dollars Decimal with 2 places (display only)."""
    return (Decimal(cents) / Decimal(100)).quantize(Decimal("0.01"))


def format_dollars(cents: int) -> str:
    """Render cents as a plain dollars string, e.g. ``1234`` -> ``"12.34"``."""
    return f"{cents_to_dollars(cents):.2f}"
