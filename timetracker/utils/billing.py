"""Money helpers for project budgets and hourly rates."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Normalize a numeric value to two decimal places.

    Raises:
        ValueError: If the value is not numeric
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{value!r} is not numeric")
    if not amount.is_finite():
        raise ValueError(f"{value!r} is not numeric")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_hourly_rate(budget: Decimal, minutes: int) -> Optional[Decimal]:
    """
    Derive a fixed-price project's hourly rate from its booked minutes.

    Args:
        budget: Fixed project budget
        minutes: Total booked minutes

    Returns:
        ``budget / hours`` rounded to cents, or None when nothing is booked

    Examples:
        >>> derive_hourly_rate(Decimal("1000"), 600)
        Decimal('100.00')
        >>> derive_hourly_rate(Decimal("1000"), 0) is None
        True
    """
    if minutes <= 0:
        return None
    hours = Decimal(minutes) / Decimal(60)
    return (Decimal(budget) / hours).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Serialize a money value for storage (MongoDB has no native Decimal)."""
    if value is None:
        return None
    return str(to_money(value))
