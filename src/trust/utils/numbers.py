"""Rounding helpers shared by the rate and score computations."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a spreadsheet does: halves always move away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float, digits: int = 2) -> float:
    """Return ``part / whole`` as a percentage, or 0 when there is no data."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100, digits)
