"""Helpers shared by the indicator implementations."""

import math
from typing import Iterable

# Indicator output: aligned with input, None during warm-up
Series = list[float | None]


def check_period(value: float, name: str = "period") -> int:
    """Validate a window length and return it as an int.

    Raises:
        ValueError: If the value is not a whole number >= 1.
    """
    message = f"{name} must be a whole number >= 1, got {value!r}"
    try:
        period = int(value)
    except (OverflowError, TypeError, ValueError):
        raise ValueError(message) from None
    if period != value or period < 1:
        raise ValueError(message)
    return period


def safe_ratio(numerator: float, denominator: float, fallback: float) -> float:
    """numerator / denominator, or *fallback* when undefined or non-finite."""
    if denominator == 0:
        return fallback
    result = numerator / denominator
    return result if math.isfinite(result) else fallback


def realign(source: Series, computed: Iterable[float | None]) -> Series:
    """Spread values computed over the non-null entries of *source* back
    onto the original indices (None stays None)."""
    it = iter(computed)
    return [None if value is None else next(it) for value in source]
