"""Moving averages over flat price series.

Both functions return a list aligned with the input. Entries without
enough history are ``None``; a series shorter than the period is
entirely ``None``.
"""

from typing import Sequence

import numpy as np

from analytics.indicators._common import Series, check_period


def sma(values: Sequence[float], period: int) -> Series:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (None for the first period - 1 entries)
    """
    period = check_period(period)
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    result: Series = [None] * (period - 1)

    for i in range(period - 1, n):
        result.append(float(np.mean(arr[i - period + 1 : i + 1])))

    return result


def ema(values: Sequence[float], period: int) -> Series:
    """
    Calculate Exponential Moving Average.

    Seeded with the SMA of the first ``period`` values at index
    ``period - 1``, then ``ema = (x - ema_prev) * k + ema_prev`` with
    ``k = 2 / (period + 1)``.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (None for the first period - 1 entries)
    """
    period = check_period(period)
    n = len(values)
    if n < period:
        return [None] * n

    arr = np.asarray(values, dtype=np.float64)
    multiplier = 2.0 / (period + 1)

    current = float(np.mean(arr[:period]))
    result: Series = [None] * (period - 1)
    result.append(current)

    for x in arr[period:]:
        current = (float(x) - current) * multiplier + current
        result.append(current)

    return result
