"""Volatility indicators: Bollinger Bands and ATR."""

from dataclasses import dataclass
from itertools import pairwise
from typing import Sequence

import numpy as np

from analytics.indicators._common import Series, check_period
from analytics.indicators.moving_averages import sma
from analytics.models.candle import Candle


@dataclass(slots=True)
class BollingerBandsResult:
    """Upper, middle and lower bands."""

    upper: Series
    middle: Series
    lower: Series


def bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBandsResult:
    """
    Calculate Bollinger Bands.

    middle = SMA(period); upper / lower = middle +/- std_dev * population
    standard deviation of the same window.
    """
    period = check_period(period)
    middle = sma(values, period)
    arr = np.asarray(values, dtype=np.float64)

    upper: Series = []
    lower: Series = []
    for i, mean in enumerate(middle):
        if mean is None:
            upper.append(None)
            lower.append(None)
            continue
        window = arr[i - period + 1 : i + 1]
        deviation = float(np.sqrt(np.mean((window - mean) ** 2)))
        upper.append(mean + std_dev * deviation)
        lower.append(mean - std_dev * deviation)

    return BollingerBandsResult(upper=upper, middle=middle, lower=lower)


def true_range(candles: Sequence[Candle]) -> list[float]:
    """
    Calculate True Range from the second candle on.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    """
    return [
        max(
            cur.high - cur.low,
            abs(cur.high - prev.close),
            abs(cur.low - prev.close),
        )
        for prev, cur in pairwise(candles)
    ]


def atr(candles: Sequence[Candle], period: int = 14) -> Series:
    """
    Calculate Average True Range.

    Simple moving average of true range, with a 0 placeholder at index 0
    so the output stays aligned with the candles.

    Returns:
        List of ATR values (all None below two candles)
    """
    period = check_period(period)
    n = len(candles)
    if n < 2:
        return [None] * n
    return sma([0.0, *true_range(candles)], period)
