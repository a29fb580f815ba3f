"""Volume indicators: OBV and cumulative VWAP."""

from itertools import pairwise
from typing import Sequence

from analytics.models.candle import Candle


def obv(candles: Sequence[Candle]) -> list[float]:
    """
    Calculate On-Balance Volume.

    Starts at the first candle's volume; each later candle adds its volume
    on a higher close, subtracts it on a lower close, and carries the
    previous value on an unchanged close.
    """
    if not candles:
        return []

    result = [float(candles[0].volume)]
    for prev, cur in pairwise(candles):
        if cur.close > prev.close:
            result.append(result[-1] + cur.volume)
        elif cur.close < prev.close:
            result.append(result[-1] - cur.volume)
        else:
            result.append(result[-1])

    return result


def vwap(candles: Sequence[Candle]) -> list[float]:
    """
    Calculate Volume Weighted Average Price.

    Cumulative typical price * volume over cumulative volume from the first
    candle. While cumulative volume is zero the candle's typical price is
    used.

    Note: This is a session-less cumulative VWAP; callers slice the candles
    to reset it at session boundaries.
    """
    result = []
    cum_pv = 0.0
    cum_vol = 0.0

    for candle in candles:
        tp = candle.typical_price
        cum_pv += tp * candle.volume
        cum_vol += candle.volume
        result.append(cum_pv / cum_vol if cum_vol > 0 else tp)

    return result
