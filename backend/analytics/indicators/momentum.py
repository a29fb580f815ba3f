"""Momentum oscillators: RSI, Stochastic, Williams %R, CCI and MFI.

Every function returns a list aligned with its input. Degenerate windows
(flat range, zero deviation) never raise; they produce the neutral value
documented on each function.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from analytics.indicators._common import Series, check_period, realign, safe_ratio
from analytics.indicators.moving_averages import sma
from analytics.models.candle import Candle, highs, lows


@dataclass(slots=True)
class StochasticResult:
    """%K and %D lines."""

    k: Series
    d: Series


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def rsi(values: Sequence[float], period: int = 14) -> Series:
    """
    Calculate Relative Strength Index (Wilder smoothing).

    The first value lands at index ``period``: average gain and loss are
    seeded from the first ``period`` deltas (a zero delta counts as a
    gain of 0), then smoothed with ``avg = (avg * (period - 1) + x) / period``.
    An average loss of zero gives 100.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values in [0, 100] (None until index ``period``)
    """
    period = check_period(period)
    n = len(values)
    result: Series = [None] * n
    if n <= period:
        return result

    deltas = np.diff(np.asarray(values, dtype=np.float64))

    seed = deltas[:period]
    avg_gain = float(seed[seed >= 0].sum()) / period
    avg_loss = float(-seed[seed < 0].sum()) / period
    result[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period + 1, n):
        change = float(deltas[i - 1])
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        result[i] = _rsi_from_averages(avg_gain, avg_loss)

    return result


def stochastic(
    candles: Sequence[Candle],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """
    Calculate the Stochastic oscillator.

    %K = (close - lowest low) / (highest high - lowest low) * 100 over the
    last ``k_period`` candles, 50 when the range is flat. %D is the SMA of
    the defined %K values, realigned onto the candle indices.
    """
    k_period = check_period(k_period, "k_period")
    d_period = check_period(d_period, "d_period")

    high_arr = np.asarray(highs(candles), dtype=np.float64)
    low_arr = np.asarray(lows(candles), dtype=np.float64)

    k_line: Series = []
    for i, candle in enumerate(candles):
        if i < k_period - 1:
            k_line.append(None)
            continue
        highest = float(high_arr[i - k_period + 1 : i + 1].max())
        lowest = float(low_arr[i - k_period + 1 : i + 1].min())
        ratio = safe_ratio(candle.close - lowest, highest - lowest, 0.5)
        k_line.append(ratio * 100)

    defined = [v for v in k_line if v is not None]
    d_line = realign(k_line, sma(defined, d_period))

    return StochasticResult(k=k_line, d=d_line)


def williams_r(candles: Sequence[Candle], period: int = 14) -> Series:
    """Williams %R in [-100, 0]; -50 when the window range is flat."""
    period = check_period(period)
    high_arr = np.asarray(highs(candles), dtype=np.float64)
    low_arr = np.asarray(lows(candles), dtype=np.float64)

    result: Series = []
    for i, candle in enumerate(candles):
        if i < period - 1:
            result.append(None)
            continue
        highest = float(high_arr[i - period + 1 : i + 1].max())
        lowest = float(low_arr[i - period + 1 : i + 1].min())
        result.append(safe_ratio(highest - candle.close, highest - lowest, 0.5) * -100)

    return result


def cci(candles: Sequence[Candle], period: int = 20) -> Series:
    """
    Calculate Commodity Channel Index.

    CCI = (tp - SMA(tp)) / (0.015 * mean deviation), 0 when the mean
    deviation is zero.
    """
    period = check_period(period)
    typical = [c.typical_price for c in candles]
    tp_arr = np.asarray(typical, dtype=np.float64)
    tp_sma = sma(typical, period)

    result: Series = []
    for i, mean in enumerate(tp_sma):
        if mean is None:
            result.append(None)
            continue
        window = tp_arr[i - period + 1 : i + 1]
        mean_deviation = float(np.mean(np.abs(window - mean)))
        result.append(safe_ratio(typical[i] - mean, 0.015 * mean_deviation, 0.0))

    return result


def mfi(candles: Sequence[Candle], period: int = 14) -> Series:
    """
    Calculate Money Flow Index.

    Raw money flow is typical price * volume. A candle whose typical price
    rose over the previous one contributes positive flow; anything else
    (including an unchanged typical price) contributes negative flow.
    With no negative flow the money ratio is taken as 100, so a pure
    uptrend reads about 99.01 rather than 100.

    Args:
        candles: Candle sequence
        period: Lookback period

    Returns:
        List of MFI values (None until index ``period``, 50 if undefined)
    """
    period = check_period(period)
    n = len(candles)
    if n < period + 1:
        return [None] * n

    typical = [c.typical_price for c in candles]
    flows = [tp * c.volume for tp, c in zip(typical, candles)]

    result: Series = [None] * period
    for i in range(period, n):
        positive = 0.0
        negative = 0.0
        for j in range(i - period + 1, i + 1):
            if typical[j] > typical[j - 1]:
                positive += flows[j]
            else:
                negative += flows[j]

        money_ratio = 100.0 if negative == 0 else positive / negative
        result.append(100.0 - safe_ratio(100.0, 1.0 + money_ratio, 50.0))

    return result

