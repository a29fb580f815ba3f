"""Trend indicators: MACD, Parabolic SAR and Ichimoku."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from analytics.indicators._common import Series, check_period, realign
from analytics.indicators.moving_averages import ema
from analytics.models.candle import Candle, highs, lows


@dataclass(slots=True)
class MACDResult:
    """MACD line, signal line and histogram."""

    macd: Series
    signal: Series
    histogram: Series


@dataclass(slots=True)
class IchimokuResult:
    """Ichimoku lines (leading spans are not shifted forward)."""

    conversion: Series
    base: Series
    leading_span_a: Series
    leading_span_b: Series
    lagging: Series


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    Calculate MACD.

    macd = EMA(fast) - EMA(slow); signal = EMA(signal_period) over the
    defined macd values, realigned; histogram = macd - signal wherever both
    are defined. Zero values are kept as values, never treated as missing.

    Args:
        values: Sequence of close prices
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal EMA period

    Returns:
        MACDResult with three aligned series
    """
    fast = ema(values, check_period(fast_period, "fast_period"))
    slow = ema(values, check_period(slow_period, "slow_period"))

    macd_line: Series = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast, slow)
    ]

    defined = [v for v in macd_line if v is not None]
    signal_line = realign(
        macd_line, ema(defined, check_period(signal_period, "signal_period"))
    )

    histogram: Series = [
        m - s if m is not None and s is not None else None
        for m, s in zip(macd_line, signal_line)
    ]

    return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)


def parabolic_sar(
    candles: Sequence[Candle],
    acceleration: float = 0.02,
    maximum: float = 0.2,
) -> Series:
    """
    Calculate Parabolic SAR.

    Starts in an uptrend with SAR at the first low and the extreme point at
    the first high. Each step moves SAR toward the extreme point by the
    acceleration factor; a price crossing SAR flips the trend, moves SAR to
    the old extreme point and resets the factor. A new extreme raises the
    factor by ``acceleration`` up to ``maximum``.

    Returns:
        List of SAR values (None at index 0, all None below two candles)
    """
    if acceleration <= 0 or maximum <= 0:
        raise ValueError(
            f"acceleration and maximum must be > 0, got {acceleration}, {maximum}"
        )

    n = len(candles)
    if n < 2:
        return [None] * n

    result: Series = [None]
    sar = candles[0].low
    uptrend = True
    af = acceleration
    extreme = candles[0].high

    for candle in candles[1:]:
        sar = sar + af * (extreme - sar)

        if uptrend:
            if candle.low < sar:
                uptrend = False
                sar = extreme
                extreme = candle.low
                af = acceleration
            elif candle.high > extreme:
                extreme = candle.high
                af = min(af + acceleration, maximum)
        else:
            if candle.high > sar:
                uptrend = True
                sar = extreme
                extreme = candle.high
                af = acceleration
            elif candle.low < extreme:
                extreme = candle.low
                af = min(af + acceleration, maximum)

        result.append(sar)

    return result


def _midpoints(high_arr: np.ndarray, low_arr: np.ndarray, period: int) -> Series:
    """(highest high + lowest low) / 2 over a trailing window."""
    result: Series = []
    for i in range(len(high_arr)):
        if i < period - 1:
            result.append(None)
            continue
        highest = float(high_arr[i - period + 1 : i + 1].max())
        lowest = float(low_arr[i - period + 1 : i + 1].min())
        result.append((highest + lowest) / 2)
    return result


def ichimoku(
    candles: Sequence[Candle],
    conversion: int = 9,
    base: int = 26,
    span: int = 52,
    displacement: int = 26,
) -> IchimokuResult:
    """
    Calculate Ichimoku Cloud lines.

    Leading spans are reported at the index they are computed on; charting
    code applies the forward displacement. The lagging line at index i is
    the close ``displacement`` candles earlier.
    """
    conversion = check_period(conversion, "conversion")
    base = check_period(base, "base")
    span = check_period(span, "span")
    displacement = check_period(displacement, "displacement")

    high_arr = np.asarray(highs(candles), dtype=np.float64)
    low_arr = np.asarray(lows(candles), dtype=np.float64)

    conversion_line = _midpoints(high_arr, low_arr, conversion)
    base_line = _midpoints(high_arr, low_arr, base)
    span_b = _midpoints(high_arr, low_arr, span)
    span_a: Series = [
        (c + b) / 2 if c is not None and b is not None else None
        for c, b in zip(conversion_line, base_line)
    ]
    lagging: Series = [
        candles[i - displacement].close if i >= displacement else None
        for i in range(len(candles))
    ]

    return IchimokuResult(
        conversion=conversion_line,
        base=base_line,
        leading_span_a=span_a,
        leading_span_b=span_b,
        lagging=lagging,
    )
