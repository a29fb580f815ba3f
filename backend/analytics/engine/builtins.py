"""Builtin series available to indicator nodes.

SMA, EMA and RSI come from the indicator library. Graph series are dense
(one float per candle), so library warm-up ``None`` entries are filled:
0.0 for the moving averages and a neutral 50.0 for RSI.
"""

from typing import Sequence

import numpy as np

from analytics.engine.graph import BuiltinIndicator
from analytics.indicators import ema, rsi, sma
from analytics.models.candle import Candle, closes, volumes

WARMUP_FILL: dict[BuiltinIndicator, float] = {
    BuiltinIndicator.SMA: 0.0,
    BuiltinIndicator.EMA: 0.0,
    BuiltinIndicator.RSI: 50.0,
}


def builtin_series(
    indicator: BuiltinIndicator,
    period: int | None,
    candles: Sequence[Candle],
) -> np.ndarray:
    """Dense float64 series for a builtin indicator over *candles*."""
    match indicator:
        case BuiltinIndicator.VOLUME:
            return np.asarray(volumes(candles), dtype=np.float64)
        case BuiltinIndicator.SMA:
            values = sma(closes(candles), period)
        case BuiltinIndicator.EMA:
            values = ema(closes(candles), period)
        case BuiltinIndicator.RSI:
            values = rsi(closes(candles), period)

    fill = WARMUP_FILL[indicator]
    return np.array([fill if v is None else v for v in values], dtype=np.float64)
