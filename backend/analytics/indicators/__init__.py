"""Technical indicators (pure math, no I/O).

Importing this package registers every library indicator with the
registry, so ``calculate_indicator`` can dispatch on ``IndicatorType``.
"""

from analytics.indicators._common import Series
from analytics.indicators.momentum import (
    StochasticResult,
    cci,
    mfi,
    rsi,
    stochastic,
    williams_r,
)
from analytics.indicators.moving_averages import ema, sma
from analytics.indicators.registry import (
    IndicatorCalculator,
    calculate_indicator,
    get_indicator,
    list_indicators,
    register_indicator,
)
from analytics.indicators.signals import Signal, generate_signals
from analytics.indicators.trend import (
    IchimokuResult,
    MACDResult,
    ichimoku,
    macd,
    parabolic_sar,
)
from analytics.indicators.volatility import (
    BollingerBandsResult,
    atr,
    bollinger_bands,
    true_range,
)
from analytics.indicators.volume import obv, vwap

# Import built-in adapters to trigger auto-registration
import analytics.indicators.builtin  # noqa: F401

__all__ = [
    "Series",
    "sma",
    "ema",
    "rsi",
    "macd",
    "bollinger_bands",
    "stochastic",
    "atr",
    "true_range",
    "obv",
    "cci",
    "williams_r",
    "mfi",
    "parabolic_sar",
    "ichimoku",
    "vwap",
    "MACDResult",
    "BollingerBandsResult",
    "StochasticResult",
    "IchimokuResult",
    "Signal",
    "generate_signals",
    "register_indicator",
    "calculate_indicator",
    "get_indicator",
    "list_indicators",
    "IndicatorCalculator",
]
