"""Indicator configuration models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from analytics.models.base import WireModel


class IndicatorType(str, Enum):
    """Indicators available in the function library."""

    SMA = "SMA"
    EMA = "EMA"
    RSI = "RSI"
    MACD = "MACD"
    BOLLINGER_BANDS = "BollingerBands"
    STOCHASTIC = "Stochastic"
    ATR = "ATR"
    OBV = "OBV"
    CCI = "CCI"
    WILLIAMS = "Williams"
    MFI = "MFI"
    PARABOLIC_SAR = "ParabolicSAR"
    ICHIMOKU = "Ichimoku"
    VWAP = "VWAP"


# Default parameters per indicator (parameter names as used by the dashboard)
DEFAULT_INDICATOR_PARAMS: dict[IndicatorType, dict[str, float]] = {
    IndicatorType.SMA: {"period": 20},
    IndicatorType.EMA: {"period": 20},
    IndicatorType.RSI: {"period": 14},
    IndicatorType.MACD: {"fastPeriod": 12, "slowPeriod": 26, "signalPeriod": 9},
    IndicatorType.BOLLINGER_BANDS: {"period": 20, "stdDev": 2},
    IndicatorType.STOCHASTIC: {"kPeriod": 14, "dPeriod": 3},
    IndicatorType.ATR: {"period": 14},
    IndicatorType.OBV: {},
    IndicatorType.CCI: {"period": 20},
    IndicatorType.WILLIAMS: {"period": 14},
    IndicatorType.MFI: {"period": 14},
    IndicatorType.PARABOLIC_SAR: {"acceleration": 0.02, "maximum": 0.2},
    IndicatorType.ICHIMOKU: {"conversion": 9, "base": 26, "span": 52, "displacement": 26},
    IndicatorType.VWAP: {},
}


class IndicatorConfig(WireModel):
    """A configured library indicator (as saved in a chart preset)."""

    id: str
    type: IndicatorType
    enabled: bool = True
    params: dict[str, float] = Field(default_factory=dict)

    def resolved_params(self) -> dict[str, float]:
        """Default parameters overlaid with the configured ones."""
        return {**DEFAULT_INDICATOR_PARAMS[self.type], **self.params}
