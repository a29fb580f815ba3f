"""Data models shared by the analytics core, backtest and worker."""

from analytics.models.base import WireModel
from analytics.models.candle import (
    Candle,
    IndicatorValue,
    PriceTick,
    closes,
    highs,
    lows,
    volumes,
)
from analytics.models.config import (
    DEFAULT_INDICATOR_PARAMS,
    IndicatorConfig,
    IndicatorType,
)
from analytics.models.graph import CustomIndicator, IndicatorNode, NodeType
from analytics.models.market import (
    OrderBookDepthData,
    OrderBookEntry,
    OrderBookLevel,
    OrderFlowPressure,
    QuickTradeRecommendation,
    VolumeProfileData,
    VolumeProfileLevel,
)

__all__ = [
    "WireModel",
    "Candle",
    "IndicatorValue",
    "PriceTick",
    "closes",
    "highs",
    "lows",
    "volumes",
    "DEFAULT_INDICATOR_PARAMS",
    "IndicatorConfig",
    "IndicatorType",
    "CustomIndicator",
    "IndicatorNode",
    "NodeType",
    "OrderBookDepthData",
    "OrderBookEntry",
    "OrderBookLevel",
    "OrderFlowPressure",
    "QuickTradeRecommendation",
    "VolumeProfileData",
    "VolumeProfileLevel",
]
