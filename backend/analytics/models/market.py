"""Order book depth and volume profile models."""

from typing import Literal

from pydantic import ConfigDict, Field

from analytics.models.base import WireModel

TradeBias = Literal["buy", "sell", "neutral"]
FlowSide = Literal["buy", "sell"]
FlowStrength = Literal["strong", "moderate", "weak"]


class OrderBookEntry(WireModel):
    """Raw order book entry (one price with resting amount)."""

    model_config = ConfigDict(frozen=True)

    price: float
    amount: float = Field(ge=0)


class OrderBookLevel(WireModel):
    """Order book level with cumulative depth.

    ``total`` is the cumulative amount from the best price up to and
    including this level; ``percentage`` is that cumulative amount as a
    share (0-100) of the side's total volume.
    """

    price: float
    amount: float
    total: float
    percentage: float


class OrderBookDepthData(WireModel):
    """Depth summary for both sides of the book."""

    bids: list[OrderBookLevel] = Field(default_factory=list)
    asks: list[OrderBookLevel] = Field(default_factory=list)
    spread: float = 0.0
    spread_percent: float = 0.0
    mid_price: float = 0.0
    imbalance: float = 0.0  # bid volume / ask volume
    total_bid_volume: float = 0.0
    total_ask_volume: float = 0.0


class QuickTradeRecommendation(WireModel):
    """Directional bias derived from book imbalance and spread."""

    bias: TradeBias
    confidence: float


class VolumeProfileLevel(WireModel):
    """One price bucket of a volume profile."""

    price: float
    volume: float = 0.0
    buy_volume: float = 0.0
    sell_volume: float = 0.0
    delta: float = 0.0


class VolumeProfileData(WireModel):
    """Volume profile with point of control, value area and VWAP bands."""

    levels: list[VolumeProfileLevel] = Field(default_factory=list)
    poc: float = 0.0  # Point of Control
    value_area_high: float = 0.0
    value_area_low: float = 0.0
    vwap: float = 0.0
    vwap_band_upper: float = 0.0
    vwap_band_lower: float = 0.0


class OrderFlowPressure(WireModel):
    """Buying / selling pressure of a single candle."""

    side: FlowSide
    strength: FlowStrength
    delta: float
    ratio: float
