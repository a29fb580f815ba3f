"""Candle (OHLCV) and indicator value models."""

from pydantic import ConfigDict, Field

from analytics.models.base import WireModel

Timestamp = int | float


class Candle(WireModel):
    """OHLCV candle with optional taker buy/sell volume split."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(ge=0)
    buy_volume: float | None = None
    sell_volume: float | None = None

    @property
    def typical_price(self) -> float:
        """(high + low + close) / 3."""
        return (self.high + self.low + self.close) / 3

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


class IndicatorValue(WireModel):
    """One evaluated point of a custom indicator series."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    value: float


class PriceTick(WireModel):
    """Single traded price, used for candle aggregation."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    price: float
    volume: float = Field(default=0.0, ge=0)


def closes(candles) -> list[float]:
    """Get list of close prices."""
    return [c.close for c in candles]


def highs(candles) -> list[float]:
    """Get list of high prices."""
    return [c.high for c in candles]


def lows(candles) -> list[float]:
    """Get list of low prices."""
    return [c.low for c in candles]


def volumes(candles) -> list[float]:
    """Get list of volumes."""
    return [c.volume for c in candles]
