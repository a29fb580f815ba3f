"""Backtest result models (wire names match the dashboard)."""

from typing import Literal

from pydantic import ConfigDict, Field

from analytics.models import CustomIndicator, WireModel
from analytics.models.candle import Timestamp

SignalType = Literal["buy", "sell"]


class TradeSignal(WireModel):
    """Threshold crossing of the indicator series."""

    model_config = ConfigDict(frozen=True)

    timestamp: Timestamp
    type: SignalType
    price: float  # close of the crossing candle
    value: float  # indicator value at the crossing


class ClosedTrade(WireModel):
    """Matched buy -> sell pair."""

    model_config = ConfigDict(frozen=True)

    entry_timestamp: Timestamp
    exit_timestamp: Timestamp
    entry_price: float
    exit_price: float
    trade_return: float = Field(alias="return")


class BacktestPerformance(WireModel):
    """Naive performance summary.

    ``total_return`` is the uncompounded sum of trade returns,
    ``max_drawdown`` only looks at signal prices, and ``sharpe_ratio`` is
    total return / sqrt(trade count): rough dashboard heuristics, not
    portfolio statistics.
    """

    total_trades: int = 0
    profitable_trades: int = 0
    total_return: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    win_rate: float = 0.0


class BacktestResult(WireModel):
    """Complete result of one simple backtest run."""

    indicator: CustomIndicator
    threshold: float = 0.0
    candle_count: int = 0
    signals: list[TradeSignal] = Field(default_factory=list)
    trades: list[ClosedTrade] = Field(default_factory=list)
    performance: BacktestPerformance = Field(default_factory=BacktestPerformance)
