"""Performance statistics for simple backtests.

Signals are replayed as a single long-only position: a buy opens it when
flat, a sell closes it when long, anything else is ignored. A buy left
open at the end is not a trade.

Drawdown is measured on signal prices only: peak and trough restart at
each entry price and absorb the exit price when the trade closes.
An entry at price 0 has a return of 0.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from backtest.models import BacktestPerformance, ClosedTrade, TradeSignal

logger = logging.getLogger(__name__)


def _trade_return(entry_price: float, exit_price: float) -> float:
    if entry_price == 0:
        return 0.0
    return (exit_price - entry_price) / entry_price


class PerformanceCalculator:
    """Calculate trades and performance from a signal sequence."""

    def calculate(
        self,
        signals: Sequence[TradeSignal],
    ) -> tuple[list[ClosedTrade], BacktestPerformance]:
        trades: list[ClosedTrade] = []
        max_drawdown = 0.0

        entry: TradeSignal | None = None
        peak = 0.0
        trough = 0.0

        for signal in signals:
            if signal.type == "buy" and entry is None:
                entry = signal
                peak = signal.price
                trough = signal.price
            elif signal.type == "sell" and entry is not None:
                trades.append(
                    ClosedTrade(
                        entry_timestamp=entry.timestamp,
                        exit_timestamp=signal.timestamp,
                        entry_price=entry.price,
                        exit_price=signal.price,
                        trade_return=_trade_return(entry.price, signal.price),
                    )
                )
                entry = None

                peak = max(peak, signal.price)
                trough = min(trough, signal.price)
                drawdown = (peak - trough) / peak if peak > 0 else 0.0
                max_drawdown = max(max_drawdown, drawdown)

        if entry is not None:
            logger.debug("Open position at %s not counted", entry.timestamp)

        return trades, self._summarize(trades, max_drawdown)

    def _summarize(self, trades: list[ClosedTrade], max_drawdown: float) -> BacktestPerformance:
        total = len(trades)
        if total == 0:
            return BacktestPerformance()

        total_return = sum(t.trade_return for t in trades)
        profitable = sum(1 for t in trades if t.trade_return > 0)

        return BacktestPerformance(
            total_trades=total,
            profitable_trades=profitable,
            total_return=total_return,
            max_drawdown=max_drawdown,
            sharpe_ratio=total_return / math.sqrt(total),
            win_rate=profitable / total * 100,
        )
