"""Threshold-crossing backtest over a custom indicator."""

from __future__ import annotations

import logging
from typing import Sequence

from analytics.engine import IndicatorEngine
from analytics.models import Candle, CustomIndicator, IndicatorValue

from backtest.models import BacktestResult, TradeSignal
from backtest.stats import PerformanceCalculator

logger = logging.getLogger(__name__)


def detect_crossings(
    values: Sequence[IndicatorValue],
    candles: Sequence[Candle],
    threshold: float = 0.0,
) -> list[TradeSignal]:
    """
    Find threshold crossings of an indicator series.

    An upward crossing (prev <= threshold < current) is a buy, a downward
    crossing (prev >= threshold > current) a sell, both priced at the
    crossing candle's close.
    """
    signals: list[TradeSignal] = []
    for i in range(1, len(values)):
        prev = values[i - 1].value
        current = values[i].value

        if prev <= threshold < current:
            signal_type = "buy"
        elif prev >= threshold > current:
            signal_type = "sell"
        else:
            continue

        signals.append(
            TradeSignal(
                timestamp=values[i].timestamp,
                type=signal_type,
                price=candles[i].close,
                value=current,
            )
        )
    return signals


def run_simple_backtest(
    indicator: CustomIndicator,
    candles: Sequence[Candle],
    threshold: float = 0.0,
    engine: IndicatorEngine | None = None,
) -> BacktestResult:
    """
    Run a custom indicator through the engine and trade its crossings.

    Args:
        indicator: Graph to evaluate
        candles: Candle series, ascending by timestamp
        threshold: Crossing level
        engine: Engine to evaluate with (its cache is used); a private one
            is created when omitted

    Returns:
        BacktestResult with signals, closed trades and performance

    Raises:
        GraphError: If the indicator graph is malformed
    """
    if engine is None:
        engine = IndicatorEngine()

    values = engine.evaluate_indicator(indicator, candles)
    signals = detect_crossings(values, candles, threshold)
    trades, performance = PerformanceCalculator().calculate(signals)

    logger.info(
        f"Backtest {indicator.id}: {len(candles)} candles, {len(signals)} signals, "
        f"{performance.total_trades} trades, return={performance.total_return:+.4f}"
    )

    return BacktestResult(
        indicator=indicator,
        threshold=threshold,
        candle_count=len(candles),
        signals=signals,
        trades=trades,
        performance=performance,
    )
