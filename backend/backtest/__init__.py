"""Simple backtester for custom indicators.

Depends only on analytics/ for evaluation. Signals come from threshold
crossings of the indicator series and are traded as one long position.

Usage:
    python -m backtest --candles btc_1h.csv --indicator rsi_cross.json
"""

from backtest.models import BacktestPerformance, BacktestResult, ClosedTrade, TradeSignal
from backtest.simulator import detect_crossings, run_simple_backtest
from backtest.stats import PerformanceCalculator

__all__ = [
    "BacktestPerformance",
    "BacktestResult",
    "ClosedTrade",
    "TradeSignal",
    "PerformanceCalculator",
    "detect_crossings",
    "run_simple_backtest",
]
