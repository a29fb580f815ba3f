"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import orjson

from backtest.models import BacktestResult


def _format_timestamp(timestamp: float) -> str:
    """Millisecond epoch timestamp as a UTC date-time."""
    return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult, max_trades: int = 10) -> None:
        """Print formatted report to console."""
        perf = result.performance

        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS - {result.indicator.name}")
        print("=" * 70)
        print(f"  Indicator: {result.indicator.id} ({len(result.indicator.nodes)} nodes)")
        print(f"  Candles:   {result.candle_count}")
        print(f"  Threshold: {result.threshold:g}")

        print("\n" + "-" * 70)
        print("  PERFORMANCE")
        print("-" * 70)
        print(f"  Signals:        {len(result.signals)}")
        print(f"  Closed trades:  {perf.total_trades}")
        print(f"  Profitable:     {perf.profitable_trades}")
        print(f"  Win rate:       {perf.win_rate:.1f}%")
        print(f"  Total return:   {perf.total_return * 100:+.2f}%")
        print(f"  Max drawdown:   {perf.max_drawdown * 100:.2f}%")
        print(f"  Sharpe (naive): {perf.sharpe_ratio:.3f}")

        if result.trades:
            print("\n" + "-" * 70)
            print(f"  TRADES (last {max_trades})")
            print("-" * 70)
            print(f"  {'Entry':<18} {'Exit':<18} {'Entry $':>11} {'Exit $':>11} {'Return':>9}")
            for t in result.trades[-max_trades:]:
                print(
                    f"  {_format_timestamp(t.entry_timestamp):<18} "
                    f"{_format_timestamp(t.exit_timestamp):<18} "
                    f"{t.entry_price:>11.4f} {t.exit_price:>11.4f} "
                    f"{t.trade_return * 100:>+8.2f}%"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to a JSON-serializable dict (wire field names)."""
        return result.to_wire()

    @staticmethod
    def save_json(result: BacktestResult, filepath: str | Path) -> Path:
        """Save results to JSON file."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            orjson.dumps(ReportFormatter.to_dict(result), option=orjson.OPT_INDENT_2)
        )
        print(f"\nResults saved to {path}")
        return path
