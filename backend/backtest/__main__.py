"""CLI entry point for the simple backtester.

Usage:
    python -m backtest --candles btc_1h.csv --indicator rsi_cross.json
    python -m backtest --candles btc_1h.csv --indicator rsi_cross.json --threshold 0.5 -o run.json
"""

import argparse
import logging
import sys
from pathlib import Path

from analytics.engine import GraphError, IndicatorEngine

from backtest.config import get_backtest_settings
from backtest.data_loader import load_candles_csv, load_indicator_json
from backtest.report import ReportFormatter
from backtest.simulator import run_simple_backtest


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_backtest_settings()
    parser = argparse.ArgumentParser(
        description="Backtest a custom indicator on threshold crossings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backtest --candles btc_1h.csv --indicator rsi_cross.json
  python -m backtest --candles btc_1h.csv --indicator rsi_cross.json --threshold 0.5
  python -m backtest --candles btc_1h.csv --indicator rsi_cross.json -o run.json
        """,
    )
    parser.add_argument(
        "--candles",
        type=Path,
        required=True,
        help="CSV with timestamp, open, high, low, close, volume columns",
    )
    parser.add_argument(
        "--indicator",
        type=Path,
        required=True,
        help="CustomIndicator JSON file",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=settings.threshold,
        help=f"Crossing level (default: {settings.threshold:g})",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help=f"Output file for JSON results (bare names go to {settings.output_dir}/)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def resolve_output(output: str) -> Path:
    """Bare file names are placed in the configured output directory."""
    path = Path(output)
    if path.parent == Path("."):
        return Path(get_backtest_settings().output_dir) / path
    return path


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        candles = load_candles_csv(args.candles)
        indicator = load_indicator_json(args.indicator)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        result = run_simple_backtest(indicator, candles, args.threshold, IndicatorEngine())
    except GraphError as e:
        print(f"Error: invalid indicator graph: {e}")
        return 1

    ReportFormatter.print_console(result)

    if args.output:
        ReportFormatter.save_json(result, resolve_output(args.output))

    return 0


if __name__ == "__main__":
    sys.exit(main())
