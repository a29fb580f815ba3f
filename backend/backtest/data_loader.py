"""Load candles (CSV) and custom indicators (JSON) for the backtest CLI.

Candle CSV columns: timestamp, open, high, low, close, volume, plus the
optional buy_volume / sell_volume. Rows are sorted by timestamp.
"""

from __future__ import annotations

import logging
from pathlib import Path

import orjson
import pandas as pd

from analytics.models import Candle, CustomIndicator

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]
OPTIONAL_COLUMNS = ["buy_volume", "sell_volume"]


def candles_from_frame(df: pd.DataFrame) -> list[Candle]:
    """Convert an OHLCV DataFrame into candles, ascending by timestamp.

    Raises:
        ValueError: If a required column is missing.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing candle columns: {', '.join(missing)}")

    columns = REQUIRED_COLUMNS + [c for c in OPTIONAL_COLUMNS if c in df.columns]
    df = df[columns].sort_values("timestamp", kind="stable")
    df = df.astype(object).where(df.notna(), None)

    return [Candle(**row) for row in df.to_dict("records")]


def load_candles_csv(path: str | Path) -> list[Candle]:
    """Read a candle CSV file."""
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    candles = candles_from_frame(df)
    logger.info(f"Loaded {len(candles)} candles from {path}")
    return candles


def load_indicator_json(path: str | Path) -> CustomIndicator:
    """Read a CustomIndicator JSON file (wire field names)."""
    data = orjson.loads(Path(path).read_bytes())
    indicator = CustomIndicator.model_validate(data)
    logger.info(f"Loaded indicator {indicator.id} ({len(indicator.nodes)} nodes) from {path}")
    return indicator
