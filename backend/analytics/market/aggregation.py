"""Tick aggregator for building candles from raw traded prices.

Ticks are grouped by interval boundary: a tick at ``t`` belongs to the
candle starting at ``floor(t / interval) * interval``. Ticks are taken in
the order given, so open/close are the first/last tick seen per bucket.
"""

import logging
import math
from collections import defaultdict
from typing import Iterable

from analytics.models.candle import Candle, PriceTick

logger = logging.getLogger(__name__)


def bucket_start(timestamp: float, interval: float) -> float:
    """Start of the interval bucket containing *timestamp*."""
    start = math.floor(timestamp / interval) * interval
    return int(start) if float(start).is_integer() else start


def aggregate_price_data(ticks: Iterable[PriceTick], interval: float) -> list[Candle]:
    """
    Aggregate price ticks into candles of a fixed interval.

    Args:
        ticks: Price ticks (any order within a bucket is taken as trade order)
        interval: Candle length in timestamp units

    Returns:
        Candles ascending by bucket start (empty for no ticks)

    Raises:
        ValueError: If interval <= 0
    """
    if interval <= 0:
        raise ValueError(f"interval must be > 0, got {interval}")

    buckets: dict[float, list[PriceTick]] = defaultdict(list)
    for tick in ticks:
        buckets[bucket_start(tick.timestamp, interval)].append(tick)

    candles = []
    for start in sorted(buckets):
        bucket = buckets[start]
        prices = [t.price for t in bucket]
        candles.append(
            Candle(
                timestamp=start,
                open=prices[0],
                high=max(prices),
                low=min(prices),
                close=prices[-1],
                volume=sum(t.volume for t in bucket),
            )
        )

    logger.debug("Aggregated %d buckets at interval %s", len(candles), interval)
    return candles
