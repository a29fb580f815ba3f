"""Volume profile analytics: price histogram, POC, value area and VWAP bands."""

from __future__ import annotations

import logging
import math
from typing import Callable, Sequence

from analytics.models.candle import Candle
from analytics.models.market import (
    OrderFlowPressure,
    VolumeProfileData,
    VolumeProfileLevel,
)

logger = logging.getLogger(__name__)

DEFAULT_NUM_LEVELS = 50
DEFAULT_VALUE_AREA_PCT = 0.70
DEFAULT_BAND_MULTIPLIER = 2.0

# Order flow strength thresholds on |delta| / volume
STRONG_FLOW_RATIO = 0.7
MODERATE_FLOW_RATIO = 0.4

# (buy volume, sell volume) for a candle without an exchange-reported split
VolumeSplit = Callable[[Candle], tuple[float, float]]


def direction_split(candle: Candle) -> tuple[float, float]:
    """Attribute all volume to buyers on an up (or flat) candle, else to sellers."""
    if candle.close >= candle.open:
        return candle.volume, 0.0
    return 0.0, candle.volume


def buy_sell_volume(candle: Candle, split: VolumeSplit = direction_split) -> tuple[float, float]:
    """Exchange-reported buy/sell volume when present, else the heuristic split."""
    heuristic_buy, heuristic_sell = split(candle)
    buy = candle.buy_volume if candle.buy_volume is not None else heuristic_buy
    sell = candle.sell_volume if candle.sell_volume is not None else heuristic_sell
    return buy, sell


def _value_area(volumes: list[float], poc_index: int, target: float) -> tuple[int, int]:
    """
    Expand from the POC bucket until the included volume reaches *target*.

    Each step adds the adjacent bucket (below or above the current band)
    holding more volume; ties go to the lower side.

    Returns:
        (lowest, highest) included bucket index
    """
    low = high = poc_index
    accumulated = volumes[poc_index]

    while accumulated < target and (low > 0 or high < len(volumes) - 1):
        below = volumes[low - 1] if low > 0 else -1.0
        above = volumes[high + 1] if high < len(volumes) - 1 else -1.0
        if below >= above:
            low -= 1
            accumulated += below
        else:
            high += 1
            accumulated += above

    return low, high


def calculate_volume_profile(
    candles: Sequence[Candle],
    num_levels: int = DEFAULT_NUM_LEVELS,
    value_area_pct: float = DEFAULT_VALUE_AREA_PCT,
    band_multiplier: float = DEFAULT_BAND_MULTIPLIER,
    split: VolumeSplit = direction_split,
) -> VolumeProfileData:
    """
    Build a volume profile over the full price range of *candles*.

    The range [min(low), max(high)] is cut into ``num_levels`` equal
    buckets; a bucket's ``price`` is its lower edge. Each candle's whole
    volume lands in the bucket holding its typical price (the top edge
    belongs to the last bucket). The value area grows from the POC toward
    the heavier neighbour until ``value_area_pct`` of total volume is
    covered. VWAP bands sit ``band_multiplier`` volume-weighted standard
    deviations of typical price away from VWAP.

    Args:
        candles: Candle series
        num_levels: Number of price buckets
        value_area_pct: Share of volume the value area must cover
        band_multiplier: Band width in standard deviations
        split: Buy/sell heuristic for candles without reported split

    Returns:
        VolumeProfileData (all zeros with no levels for empty input)

    Raises:
        ValueError: If num_levels < 1
    """
    if num_levels < 1:
        raise ValueError(f"num_levels must be >= 1, got {num_levels}")
    num_levels = int(num_levels)

    if not candles:
        return VolumeProfileData()

    min_price = min(c.low for c in candles)
    max_price = max(c.high for c in candles)
    step = (max_price - min_price) / num_levels

    volumes = [0.0] * num_levels
    buys = [0.0] * num_levels
    sells = [0.0] * num_levels

    total_volume = 0.0
    total_value = 0.0
    for candle in candles:
        tp = candle.typical_price
        index = min(int((tp - min_price) / step), num_levels - 1) if step > 0 else 0
        index = max(index, 0)

        buy, sell = buy_sell_volume(candle, split)
        volumes[index] += candle.volume
        buys[index] += buy
        sells[index] += sell

        total_volume += candle.volume
        total_value += tp * candle.volume

    levels = [
        VolumeProfileLevel(
            price=min_price + i * step,
            volume=volumes[i],
            buy_volume=buys[i],
            sell_volume=sells[i],
            delta=buys[i] - sells[i],
        )
        for i in range(num_levels)
    ]

    # First bucket with the highest volume
    poc_index = max(range(num_levels), key=lambda i: (volumes[i], -i))
    poc = levels[poc_index].price

    if total_volume <= 0:
        logger.debug("Volume profile over %d candles has no volume", len(candles))
        return VolumeProfileData(
            levels=levels,
            poc=poc,
            value_area_low=min_price,
            value_area_high=max_price,
        )

    low, high = _value_area(volumes, poc_index, total_volume * value_area_pct)

    vwap = total_value / total_volume
    variance = sum((c.typical_price - vwap) ** 2 * c.volume for c in candles) / total_volume
    std_dev = math.sqrt(variance)

    return VolumeProfileData(
        levels=levels,
        poc=poc,
        value_area_low=levels[low].price,
        value_area_high=levels[high].price,
        vwap=vwap,
        vwap_band_upper=vwap + band_multiplier * std_dev,
        vwap_band_lower=vwap - band_multiplier * std_dev,
    )


def vwap_from_candles(candles: Sequence[Candle]) -> float:
    """Single VWAP over all candles (0 when there is no volume)."""
    total_value = 0.0
    total_volume = 0.0
    for candle in candles:
        total_value += candle.typical_price * candle.volume
        total_volume += candle.volume
    return total_value / total_volume if total_volume > 0 else 0.0


def order_flow_pressure(
    candle: Candle,
    split: VolumeSplit = direction_split,
) -> OrderFlowPressure:
    """
    Classify a candle's buying or selling pressure.

    ``ratio`` is |buy - sell| / volume; above 0.7 is strong, above 0.4
    moderate, anything else weak. A zero delta reads as (weak) selling.
    """
    buy, sell = buy_sell_volume(candle, split)
    delta = buy - sell
    ratio = abs(delta) / candle.volume if candle.volume > 0 else 0.0

    if ratio > STRONG_FLOW_RATIO:
        strength = "strong"
    elif ratio > MODERATE_FLOW_RATIO:
        strength = "moderate"
    else:
        strength = "weak"

    return OrderFlowPressure(
        side="buy" if delta > 0 else "sell",
        strength=strength,
        delta=delta,
        ratio=ratio,
    )
