"""Market-structure analytics (order book depth, volume profile, tick aggregation)."""

from analytics.market.aggregation import aggregate_price_data
from analytics.market.orderbook import (
    calculate_order_book_depth,
    compute_quick_trade_recommendation,
    to_entries,
)
from analytics.market.volume_profile import (
    VolumeSplit,
    buy_sell_volume,
    calculate_volume_profile,
    direction_split,
    order_flow_pressure,
    vwap_from_candles,
)

__all__ = [
    "aggregate_price_data",
    "calculate_order_book_depth",
    "compute_quick_trade_recommendation",
    "to_entries",
    "VolumeSplit",
    "buy_sell_volume",
    "calculate_volume_profile",
    "direction_split",
    "order_flow_pressure",
    "vwap_from_candles",
]
