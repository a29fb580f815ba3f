"""Order book depth analytics.

Inputs are raw price levels from an exchange snapshot: ``OrderBookEntry``
models, ``[price, amount]`` pairs (CCXT / Binance style) or mappings with
``price`` and ``amount`` keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

from analytics.models.market import (
    OrderBookDepthData,
    OrderBookEntry,
    OrderBookLevel,
    QuickTradeRecommendation,
)

# Imbalance band treated as balanced
BUY_IMBALANCE = 1.05
SELL_IMBALANCE = 0.95
# Spread (percent of mid) at which confidence drops to zero
MAX_SPREAD_PERCENT = 1.5


def to_entries(raw: Iterable[Any]) -> list[OrderBookEntry]:
    """Normalize raw book levels into OrderBookEntry models."""
    entries = []
    for item in raw:
        if isinstance(item, OrderBookEntry):
            entries.append(item)
        elif isinstance(item, Mapping):
            entries.append(OrderBookEntry.model_validate(item))
        else:
            price, amount = item[0], item[1]
            entries.append(OrderBookEntry(price=float(price), amount=float(amount)))
    return entries


def _cumulative(entries: list[OrderBookEntry]) -> tuple[list[OrderBookLevel], float]:
    """Cumulative levels for one already-sorted side, plus the side total."""
    side_total = sum(e.amount for e in entries)
    levels = []
    running = 0.0
    for entry in entries:
        running += entry.amount
        levels.append(
            OrderBookLevel(
                price=entry.price,
                amount=entry.amount,
                total=running,
                percentage=running / side_total * 100 if side_total > 0 else 0.0,
            )
        )
    return levels, side_total


def calculate_order_book_depth(
    bids: Iterable[Any],
    asks: Iterable[Any],
) -> OrderBookDepthData:
    """
    Build cumulative depth, spread and imbalance for a book snapshot.

    Bids are sorted best (highest) first, asks best (lowest) first. Each
    level's ``total`` is the cumulative amount from the best price and
    ``percentage`` that total as a share of the side's volume.

    Args:
        bids: Raw bid levels
        asks: Raw ask levels

    Returns:
        OrderBookDepthData (all zeros for an empty book)
    """
    bid_entries = sorted(to_entries(bids), key=lambda e: e.price, reverse=True)
    ask_entries = sorted(to_entries(asks), key=lambda e: e.price)

    bid_levels, total_bid = _cumulative(bid_entries)
    ask_levels, total_ask = _cumulative(ask_entries)

    best_bid = bid_levels[0].price if bid_levels else None
    best_ask = ask_levels[0].price if ask_levels else None

    if best_bid is not None and best_ask is not None:
        mid_price = (best_bid + best_ask) / 2
        spread = best_ask - best_bid
    else:
        mid_price = best_bid if best_bid is not None else (best_ask or 0.0)
        spread = 0.0

    spread_percent = spread / mid_price * 100 if mid_price else 0.0
    imbalance = total_bid / total_ask if total_ask > 0 else 0.0

    return OrderBookDepthData(
        bids=bid_levels,
        asks=ask_levels,
        spread=spread,
        spread_percent=spread_percent,
        mid_price=mid_price,
        imbalance=imbalance,
        total_bid_volume=total_bid,
        total_ask_volume=total_ask,
    )


def compute_quick_trade_recommendation(depth: OrderBookDepthData) -> QuickTradeRecommendation:
    """
    Derive a directional bias from book imbalance and spread.

    Directional confidence is ``min(|imbalance - 1|, 1)`` scaled down by the
    spread (to zero at a 1.5% spread). Inside the neutral band confidence
    is ``min(|imbalance - 1|, 1) * 0.5`` and ignores the spread. An empty
    book is neutral with zero confidence.
    """
    if not depth.bids and not depth.asks:
        return QuickTradeRecommendation(bias="neutral", confidence=0.0)

    imbalance = depth.imbalance
    normalized = min(abs(imbalance - 1), 1.0)

    if imbalance > BUY_IMBALANCE:
        bias = "buy"
    elif imbalance < SELL_IMBALANCE:
        bias = "sell"
    else:
        return QuickTradeRecommendation(bias="neutral", confidence=normalized * 0.5)

    spread_factor = 1 - min(max(depth.spread_percent, 0.0) / MAX_SPREAD_PERCENT, 1.0)
    return QuickTradeRecommendation(bias=bias, confidence=normalized * spread_factor)
