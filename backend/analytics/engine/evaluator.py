"""Custom indicator evaluation with per-engine memoization."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from analytics.engine.builtins import builtin_series
from analytics.engine.graph import (
    ArithmeticOp,
    ArithmeticOperator,
    CompiledGraph,
    ConditionOp,
    ConditionOperator,
    ConstantOp,
    IndicatorOp,
    compile_graph,
)
from analytics.models.candle import Candle, IndicatorValue
from analytics.models.graph import CustomIndicator

logger = logging.getLogger(__name__)

EQUALITY_EPSILON = 1e-4

CacheKey = tuple[str, int]


def _arithmetic(operator: ArithmeticOperator, left: np.ndarray, right: np.ndarray) -> np.ndarray:
    match operator:
        case ArithmeticOperator.ADD:
            return left + right
        case ArithmeticOperator.SUBTRACT:
            return left - right
        case ArithmeticOperator.MULTIPLY:
            return left * right
        case ArithmeticOperator.DIVIDE:
            # x / 0 is 0
            return np.divide(left, right, out=np.zeros_like(left), where=right != 0)


def _condition(operator: ConditionOperator, left: np.ndarray, right: np.ndarray) -> np.ndarray:
    match operator:
        case ConditionOperator.GREATER:
            mask = left > right
        case ConditionOperator.LESS:
            mask = left < right
        case ConditionOperator.EQUAL:
            mask = np.abs(left - right) < EQUALITY_EPSILON
        case ConditionOperator.AND:
            mask = (left != 0) & (right != 0)
        case ConditionOperator.OR:
            mask = (left != 0) | (right != 0)
    return mask.astype(np.float64)


def evaluate_graph(graph: CompiledGraph, candles: Sequence[Candle]) -> list[float]:
    """
    Evaluate a compiled graph over candles.

    Nodes are evaluated once each, in arena order. Every node produces one
    finite float per candle: NaN and infinities from overflow or from
    constants are replaced with 0.

    Returns:
        Output node values, aligned with *candles*
    """
    n = len(candles)
    results: list[np.ndarray] = []

    with np.errstate(over="ignore", invalid="ignore"):
        for node in graph.nodes:
            match node:
                case ConstantOp(value=value):
                    series = np.full(n, value, dtype=np.float64)
                case IndicatorOp(indicator=indicator, period=period):
                    series = builtin_series(indicator, period, candles)
                case ArithmeticOp(operator=operator, left=left, right=right):
                    series = _arithmetic(operator, results[left], results[right])
                case ConditionOp(operator=operator, left=left, right=right):
                    series = _condition(operator, results[left], results[right])
            # Non-finite values fall back to 0
            results.append(np.nan_to_num(series, nan=0.0, posinf=0.0, neginf=0.0))

    return results[graph.output].tolist()


class IndicatorEngine:
    """Evaluates custom indicators and memoizes the results.

    Results are cached by (indicator id, candle count). The cache does not
    look at candle contents or graph contents: a different candle array of
    the same length, or an edited graph that keeps its id, is served from
    the cache until ``clear_cache()`` or ``invalidate()`` is called.

    Each engine owns its cache. Workers create their own engine; an engine
    is not shared between threads.
    """

    def __init__(self):
        self._cache: dict[CacheKey, tuple[IndicatorValue, ...]] = {}
        self.hits = 0
        self.misses = 0

    def evaluate_indicator(
        self,
        indicator: CustomIndicator,
        candles: Sequence[Candle],
    ) -> list[IndicatorValue]:
        """
        Evaluate a custom indicator over candles.

        Args:
            indicator: Graph to evaluate
            candles: Candle series, ascending by timestamp

        Returns:
            One IndicatorValue per candle with the candle's timestamp
            (a new list on every call)

        Raises:
            GraphError: If the graph is malformed (nothing is cached)
        """
        key = (indicator.id, len(candles))
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug("Cache hit for %s (%d candles)", indicator.id, len(candles))
            return list(cached)

        self.misses += 1
        graph = compile_graph(indicator)
        values = evaluate_graph(graph, candles)

        result = tuple(
            IndicatorValue(timestamp=candle.timestamp, value=value)
            for candle, value in zip(candles, values)
        )
        self._cache[key] = result
        logger.debug(
            "Evaluated %s over %d candles (%d nodes)",
            indicator.id, len(candles), len(graph),
        )
        return list(result)

    def evaluate_batch(
        self,
        indicators: Sequence[CustomIndicator],
        candles: Sequence[Candle],
    ) -> list[tuple[str, list[IndicatorValue]]]:
        """Evaluate several indicators over the same candles, in order."""
        return [
            (indicator.id, self.evaluate_indicator(indicator, candles))
            for indicator in indicators
        ]

    def invalidate(self, indicator_id: str) -> int:
        """Drop every cached entry for one indicator. Returns entries removed."""
        stale = [key for key in self._cache if key[0] == indicator_id]
        for key in stale:
            del self._cache[key]
        return len(stale)

    def clear_cache(self) -> None:
        """Remove every cached result."""
        logger.debug("Clearing indicator cache (%d entries)", len(self._cache))
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)
