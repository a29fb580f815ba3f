"""Indicator registry for dispatching configured indicators by type.

Usage:
    @register_indicator(IndicatorType.SMA, lookback=lambda p: p["period"])
    def _sma(candles, params):
        return {"value": sma(closes(candles), params["period"])}

    series = calculate_indicator(config, candles)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from analytics.indicators._common import Series
from analytics.models.candle import Candle
from analytics.models.config import DEFAULT_INDICATOR_PARAMS, IndicatorConfig, IndicatorType

logger = logging.getLogger(__name__)

IndicatorFunction = Callable[[Sequence[Candle], dict[str, float]], dict[str, Series]]
Lookback = Callable[[dict[str, float]], float]


@dataclass(frozen=True, slots=True)
class RegisteredIndicator:
    """A registry entry: the adapter and its minimum history length."""

    indicator_type: IndicatorType
    function: IndicatorFunction
    lookback: Lookback

    def required_length(self, params: dict[str, float]) -> int:
        """Candles needed before the latest value is defined."""
        return int(self.lookback(params))


# Global registry: indicator type -> entry
_REGISTRY: dict[IndicatorType, RegisteredIndicator] = {}


def register_indicator(
    indicator_type: IndicatorType,
    lookback: Lookback = lambda params: 1,
):
    """Decorator to register an adapter for an indicator type.

    Args:
        indicator_type: Library indicator the adapter computes.
        lookback: Minimum candle count for a defined latest value, given
            the resolved parameters.

    Raises:
        ValueError: If the type is already registered.
    """

    def decorator(func: IndicatorFunction) -> IndicatorFunction:
        if indicator_type in _REGISTRY:
            raise ValueError(
                f"Indicator '{indicator_type.value}' is already registered by "
                f"{_REGISTRY[indicator_type].function.__name__}"
            )
        _REGISTRY[indicator_type] = RegisteredIndicator(indicator_type, func, lookback)
        logger.debug("Registered indicator: %s -> %s", indicator_type.value, func.__name__)
        return func

    return decorator


def get_indicator(indicator_type: IndicatorType | str) -> RegisteredIndicator:
    """Look up a registry entry.

    Raises:
        KeyError: If no adapter is registered for the type.
    """
    try:
        key = IndicatorType(indicator_type)
    except ValueError:
        key = None
    entry = _REGISTRY.get(key) if key is not None else None
    if entry is None:
        available = ", ".join(sorted(t.value for t in _REGISTRY)) or "(none)"
        name = getattr(indicator_type, "value", indicator_type)
        raise KeyError(f"Unknown indicator '{name}'. Available: {available}")
    return entry


def list_indicators() -> list[str]:
    """Return a sorted list of registered indicator type names."""
    return sorted(t.value for t in _REGISTRY)


def resolve_params(config: IndicatorConfig) -> dict[str, float]:
    """Merge defaults with the configured params.

    Raises:
        ValueError: If the config names a parameter the indicator does not take.
    """
    expected = DEFAULT_INDICATOR_PARAMS[config.type]
    unknown = sorted(set(config.params) - set(expected))
    if unknown:
        raise ValueError(
            f"Unknown parameter(s) for {config.type.value}: {', '.join(unknown)}. "
            f"Expected: {', '.join(expected) or '(none)'}"
        )
    return config.resolved_params()


def calculate_indicator(
    config: IndicatorConfig,
    candles: Sequence[Candle],
) -> dict[str, Series]:
    """Calculate one configured indicator.

    Returns:
        Series name -> values aligned with *candles* (``{"value": [...]}``
        for single-line indicators).
    """
    entry = get_indicator(config.type)
    return entry.function(candles, resolve_params(config))


class IndicatorCalculator:
    """Calculator for a set of configured indicators.

    Disabled configs are skipped. Results are keyed by config id.
    """

    def __init__(self, configs: Sequence[IndicatorConfig]):
        self.configs = [c for c in configs if c.enabled]
        # Validate up front so a bad preset fails before any candles arrive
        self._params = {c.id: resolve_params(c) for c in self.configs}
        self._entries = {c.id: get_indicator(c.type) for c in self.configs}

    @property
    def required_length(self) -> int:
        """Candles needed before every latest value is defined."""
        return max(
            (self._entries[c.id].required_length(self._params[c.id]) for c in self.configs),
            default=1,
        )

    def calculate_all(self, candles: Sequence[Candle]) -> dict[str, dict[str, Series]]:
        """
        Calculate every enabled indicator over the candles.

        Returns:
            Config id -> series name -> aligned values
        """
        return {
            c.id: self._entries[c.id].function(candles, self._params[c.id])
            for c in self.configs
        }

    def calculate_latest(
        self,
        candles: Sequence[Candle],
    ) -> dict[str, dict[str, float | None]] | None:
        """
        Calculate indicator values for the latest candle only.

        Returns:
            Config id -> series name -> latest value, or None if not enough data
        """
        if not candles or len(candles) < self.required_length:
            return None

        all_indicators = self.calculate_all(candles)
        return {
            config_id: {name: values[-1] for name, values in series.items()}
            for config_id, series in all_indicators.items()
        }
