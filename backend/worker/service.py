"""Indicator service that prefers the worker and falls back to in-process work.

Only an unavailable worker triggers the fallback. Timeouts, cancellations
and error responses propagate to the caller: a malformed graph fails the
same way in-process.
"""

from __future__ import annotations

import logging
from typing import Sequence

from analytics.config import get_analytics_settings
from analytics.engine import IndicatorEngine
from analytics.market import calculate_volume_profile
from analytics.models import Candle, CustomIndicator, IndicatorValue, VolumeProfileData

from worker.client import WorkerOperations
from worker.errors import WorkerUnavailableError

logger = logging.getLogger(__name__)


class IndicatorService:
    """Evaluate indicators on a worker (client or pool) when one is usable."""

    def __init__(
        self,
        worker: WorkerOperations | None = None,
        engine: IndicatorEngine | None = None,
    ):
        self.worker = worker
        # Local engine used only for fallback evaluation
        self.engine = engine or IndicatorEngine()
        self.fallbacks = 0

    def _fall_back(self, operation: str, error: WorkerUnavailableError) -> None:
        self.fallbacks += 1
        logger.warning(f"Worker unavailable for {operation} ({error}), computing in-process")

    async def evaluate_indicator(
        self,
        indicator: CustomIndicator,
        candles: Sequence[Candle],
    ) -> list[IndicatorValue]:
        if self.worker is not None:
            try:
                return await self.worker.evaluate_indicator(indicator, candles)
            except WorkerUnavailableError as e:
                self._fall_back("evaluateIndicator", e)
        return self.engine.evaluate_indicator(indicator, candles)

    async def batch_evaluate(
        self,
        indicators: Sequence[CustomIndicator],
        candles: Sequence[Candle],
    ) -> list[tuple[str, list[IndicatorValue]]]:
        if self.worker is not None:
            try:
                return await self.worker.batch_evaluate(indicators, candles)
            except WorkerUnavailableError as e:
                self._fall_back("batchEvaluate", e)
        return self.engine.evaluate_batch(indicators, candles)

    async def calculate_volume_profile(
        self,
        candles: Sequence[Candle],
        num_levels: int | None = None,
    ) -> VolumeProfileData:
        if self.worker is not None:
            try:
                return await self.worker.calculate_volume_profile(candles, num_levels)
            except WorkerUnavailableError as e:
                self._fall_back("calculateVolumeProfile", e)

        settings = get_analytics_settings()
        return calculate_volume_profile(
            candles,
            num_levels=num_levels or settings.profile_levels,
            value_area_pct=settings.value_area_pct,
            band_multiplier=settings.vwap_band_multiplier,
        )

    async def clear_cache(self) -> None:
        """Clear the local engine and, when reachable, the worker cache."""
        self.engine.clear_cache()
        if self.worker is not None:
            try:
                await self.worker.clear_cache()
            except WorkerUnavailableError as e:
                logger.debug(f"Worker cache not cleared: {e}")
