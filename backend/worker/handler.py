"""Worker-side request handling.

The handler owns the worker's IndicatorEngine (and its cache). Every
failure while handling a request, including undecodable input, becomes an
error response; the worker loop never stops because of a bad request.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson

from analytics.config import AnalyticsSettings, get_analytics_settings
from analytics.engine import IndicatorEngine
from analytics.indicators import calculate_indicator
from analytics.market import (
    aggregate_price_data,
    calculate_order_book_depth,
    calculate_volume_profile,
    compute_quick_trade_recommendation,
)

from worker.protocol import (
    REQUEST_TYPES,
    AggregatePriceDataRequest,
    BatchEvaluateRequest,
    CalculateIndicatorRequest,
    CalculateOrderBookDepthRequest,
    CalculateVolumeProfileRequest,
    ClearCacheRequest,
    ErrorResponse,
    EvaluateIndicatorRequest,
    ResultResponse,
    WorkerRequest,
    decode_request,
    encode,
)

logger = logging.getLogger(__name__)


def _request_id(raw: Any) -> str:
    """Best-effort request id from an undecoded message ("" if absent)."""
    if isinstance(raw, dict):
        value = raw.get("id")
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
    return ""


class RequestHandler:
    """Dispatch protocol requests to the analytics core."""

    def __init__(
        self,
        engine: IndicatorEngine | None = None,
        settings: AnalyticsSettings | None = None,
    ):
        self.engine = engine or IndicatorEngine()
        self.settings = settings or get_analytics_settings()
        self.handled = 0
        self.failed = 0

    def handle_bytes(self, data: bytes | str) -> bytes:
        """Handle one encoded request and return the encoded response."""
        return encode(self.handle(data))

    def handle(self, data: bytes | str | dict) -> ResultResponse | ErrorResponse:
        """Handle one request; never raises."""
        self.handled += 1
        request_id = ""
        try:
            raw = orjson.loads(data) if isinstance(data, (bytes, str)) else data
            request_id = _request_id(raw)

            task_type = raw.get("type") if isinstance(raw, dict) else None
            if task_type not in REQUEST_TYPES:
                raise ValueError(f"Unknown task type: {task_type}")

            request = decode_request(raw)
            return ResultResponse(id=request.id, result=self.dispatch(request))
        except Exception as e:
            self.failed += 1
            logger.warning(f"Request {request_id or '<unknown>'} failed: {e}")
            return ErrorResponse(id=request_id, error=str(e) or type(e).__name__)

    def dispatch(self, request: WorkerRequest) -> Any:
        """Run a validated request; returns a JSON-ready result."""
        match request:
            case EvaluateIndicatorRequest(payload=payload):
                values = self.engine.evaluate_indicator(payload.indicator, payload.candles)
                return [v.to_wire() for v in values]

            case CalculateVolumeProfileRequest(payload=payload):
                profile = calculate_volume_profile(
                    payload.candles,
                    num_levels=payload.num_levels or self.settings.profile_levels,
                    value_area_pct=self.settings.value_area_pct,
                    band_multiplier=self.settings.vwap_band_multiplier,
                )
                return profile.to_wire()

            case BatchEvaluateRequest(payload=payload):
                return [
                    {"indicatorId": indicator_id, "values": [v.to_wire() for v in values]}
                    for indicator_id, values in self.engine.evaluate_batch(
                        payload.indicators, payload.candles
                    )
                ]

            case ClearCacheRequest():
                self.engine.clear_cache()
                return None

            case CalculateIndicatorRequest(payload=payload):
                return calculate_indicator(payload.config, payload.candles)

            case CalculateOrderBookDepthRequest(payload=payload):
                depth = calculate_order_book_depth(payload.bids, payload.asks)
                return {
                    "depth": depth.to_wire(),
                    "recommendation": compute_quick_trade_recommendation(depth).to_wire(),
                }

            case AggregatePriceDataRequest(payload=payload):
                candles = aggregate_price_data(payload.prices, payload.interval)
                return [c.to_wire() for c in candles]

        raise ValueError(f"Unknown task type: {request.type}")
