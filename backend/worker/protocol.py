"""Worker message protocol.

Request:  {"type": <task>, "id": <request id>, "payload": {...}}
Response: {"type": "result", "id": <request id>, "result": ...}
       |  {"type": "error",  "id": <request id>, "error": "<message>"}

Messages cross the worker boundary as orjson-encoded JSON bytes; field
names use the dashboard's camelCase spelling.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import orjson
from pydantic import BaseModel, Field, TypeAdapter, field_validator

from analytics.market import to_entries
from analytics.models import (
    Candle,
    CustomIndicator,
    IndicatorConfig,
    OrderBookEntry,
    PriceTick,
    WireModel,
)

# =============================================================================
# Payloads
# =============================================================================


class EvaluateIndicatorPayload(WireModel):
    indicator: CustomIndicator
    candles: list[Candle]


class CalculateVolumeProfilePayload(WireModel):
    candles: list[Candle]
    num_levels: int | None = Field(default=None, ge=1)  # None: configured default


class BatchEvaluatePayload(WireModel):
    indicators: list[CustomIndicator]
    candles: list[Candle]


class CalculateIndicatorPayload(WireModel):
    config: IndicatorConfig
    candles: list[Candle]


class CalculateOrderBookDepthPayload(WireModel):
    bids: list[OrderBookEntry] = Field(default_factory=list)
    asks: list[OrderBookEntry] = Field(default_factory=list)

    @field_validator("bids", "asks", mode="before")
    @classmethod
    def _accept_pairs(cls, value: Any) -> Any:
        # [[price, amount], ...] as sent by exchange snapshots
        if isinstance(value, list) and value and isinstance(value[0], (list, tuple)):
            return to_entries(value)
        return value


class AggregatePriceDataPayload(WireModel):
    prices: list[PriceTick]
    interval: float = Field(gt=0)


# =============================================================================
# Requests
# =============================================================================


class EvaluateIndicatorRequest(WireModel):
    type: Literal["evaluateIndicator"] = "evaluateIndicator"
    id: str
    payload: EvaluateIndicatorPayload


class CalculateVolumeProfileRequest(WireModel):
    type: Literal["calculateVolumeProfile"] = "calculateVolumeProfile"
    id: str
    payload: CalculateVolumeProfilePayload


class BatchEvaluateRequest(WireModel):
    type: Literal["batchEvaluate"] = "batchEvaluate"
    id: str
    payload: BatchEvaluatePayload


class ClearCacheRequest(WireModel):
    type: Literal["clearCache"] = "clearCache"
    id: str
    payload: dict[str, Any] | None = None


class CalculateIndicatorRequest(WireModel):
    type: Literal["calculateIndicator"] = "calculateIndicator"
    id: str
    payload: CalculateIndicatorPayload


class CalculateOrderBookDepthRequest(WireModel):
    type: Literal["calculateOrderBookDepth"] = "calculateOrderBookDepth"
    id: str
    payload: CalculateOrderBookDepthPayload


class AggregatePriceDataRequest(WireModel):
    type: Literal["aggregatePriceData"] = "aggregatePriceData"
    id: str
    payload: AggregatePriceDataPayload


WorkerRequest = Annotated[
    Union[
        EvaluateIndicatorRequest,
        CalculateVolumeProfileRequest,
        BatchEvaluateRequest,
        ClearCacheRequest,
        CalculateIndicatorRequest,
        CalculateOrderBookDepthRequest,
        AggregatePriceDataRequest,
    ],
    Field(discriminator="type"),
]

# Task type -> request model
REQUEST_TYPES: dict[str, type[WireModel]] = {
    "evaluateIndicator": EvaluateIndicatorRequest,
    "calculateVolumeProfile": CalculateVolumeProfileRequest,
    "batchEvaluate": BatchEvaluateRequest,
    "clearCache": ClearCacheRequest,
    "calculateIndicator": CalculateIndicatorRequest,
    "calculateOrderBookDepth": CalculateOrderBookDepthRequest,
    "aggregatePriceData": AggregatePriceDataRequest,
}

request_adapter: TypeAdapter[WorkerRequest] = TypeAdapter(WorkerRequest)


# =============================================================================
# Responses
# =============================================================================


class ResultResponse(WireModel):
    type: Literal["result"] = "result"
    id: str
    result: Any = None


class ErrorResponse(WireModel):
    type: Literal["error"] = "error"
    id: str
    error: str


WorkerResponse = Annotated[
    Union[ResultResponse, ErrorResponse],
    Field(discriminator="type"),
]

response_adapter: TypeAdapter[WorkerResponse] = TypeAdapter(WorkerResponse)


# =============================================================================
# Encoding
# =============================================================================


def encode(message: BaseModel) -> bytes:
    """Serialize a protocol message to JSON bytes (wire field names)."""
    return orjson.dumps(message.model_dump(mode="json", by_alias=True))


def build_request(task_type: str, request_id: str, payload: Any = None) -> WireModel:
    """Build a typed request model.

    Raises:
        ValueError: If the task type is unknown.
    """
    model = REQUEST_TYPES.get(task_type)
    if model is None:
        raise ValueError(f"Unknown task type: {task_type}")
    return model(id=request_id, payload=payload)


def decode_request(data: bytes | str | dict) -> WorkerRequest:
    """Parse and validate a request."""
    raw = orjson.loads(data) if isinstance(data, (bytes, str)) else data
    return request_adapter.validate_python(raw)


def decode_response(data: bytes | str) -> WorkerResponse:
    """Parse and validate a response."""
    return response_adapter.validate_python(orjson.loads(data))
