"""Asyncio client for an analytics worker.

Requests are correlated with responses by id, so responses may arrive in
any order. A request that times out or is cancelled is forgotten; if its
response shows up later it is discarded.

Usage:
    async with WorkerClient() as client:
        values = await client.evaluate_indicator(indicator, candles)

        pending = client.submit("calculateVolumeProfile", {"candles": candles})
        pending.cancel()
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Sequence
from uuid import uuid4

import orjson
from pydantic import TypeAdapter, ValidationError

from analytics.models import (
    Candle,
    CustomIndicator,
    IndicatorConfig,
    IndicatorValue,
    OrderBookDepthData,
    PriceTick,
    QuickTradeRecommendation,
    VolumeProfileData,
)

from worker.config import WorkerSettings, get_worker_settings
from worker.errors import (
    WorkerCancelledError,
    WorkerTaskError,
    WorkerTimeoutError,
    WorkerUnavailableError,
)
from worker.protocol import ErrorResponse, build_request, decode_response, encode
from worker.runtime import WorkerTransport, create_transport

logger = logging.getLogger(__name__)

_values_adapter = TypeAdapter(list[IndicatorValue])
_candles_adapter = TypeAdapter(list[Candle])


def _mark_retrieved(future: asyncio.Future) -> None:
    # Cancelled or timed-out requests may never be awaited
    if not future.cancelled():
        future.exception()


class PendingRequest:
    """Handle for an in-flight request."""

    def __init__(self, client: WorkerClient, request_id: str, future: asyncio.Future):
        self._client = client
        self._future = future
        self.id = request_id

    def cancel(self) -> bool:
        """Cancel the request. Returns False if it already completed."""
        return self._client._cancel(self.id)

    def done(self) -> bool:
        return self._future.done()

    async def result(self, timeout: float | None = None) -> Any:
        """Wait for the raw result.

        Raises:
            WorkerTimeoutError: No response within *timeout* (default from settings).
            WorkerCancelledError: The request was cancelled.
            WorkerTaskError: The worker returned an error response.
            WorkerUnavailableError: The worker stopped before responding.
        """
        return await self._client._wait(self, timeout)


class WorkerOperations:
    """Typed task methods on top of ``request()``."""

    async def request(self, task_type: str, payload: Any = None, timeout: float | None = None) -> Any:
        raise NotImplementedError

    async def evaluate_indicator(
        self,
        indicator: CustomIndicator,
        candles: Sequence[Candle],
        timeout: float | None = None,
    ) -> list[IndicatorValue]:
        result = await self.request(
            "evaluateIndicator",
            {"indicator": indicator, "candles": list(candles)},
            timeout,
        )
        return _values_adapter.validate_python(result)

    async def calculate_volume_profile(
        self,
        candles: Sequence[Candle],
        num_levels: int | None = None,
        timeout: float | None = None,
    ) -> VolumeProfileData:
        result = await self.request(
            "calculateVolumeProfile",
            {"candles": list(candles), "num_levels": num_levels},
            timeout,
        )
        return VolumeProfileData.model_validate(result)

    async def batch_evaluate(
        self,
        indicators: Sequence[CustomIndicator],
        candles: Sequence[Candle],
        timeout: float | None = None,
    ) -> list[tuple[str, list[IndicatorValue]]]:
        result = await self.request(
            "batchEvaluate",
            {"indicators": list(indicators), "candles": list(candles)},
            timeout,
        )
        return [
            (item["indicatorId"], _values_adapter.validate_python(item["values"]))
            for item in result
        ]

    async def clear_cache(self, timeout: float | None = None) -> None:
        await self.request("clearCache", None, timeout)

    async def calculate_indicator(
        self,
        config: IndicatorConfig,
        candles: Sequence[Candle],
        timeout: float | None = None,
    ) -> dict[str, list[float | None]]:
        return await self.request(
            "calculateIndicator",
            {"config": config, "candles": list(candles)},
            timeout,
        )

    async def calculate_order_book_depth(
        self,
        bids: Sequence[Any],
        asks: Sequence[Any],
        timeout: float | None = None,
    ) -> tuple[OrderBookDepthData, QuickTradeRecommendation]:
        result = await self.request(
            "calculateOrderBookDepth",
            {"bids": list(bids), "asks": list(asks)},
            timeout,
        )
        return (
            OrderBookDepthData.model_validate(result["depth"]),
            QuickTradeRecommendation.model_validate(result["recommendation"]),
        )

    async def aggregate_price_data(
        self,
        prices: Sequence[PriceTick],
        interval: float,
        timeout: float | None = None,
    ) -> list[Candle]:
        result = await self.request(
            "aggregatePriceData",
            {"prices": list(prices), "interval": interval},
            timeout,
        )
        return _candles_adapter.validate_python(result)


class WorkerClient(WorkerOperations):
    """Client side of one worker.

    A daemon reader thread polls the transport and hands responses to the
    event loop; all future bookkeeping happens on the loop thread.
    """

    def __init__(
        self,
        transport: WorkerTransport | None = None,
        settings: WorkerSettings | None = None,
        name: str = "analytics-worker",
    ):
        self.settings = settings or get_worker_settings()
        self.name = name
        self._transport = transport or create_transport(self.settings.mode, name)
        self._pending: dict[str, asyncio.Future] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reader: threading.Thread | None = None
        self._running = False
        self.completed = 0
        self.errors = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the worker and the response reader."""
        if self._running:
            return
        self._loop = asyncio.get_running_loop()
        await asyncio.to_thread(self._transport.start)
        self._running = True
        self._reader = threading.Thread(
            target=self._read_loop,
            name=f"{self.name}-reader",
            daemon=True,
        )
        self._reader.start()
        logger.info(f"Worker client {self.name} started")

    async def close(self) -> None:
        """Stop the worker; requests still pending fail as unavailable."""
        if self._loop is None:
            return
        self._running = False
        await asyncio.to_thread(self._transport.stop)
        if self._reader is not None:
            await asyncio.to_thread(self._reader.join, self.settings.poll_interval * 10)
            self._reader = None
        self._fail_pending(f"Worker {self.name} closed")
        self._loop = None
        logger.info(
            f"Worker client {self.name} closed "
            f"(completed={self.completed}, errors={self.errors})"
        )

    async def __aenter__(self) -> WorkerClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def is_available(self) -> bool:
        return self._running and self._transport.is_alive()

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def submit(self, task_type: str, payload: Any = None) -> PendingRequest:
        """Send a request without waiting for it.

        Raises:
            WorkerUnavailableError: If the worker is not running.
            ValueError: If the task type is unknown or the payload is invalid.
        """
        if not self.is_available:
            raise WorkerUnavailableError(f"Worker {self.name} is not running")

        request_id = f"{task_type}-{uuid4().hex}"
        data = encode(build_request(task_type, request_id, payload))

        future = self._loop.create_future()
        future.add_done_callback(_mark_retrieved)
        self._pending[request_id] = future
        self._transport.send(data)
        logger.debug(f"Sent {request_id}")
        return PendingRequest(self, request_id, future)

    async def request(self, task_type: str, payload: Any = None, timeout: float | None = None) -> Any:
        """Send a request and wait for its result."""
        return await self.submit(task_type, payload).result(timeout)

    async def _wait(self, pending: PendingRequest, timeout: float | None) -> Any:
        timeout = self.settings.request_timeout if timeout is None else timeout
        future = pending._future
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout)
        except asyncio.TimeoutError:
            self._forget(pending.id)
            raise WorkerTimeoutError(pending.id, timeout) from None
        except asyncio.CancelledError:
            # The awaiting task was cancelled, not the request
            self._forget(pending.id)
            raise

    def _cancel(self, request_id: str) -> bool:
        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            return False
        future.set_exception(WorkerCancelledError(request_id))
        logger.debug(f"Cancelled {request_id}")
        return True

    def _forget(self, request_id: str) -> None:
        future = self._pending.pop(request_id, None)
        if future is not None and not future.done():
            future.cancel()

    # -------------------------------------------------------------------------
    # Responses
    # -------------------------------------------------------------------------

    def _read_loop(self) -> None:
        """Reader thread: forward responses to the loop, watch for worker death."""
        while self._running:
            data = self._transport.receive(self.settings.poll_interval)
            if data is None:
                if self._running and not self._transport.is_alive():
                    logger.error(f"Worker {self.name} died")
                    self._running = False
                    self._post(self._fail_pending, f"Worker {self.name} stopped unexpectedly")
                    return
                continue
            self._post(self._on_response, data)

    def _post(self, callback, *args) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Event loop already closed
            self._running = False

    def _on_response(self, data: bytes) -> None:
        try:
            response = decode_response(data)
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.error(f"Malformed response from worker {self.name}: {e}")
            return

        future = self._pending.pop(response.id, None)
        if future is None:
            logger.debug(f"Discarding late response for {response.id or '<unknown>'}")
            return

        if isinstance(response, ErrorResponse):
            self.errors += 1
            future.set_exception(WorkerTaskError(response.id, response.error))
        else:
            self.completed += 1
            future.set_result(response.result)

    def _fail_pending(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for request_id, future in pending.items():
            if not future.done():
                future.set_exception(WorkerUnavailableError(reason, request_id))
