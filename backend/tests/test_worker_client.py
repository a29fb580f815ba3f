"""Tests for the asyncio worker client, pool and indicator service."""

import asyncio
import queue

import pytest

from analytics.engine import IndicatorEngine
from analytics.models import Candle, CustomIndicator, IndicatorConfig, IndicatorNode, PriceTick
from worker import (
    IndicatorService,
    ProcessTransport,
    ThreadTransport,
    WorkerCancelledError,
    WorkerClient,
    WorkerPool,
    WorkerTaskError,
    WorkerTimeoutError,
    WorkerUnavailableError,
)
from worker.config import WorkerSettings
from worker.handler import RequestHandler

SETTINGS = WorkerSettings(poll_interval=0.01, request_timeout=5.0)


class FakeTransport:
    """In-memory transport; with ``hold`` responses wait for ``release()``."""

    def __init__(self, hold: bool = False):
        self.handler = RequestHandler()
        self.hold = hold
        self.sent: list[bytes] = []
        self.held: list[bytes] = []
        self._outbox: queue.Queue = queue.Queue()
        self._alive = False

    def start(self) -> None:
        self._alive = True

    def send(self, data: bytes) -> None:
        self.sent.append(data)
        response = self.handler.handle_bytes(data)
        if self.hold:
            self.held.append(response)
        else:
            self._outbox.put(response)

    def release(self, reverse: bool = False) -> None:
        held, self.held = self.held, []
        for response in reversed(held) if reverse else held:
            self._outbox.put(response)

    def receive(self, timeout: float) -> bytes | None:
        try:
            return self._outbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def is_alive(self) -> bool:
        return self._alive

    def stop(self) -> None:
        self._alive = False

    def crash(self) -> None:
        self._alive = False


def _make_candles(count: int = 4) -> list[Candle]:
    return [
        Candle(
            timestamp=1_700_000_000_000 + i * 60_000,
            open=100 + i,
            high=101 + i,
            low=99 + i,
            close=100 + i,
            volume=10 + i,
        )
        for i in range(count)
    ]


def _constant_indicator(indicator_id: str, value: float) -> CustomIndicator:
    return CustomIndicator(
        id=indicator_id,
        name=indicator_id,
        nodes=[IndicatorNode(id="k", type="constant", value=value)],
        output_node_id="k",
    )


def _evaluate_payload(indicator: CustomIndicator) -> dict:
    return {"indicator": indicator, "candles": _make_candles()}


# ---------------------------------------------------------------------------
# WorkerClient
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestWorkerClient:
    """Tests for request correlation, timeouts and cancellation."""

    async def test_evaluate_indicator(self):
        """Test evaluating an indicator through the client."""
        async with WorkerClient(FakeTransport(), SETTINGS) as client:
            values = await client.evaluate_indicator(_constant_indicator("a", 3), _make_candles())

        assert [v.value for v in values] == [3.0] * 4
        assert values[0].timestamp == 1_700_000_000_000

    async def test_non_finite_constant_round_trip(self):
        """Test a non-finite constant comes back as valid zero values."""
        indicator = CustomIndicator(
            id="inf",
            name="inf",
            nodes=[IndicatorNode(id="k", type="constant", value="inf")],
            output_node_id="k",
        )
        async with WorkerClient(FakeTransport(), SETTINGS) as client:
            values = await client.evaluate_indicator(indicator, _make_candles())

        assert [v.value for v in values] == [0.0] * 4

    async def test_out_of_order_responses(self):
        """Test responses are matched by id in any order."""
        transport = FakeTransport(hold=True)
        async with WorkerClient(transport, SETTINGS) as client:
            first = client.submit("evaluateIndicator", _evaluate_payload(_constant_indicator("a", 1)))
            second = client.submit("evaluateIndicator", _evaluate_payload(_constant_indicator("b", 2)))
            assert client.in_flight == 2

            transport.release(reverse=True)
            second_result = await second.result(timeout=2)
            first_result = await first.result(timeout=2)

        assert first.id != second.id
        assert first.id.startswith("evaluateIndicator-")
        assert first_result[0]["value"] == 1.0
        assert second_result[0]["value"] == 2.0

    async def test_timeout_then_late_response_discarded(self):
        """Test a timed out request ignores its late response."""
        transport = FakeTransport(hold=True)
        async with WorkerClient(transport, SETTINGS) as client:
            pending = client.submit("clearCache")
            with pytest.raises(WorkerTimeoutError) as exc_info:
                await pending.result(timeout=0.05)

            assert exc_info.value.request_id == pending.id
            assert client.in_flight == 0

            transport.release()
            await asyncio.sleep(0.2)
            assert client.completed == 0

            # The client keeps serving new requests
            transport.hold = False
            await client.clear_cache(timeout=2)
            assert client.completed == 1

    async def test_cancel(self):
        """Test cancelling a pending request."""
        transport = FakeTransport(hold=True)
        async with WorkerClient(transport, SETTINGS) as client:
            pending = client.submit("clearCache")

            assert pending.cancel() is True
            assert pending.cancel() is False
            with pytest.raises(WorkerCancelledError):
                await pending.result()

            transport.release()
            await asyncio.sleep(0.1)
            assert client.in_flight == 0
            assert client.completed == 0

    async def test_error_response(self):
        """Test error responses raise WorkerTaskError."""
        bad = CustomIndicator(id="bad", name="bad", nodes=[], output_node_id="missing")
        async with WorkerClient(FakeTransport(), SETTINGS) as client:
            with pytest.raises(WorkerTaskError, match="Node missing not found"):
                await client.evaluate_indicator(bad, _make_candles())
            assert client.errors == 1

    async def test_unknown_task_type(self):
        """Test unknown task types fail before sending."""
        async with WorkerClient(FakeTransport(), SETTINGS) as client:
            with pytest.raises(ValueError, match="Unknown task type"):
                client.submit("explode")
            assert client.in_flight == 0

    async def test_not_started(self):
        """Test submitting before start."""
        client = WorkerClient(FakeTransport(), SETTINGS)
        assert not client.is_available
        with pytest.raises(WorkerUnavailableError):
            client.submit("clearCache")

    async def test_dead_worker_fails_pending(self):
        """Test a dead worker fails pending requests."""
        transport = FakeTransport(hold=True)
        client = WorkerClient(transport, SETTINGS)
        await client.start()
        try:
            pending = client.submit("clearCache")
            transport.crash()

            with pytest.raises(WorkerUnavailableError):
                await pending.result(timeout=2)

            assert not client.is_available
            with pytest.raises(WorkerUnavailableError):
                client.submit("clearCache")
        finally:
            await client.close()

    async def test_close_fails_pending(self):
        """Test close fails pending requests."""
        client = WorkerClient(FakeTransport(hold=True), SETTINGS)
        await client.start()
        pending = client.submit("clearCache")

        await client.close()

        with pytest.raises(WorkerUnavailableError):
            await pending.result(timeout=1)

    async def test_typed_operations_on_thread_worker(self):
        """Test every typed operation on a thread worker."""
        candles = _make_candles()
        async with WorkerClient(ThreadTransport("client-test"), SETTINGS) as client:
            depth, recommendation = await client.calculate_order_book_depth(
                [[100, 5], [99, 3]], [[101, 4], [102, 2]]
            )
            profile = await client.calculate_volume_profile(candles, num_levels=4)
            series = await client.calculate_indicator(
                IndicatorConfig(id="sma", type="SMA", params={"period": 2}), candles
            )
            aggregated = await client.aggregate_price_data(
                [PriceTick(timestamp=0, price=1), PriceTick(timestamp=61, price=2)], 60
            )
            batch = await client.batch_evaluate(
                [_constant_indicator("a", 1), _constant_indicator("b", 2)], candles
            )
            await client.clear_cache()

        assert depth.mid_price == pytest.approx(100.5)
        assert recommendation.bias == "buy"
        assert len(profile.levels) == 4
        assert series["value"][1] == pytest.approx(100.5)
        assert [c.timestamp for c in aggregated] == [0, 60]
        assert [indicator_id for indicator_id, _ in batch] == ["a", "b"]
        assert batch[1][1][0].value == 2.0

    async def test_process_worker_round_trip(self):
        """Test a round trip through a worker process."""
        async with WorkerClient(ProcessTransport("process-test"), SETTINGS) as client:
            values = await client.evaluate_indicator(
                _constant_indicator("p", 5), _make_candles(), timeout=30
            )
        assert [v.value for v in values] == [5.0] * 4


# ---------------------------------------------------------------------------
# WorkerPool
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestWorkerPool:
    """Tests for pool sizing and dispatch."""

    async def test_size_clamped(self):
        """Test pool size is clamped to 1..8."""
        assert WorkerPool(size=20, settings=SETTINGS, transport_factory=lambda i: FakeTransport()).size == 8
        assert WorkerPool(size=0, settings=SETTINGS, transport_factory=lambda i: FakeTransport()).size == 1

    async def test_least_busy_dispatch(self):
        """Test requests go to the least busy worker."""
        transports: list[FakeTransport] = []

        def factory(i: int) -> FakeTransport:
            transport = FakeTransport(hold=True)
            transports.append(transport)
            return transport

        async with WorkerPool(size=2, settings=SETTINGS, transport_factory=factory) as pool:
            first = pool.submit("clearCache")
            second = pool.submit("clearCache")

            assert [len(t.sent) for t in transports] == [1, 1]
            status = pool.status()
            assert [s.in_flight for s in status] == [1, 1]
            assert all(s.busy and s.available for s in status)

            for transport in transports:
                transport.release()
            await first.result(timeout=2)
            await second.result(timeout=2)

            assert [s.completed for s in pool.status()] == [1, 1]

    async def test_clear_cache_broadcast(self):
        """Test clear_cache reaches every worker."""
        transports: list[FakeTransport] = []

        def factory(i: int) -> FakeTransport:
            transports.append(FakeTransport())
            return transports[-1]

        async with WorkerPool(size=3, settings=SETTINGS, transport_factory=factory) as pool:
            await pool.clear_cache(timeout=2)

        assert all(len(t.sent) == 1 and b"clearCache" in t.sent[0] for t in transports)

    async def test_skips_dead_workers(self):
        """Test dead workers are skipped."""
        transports: list[FakeTransport] = []

        def factory(i: int) -> FakeTransport:
            transports.append(FakeTransport())
            return transports[-1]

        async with WorkerPool(size=2, settings=SETTINGS, transport_factory=factory) as pool:
            transports[0].crash()
            values = await pool.evaluate_indicator(_constant_indicator("a", 1), _make_candles(), timeout=2)

            assert len(values) == 4
            assert transports[1].sent
            assert [s.available for s in pool.status()] == [False, True]

    async def test_not_started(self):
        """Test submitting before start."""
        pool = WorkerPool(size=2, settings=SETTINGS, transport_factory=lambda i: FakeTransport())
        with pytest.raises(WorkerUnavailableError):
            pool.submit("clearCache")


# ---------------------------------------------------------------------------
# IndicatorService
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestIndicatorService:
    """Tests for worker-first evaluation with in-process fallback."""

    async def test_no_worker_computes_locally(self):
        """Test evaluation without a worker."""
        service = IndicatorService()
        values = await service.evaluate_indicator(_constant_indicator("a", 4), _make_candles())
        assert [v.value for v in values] == [4.0] * 4
        assert service.engine.cache_size == 1

    async def test_falls_back_when_unavailable(self):
        """Test fallback when the worker is unavailable."""
        engine = IndicatorEngine()
        service = IndicatorService(WorkerClient(FakeTransport(), SETTINGS), engine)

        values = await service.evaluate_indicator(_constant_indicator("a", 4), _make_candles())
        profile = await service.calculate_volume_profile(_make_candles(), num_levels=3)
        batch = await service.batch_evaluate([_constant_indicator("b", 1)], _make_candles())

        assert [v.value for v in values] == [4.0] * 4
        assert len(profile.levels) == 3
        assert batch[0][0] == "b"
        assert service.fallbacks == 3

    async def test_uses_worker_when_available(self):
        """Test the worker is used when available."""
        transport = FakeTransport()
        async with WorkerClient(transport, SETTINGS) as client:
            service = IndicatorService(client)
            values = await service.evaluate_indicator(_constant_indicator("a", 4), _make_candles())

        assert len(values) == 4
        assert service.fallbacks == 0
        assert service.engine.cache_size == 0
        assert transport.handler.engine.cache_size == 1

    async def test_task_errors_propagate(self):
        """Test task errors are not retried locally."""
        bad = CustomIndicator(id="bad", name="bad", nodes=[], output_node_id="missing")
        async with WorkerClient(FakeTransport(), SETTINGS) as client:
            service = IndicatorService(client)
            with pytest.raises(WorkerTaskError):
                await service.evaluate_indicator(bad, _make_candles())
        assert service.fallbacks == 0

    async def test_clear_cache(self):
        """Test clear_cache clears both caches."""
        transport = FakeTransport()
        async with WorkerClient(transport, SETTINGS) as client:
            service = IndicatorService(client)
            await service.evaluate_indicator(_constant_indicator("a", 4), _make_candles())
            service.engine.evaluate_indicator(_constant_indicator("b", 1), _make_candles())

            await service.clear_cache()

        assert service.engine.cache_size == 0
        assert transport.handler.engine.cache_size == 0
