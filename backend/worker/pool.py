"""Pool of analytics workers with least-busy dispatch.

Each worker has its own transport, handler and engine cache, so
``clear_cache`` is broadcast to every worker.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from worker.client import PendingRequest, WorkerClient, WorkerOperations
from worker.config import WorkerSettings, get_worker_settings
from worker.errors import WorkerUnavailableError
from worker.runtime import WorkerTransport, create_transport

logger = logging.getLogger(__name__)

MIN_POOL_SIZE = 1
MAX_POOL_SIZE = 8


@dataclass(slots=True)
class WorkerStatus:
    """Point-in-time status of one pooled worker."""

    worker_id: int
    available: bool
    busy: bool
    in_flight: int
    completed: int
    errors: int


class WorkerPool(WorkerOperations):
    """Fixed-size set of workers; each request goes to the least busy one."""

    def __init__(
        self,
        size: int | None = None,
        settings: WorkerSettings | None = None,
        transport_factory: Callable[[int], WorkerTransport] | None = None,
    ):
        self.settings = settings or get_worker_settings()
        requested = self.settings.pool_size if size is None else size
        self.size = max(MIN_POOL_SIZE, min(MAX_POOL_SIZE, requested))
        if self.size != requested:
            logger.warning(f"Pool size {requested} clamped to {self.size}")

        if transport_factory is None:
            def transport_factory(i: int) -> WorkerTransport:
                return create_transport(self.settings.mode, f"analytics-worker-{i}")

        self._clients = [
            WorkerClient(transport_factory(i), self.settings, name=f"analytics-worker-{i}")
            for i in range(self.size)
        ]

    async def start(self) -> None:
        await asyncio.gather(*(c.start() for c in self._clients))
        logger.info(f"Worker pool started ({self.size} workers, mode={self.settings.mode})")

    async def close(self) -> None:
        await asyncio.gather(*(c.close() for c in self._clients))
        logger.info("Worker pool closed")

    async def __aenter__(self) -> WorkerPool:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _pick(self) -> WorkerClient:
        available = [c for c in self._clients if c.is_available]
        if not available:
            raise WorkerUnavailableError("No worker in the pool is running")
        return min(available, key=lambda c: c.in_flight)

    def submit(self, task_type: str, payload: Any = None) -> PendingRequest:
        """Send a request to the least busy available worker."""
        return self._pick().submit(task_type, payload)

    async def request(self, task_type: str, payload: Any = None, timeout: float | None = None) -> Any:
        return await self.submit(task_type, payload).result(timeout)

    async def clear_cache(self, timeout: float | None = None) -> None:
        """Clear the engine cache of every available worker."""
        await asyncio.gather(
            *(c.clear_cache(timeout) for c in self._clients if c.is_available)
        )

    def status(self) -> list[WorkerStatus]:
        return [
            WorkerStatus(
                worker_id=i,
                available=c.is_available,
                busy=c.in_flight > 0,
                in_flight=c.in_flight,
                completed=c.completed,
                errors=c.errors,
            )
            for i, c in enumerate(self._clients)
        ]
