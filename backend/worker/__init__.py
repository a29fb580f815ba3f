"""Background analytics worker.

Public API:
- WorkerClient: asyncio client for one worker (thread or process)
- WorkerPool: several workers behind least-busy dispatch
- IndicatorService: worker first, in-process fallback
- RequestHandler / worker_main: the worker side
"""

from worker.client import PendingRequest, WorkerClient, WorkerOperations
from worker.errors import (
    WorkerCancelledError,
    WorkerError,
    WorkerTaskError,
    WorkerTimeoutError,
    WorkerUnavailableError,
)
from worker.handler import RequestHandler
from worker.pool import WorkerPool, WorkerStatus
from worker.runtime import ProcessTransport, ThreadTransport, WorkerTransport, worker_main
from worker.service import IndicatorService

__all__ = [
    "PendingRequest",
    "WorkerClient",
    "WorkerOperations",
    "WorkerPool",
    "WorkerStatus",
    "IndicatorService",
    "RequestHandler",
    "worker_main",
    "WorkerTransport",
    "ThreadTransport",
    "ProcessTransport",
    "WorkerError",
    "WorkerCancelledError",
    "WorkerTaskError",
    "WorkerTimeoutError",
    "WorkerUnavailableError",
]
