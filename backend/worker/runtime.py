"""Worker loop and the transports that host it.

The worker loop reads encoded requests from an inbox queue and writes
encoded responses to an outbox queue until it reads ``None``. It runs
either in a background thread (``queue.Queue``) or in a spawned process
(``multiprocessing`` queues); in both cases it builds its own handler and
engine, so nothing but bytes is shared with the caller.
"""

from __future__ import annotations

import logging
import multiprocessing
import queue
import threading
from typing import Protocol

from worker.handler import RequestHandler

logger = logging.getLogger(__name__)

# Sentinel that stops the worker loop
SHUTDOWN = None


def worker_main(inbox, outbox) -> None:
    """Worker loop: one response per request, until the shutdown sentinel."""
    handler = RequestHandler()
    logger.info("Worker loop started")

    while True:
        data = inbox.get()
        if data is SHUTDOWN:
            break
        outbox.put(handler.handle_bytes(data))

    logger.info(f"Worker loop stopped ({handler.handled} requests, {handler.failed} failed)")


class WorkerTransport(Protocol):
    """Byte channel to a running worker."""

    def start(self) -> None: ...

    def send(self, data: bytes) -> None: ...

    def receive(self, timeout: float) -> bytes | None:
        """Next response, or None if nothing arrived within *timeout*."""
        ...

    def is_alive(self) -> bool: ...

    def stop(self) -> None: ...


class ThreadTransport:
    """Worker loop in a daemon thread of this process."""

    def __init__(self, name: str = "analytics-worker"):
        self.name = name
        self._inbox: queue.Queue = queue.Queue()
        self._outbox: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self.is_alive():
            return
        self._thread = threading.Thread(
            target=worker_main,
            args=(self._inbox, self._outbox),
            name=self.name,
            daemon=True,
        )
        self._thread.start()

    def send(self, data: bytes) -> None:
        self._inbox.put(data)

    def receive(self, timeout: float) -> bytes | None:
        try:
            return self._outbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._inbox.put(SHUTDOWN)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(f"Worker thread {self.name} did not stop within {timeout}s")
        self._thread = None


class ProcessTransport:
    """Worker loop in a spawned child process."""

    def __init__(self, name: str = "analytics-worker"):
        self.name = name
        self._ctx = multiprocessing.get_context("spawn")
        self._inbox = self._ctx.Queue()
        self._outbox = self._ctx.Queue()
        self._process = None

    def start(self) -> None:
        if self.is_alive():
            return
        self._process = self._ctx.Process(
            target=worker_main,
            args=(self._inbox, self._outbox),
            name=self.name,
            daemon=True,
        )
        self._process.start()
        logger.info(f"Started worker process {self.name} (pid={self._process.pid})")

    def send(self, data: bytes) -> None:
        self._inbox.put(data)

    def receive(self, timeout: float) -> bytes | None:
        try:
            return self._outbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def is_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def stop(self, timeout: float = 5.0) -> None:
        if self._process is None:
            return
        if self._process.is_alive():
            self._inbox.put(SHUTDOWN)
            self._process.join(timeout)
        if self._process.is_alive():
            logger.warning(f"Worker process {self.name} did not stop, terminating")
            self._process.terminate()
            self._process.join(timeout)
        self._process = None


def create_transport(mode: str, name: str = "analytics-worker") -> WorkerTransport:
    """Build a transport for the configured worker mode.

    Raises:
        ValueError: If the mode is unknown.
    """
    if mode == "thread":
        return ThreadTransport(name)
    if mode == "process":
        return ProcessTransport(name)
    raise ValueError(f"Unknown worker mode '{mode}'. Available: process, thread")
