"""Caller-side worker errors."""


class WorkerError(Exception):
    """Base class for worker request failures."""

    def __init__(self, message: str, request_id: str | None = None):
        self.request_id = request_id
        super().__init__(message)


class WorkerTimeoutError(WorkerError):
    """No response arrived within the request timeout."""

    def __init__(self, request_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request {request_id} timed out after {timeout:g}s", request_id)


class WorkerCancelledError(WorkerError):
    """The caller cancelled the request before a response arrived."""

    def __init__(self, request_id: str):
        super().__init__(f"Request {request_id} was cancelled", request_id)


class WorkerTaskError(WorkerError):
    """The worker answered with an error response."""

    def __init__(self, request_id: str, error: str):
        self.error = error
        super().__init__(error, request_id)


class WorkerUnavailableError(WorkerError):
    """The worker is not running (never started, stopped or died)."""
