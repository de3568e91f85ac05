from imbue.poll_until.primitives import format_milliseconds


class PollUntilError(Exception):
    """Base exception for all poll_until errors."""


class PollTimeoutError(PollUntilError, TimeoutError):
    """Raised when a poll does not succeed before its timeout elapses."""

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Operation did not complete within timeout limit of {format_milliseconds(timeout_ms)}ms")
