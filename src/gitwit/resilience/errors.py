"""Error taxonomy shared by the retry and circuit breaker layers."""

from typing import Optional

# Statuses that signal a transient downstream condition worth retrying.
RETRYABLE_STATUS = 429
RETRYABLE_STATUS_RANGE = range(500, 600)


class ServiceError(Exception):
    """Error raised by an AI provider adapter, optionally carrying an HTTP status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CircuitOpenError(Exception):
    """Raised when a call is rejected because its circuit breaker is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker '{name}' is OPEN. "
            f"Service is currently unavailable, retry in {retry_after:.0f}s"
        )


class NoProviderAvailableError(Exception):
    """Raised when every provider in a fallback chain was disabled or short-circuited."""
    pass


def get_status(error: BaseException) -> Optional[int]:
    """Return the HTTP-like status carried by an error, if any.

    Looks at ``status`` first and falls back to ``status_code``, which is what
    most Python HTTP and SDK clients expose. Booleans and non-integers are
    treated as no status at all.
    """
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def is_retryable(error: BaseException) -> bool:
    """Whether an error is transient (429 or 5xx). Errors without a status are fatal."""
    status = get_status(error)
    if status is None:
        return False
    return status == RETRYABLE_STATUS or status in RETRYABLE_STATUS_RANGE
