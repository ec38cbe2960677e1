"""Errors raised by the Takaro API client."""

from __future__ import annotations

import httpx


class TakaroClientError(Exception):
    """A failed Takaro API call.

    Attributes:
        status_code: HTTP status of the response, None for transport failures
        retry_after: Seconds the server asked us to wait, if any
    """

    def __init__(self, message: str, status_code: int | None = None, retry_after: float | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        """Transport failures, 429 and 5xx may succeed on a later attempt."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    def __repr__(self) -> str:
        return f"TakaroClientError({self.message!r}, status_code={self.status_code})"


def is_retryable(error: BaseException) -> bool:
    """Classify an exception raised while talking to Takaro."""
    if isinstance(error, TakaroClientError):
        return error.retryable
    if isinstance(error, httpx.HTTPStatusError):
        return TakaroClientError("", error.response.status_code).retryable
    return isinstance(error, httpx.TransportError)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0)
