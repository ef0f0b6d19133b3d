from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class AuthError(ApiError):
    """Credentials rejected or session token no longer valid."""


class ForbiddenError(ApiError):
    """Authenticated, but the role or tenant does not allow the call."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class InvalidResponseError(ApiError):
    """2xx reply whose body does not match the expected shape."""
