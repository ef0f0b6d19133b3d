from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ConsoleError(Exception):
    message: str
    trace_id: str | None = None

    code = "CONSOLE_ERROR"

    def __str__(self) -> str:
        return self.message


class AuthenticationError(ConsoleError):
    """Bad credentials; the operator may retry."""

    code = "AUTHENTICATION_FAILED"


@dataclass
class ThrottledError(ConsoleError):
    """Lockout active for the email; recoverable after the cooldown."""

    remaining_minutes: int | None = None

    code = "LOGIN_THROTTLED"


class TwoFactorError(ConsoleError):
    code = "TWO_FACTOR_FAILED"


@dataclass
class SessionExpiredError(ConsoleError):
    """Idle timeout or failed revalidation. Not recoverable in place."""

    reason: str = "idle_timeout"

    code = "SESSION_EXPIRED"


class NetworkError(ConsoleError):
    code = "NETWORK_ERROR"


def display_message(error: Exception) -> str:
    if isinstance(error, ConsoleError):
        trace = f" (trace_id={error.trace_id})" if error.trace_id else ""
        return f"[{error.code}] {error.message}{trace}"
    return f"[INTERNAL_ERROR] {error}"


__all__ = [
    "AuthenticationError",
    "ConsoleError",
    "NetworkError",
    "SessionExpiredError",
    "ThrottledError",
    "TwoFactorError",
    "display_message",
]
