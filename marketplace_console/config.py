from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ConsoleConfig:
    api_base_url: str = ""
    use_mock_data: bool = True
    timeout_seconds: float = 30.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    verify_ssl: bool = True
    session_timeout_minutes: int = 30
    session_warning_minutes: int = 5
    idle_check_seconds: float = 60.0
    max_login_attempts: int = 5
    lockout_minutes: int = 15
    two_factor_max_attempts: int = 0
    activity_log_limit: int = 50
    data_dir: str | None = None

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(minutes=self.session_timeout_minutes)

    @property
    def warning_threshold(self) -> timedelta:
        return timedelta(minutes=self.session_timeout_minutes - self.session_warning_minutes)

    @property
    def lockout_duration(self) -> timedelta:
        return timedelta(minutes=self.lockout_minutes)


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ConsoleConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    use_mock_data = _coerce_bool(os.getenv("CONSOLE_USE_MOCK_DATA"), True)
    api_base_url = (os.getenv("CONSOLE_API_BASE_URL") or "").strip()
    _validate(
        use_mock_data or bool(api_base_url),
        "Missing required config values: CONSOLE_API_BASE_URL",
    )

    timeout_seconds = _read_float("CONSOLE_TIMEOUT_SECONDS", "30")
    _validate(timeout_seconds > 0, f"Invalid CONSOLE_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")

    retries = _read_int("CONSOLE_RETRIES", "3")
    _validate(retries >= 0, f"Invalid CONSOLE_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("CONSOLE_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid CONSOLE_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    session_timeout_minutes = _read_int("CONSOLE_SESSION_TIMEOUT_MINUTES", "30")
    _validate(
        session_timeout_minutes > 0,
        f"Invalid CONSOLE_SESSION_TIMEOUT_MINUTES: expected > 0, got {session_timeout_minutes}",
    )

    session_warning_minutes = _read_int("CONSOLE_SESSION_WARNING_MINUTES", "5")
    _validate(
        0 <= session_warning_minutes < session_timeout_minutes,
        (
            "Invalid CONSOLE_SESSION_WARNING_MINUTES: "
            f"expected between 0 and the session timeout, got {session_warning_minutes}"
        ),
    )

    idle_check_seconds = _read_float("CONSOLE_IDLE_CHECK_SECONDS", "60")
    _validate(idle_check_seconds > 0, f"Invalid CONSOLE_IDLE_CHECK_SECONDS: expected > 0, got {idle_check_seconds}")

    max_login_attempts = _read_int("CONSOLE_MAX_LOGIN_ATTEMPTS", "5")
    _validate(max_login_attempts >= 1, f"Invalid CONSOLE_MAX_LOGIN_ATTEMPTS: expected >= 1, got {max_login_attempts}")

    lockout_minutes = _read_int("CONSOLE_LOCKOUT_MINUTES", "15")
    _validate(lockout_minutes > 0, f"Invalid CONSOLE_LOCKOUT_MINUTES: expected > 0, got {lockout_minutes}")

    two_factor_max_attempts = _read_int("CONSOLE_TWO_FACTOR_MAX_ATTEMPTS", "0")
    _validate(
        two_factor_max_attempts >= 0,
        f"Invalid CONSOLE_TWO_FACTOR_MAX_ATTEMPTS: expected >= 0, got {two_factor_max_attempts}",
    )

    activity_log_limit = _read_int("CONSOLE_ACTIVITY_LOG_LIMIT", "50")
    _validate(activity_log_limit >= 1, f"Invalid CONSOLE_ACTIVITY_LOG_LIMIT: expected >= 1, got {activity_log_limit}")

    return ConsoleConfig(
        api_base_url=api_base_url.rstrip("/"),
        use_mock_data=use_mock_data,
        timeout_seconds=timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        verify_ssl=_coerce_bool(os.getenv("CONSOLE_VERIFY_SSL"), True),
        session_timeout_minutes=session_timeout_minutes,
        session_warning_minutes=session_warning_minutes,
        idle_check_seconds=idle_check_seconds,
        max_login_attempts=max_login_attempts,
        lockout_minutes=lockout_minutes,
        two_factor_max_attempts=two_factor_max_attempts,
        activity_log_limit=activity_log_limit,
        data_dir=(os.getenv("CONSOLE_DATA_DIR") or "").strip() or None,
    )
