from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Protocol

MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)


@dataclass(frozen=True)
class LoginAttemptRecord:
    count: int
    last_attempt: datetime
    locked_until: datetime | None = None


class LoginAttemptStore(Protocol):
    def get(self, email: str) -> LoginAttemptRecord | None: ...

    def increment(self, email: str, now: datetime) -> LoginAttemptRecord: ...

    def lock(self, email: str, until: datetime) -> LoginAttemptRecord: ...

    def reset(self, email: str) -> None: ...


@dataclass
class InMemoryLoginAttemptStore:
    _records: dict[str, LoginAttemptRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get(self, email: str) -> LoginAttemptRecord | None:
        with self._lock:
            return self._records.get(email)

    def increment(self, email: str, now: datetime) -> LoginAttemptRecord:
        with self._lock:
            current = self._records.get(email)
            count = current.count + 1 if current else 1
            record = LoginAttemptRecord(count=count, last_attempt=now)
            self._records[email] = record
            return record

    def lock(self, email: str, until: datetime) -> LoginAttemptRecord:
        with self._lock:
            current = self._records.get(email) or LoginAttemptRecord(count=0, last_attempt=until)
            record = replace(current, locked_until=until)
            self._records[email] = record
            return record

    def reset(self, email: str) -> None:
        with self._lock:
            self._records.pop(email, None)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LoginThrottle:
    """Consecutive-failure lockout keyed by email."""

    def __init__(
        self,
        store: LoginAttemptStore | None = None,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        lockout: timedelta = LOCKOUT_DURATION,
    ) -> None:
        self.store = store or InMemoryLoginAttemptStore()
        self.max_attempts = max_attempts
        self.lockout = lockout

    def remaining_lockout(self, email: str, now: datetime) -> timedelta | None:
        key = normalize_email(email)
        record = self.store.get(key)
        if record is None or record.locked_until is None:
            return None
        if record.locked_until > now:
            return record.locked_until - now
        # Lockout over: start counting from zero again.
        self.store.reset(key)
        return None

    def remaining_minutes(self, email: str, now: datetime) -> int | None:
        remaining = self.remaining_lockout(email, now)
        if remaining is None:
            return None
        return max(1, math.ceil(remaining.total_seconds() / 60))

    def register_failure(self, email: str, now: datetime) -> LoginAttemptRecord:
        key = normalize_email(email)
        record = self.store.increment(key, now)
        if record.count >= self.max_attempts:
            record = self.store.lock(key, now + self.lockout)
        return record

    def register_success(self, email: str) -> None:
        self.store.reset(normalize_email(email))
