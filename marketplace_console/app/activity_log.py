from __future__ import annotations

import platform
from datetime import datetime

from pydantic import ValidationError

from ..infrastructure.logger import get_logger
from ..models import LoginActivity, PersistenceMode
from .storage import LOGIN_ACTIVITIES_KEY, ConsoleStorage

logger = get_logger(__name__)

ACTIVITY_LOG_LIMIT = 50


def device_info() -> str:
    return platform.platform() or "unknown"


class LoginActivityLog:
    """Newest-first record of login attempts kept in durable storage."""

    def __init__(self, storage: ConsoleStorage, limit: int = ACTIVITY_LOG_LIMIT) -> None:
        self.storage = storage
        self.limit = limit

    def entries(self) -> list[LoginActivity]:
        raw = self.storage.durable.get(LOGIN_ACTIVITIES_KEY) or []
        entries: list[LoginActivity] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                entries.append(LoginActivity.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed login activity entry")
        return entries

    def record(self, *, success: bool, now: datetime, failure_reason: str | None = None) -> LoginActivity:
        entry = LoginActivity(
            timestamp=now,
            device_info=device_info(),
            success=success,
            failure_reason=failure_reason,
        )
        entries = [entry, *self.entries()][: self.limit]
        self.storage.put(
            LOGIN_ACTIVITIES_KEY,
            [item.model_dump(mode="json", by_alias=True) for item in entries],
            PersistenceMode.DURABLE,
        )
        return entry
