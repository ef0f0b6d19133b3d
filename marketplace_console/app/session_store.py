from __future__ import annotations

import threading
from datetime import datetime, timedelta

from ..models import PersistenceMode, Session, User
from .storage import (
    AUTH_TOKEN_KEY,
    SCOPE_KEYS,
    SESSION_ID_KEY,
    SESSION_KEYS,
    TENANT_ID_KEY,
    ConsoleStorage,
)

SESSION_HORIZON = timedelta(hours=24)


class SessionStore:
    """Process-wide record of the credential, its persistence mode and the loaded user.

    The token, session id and tenant id always live in exactly one storage
    scope, the one chosen at login.
    """

    def __init__(self, storage: ConsoleStorage) -> None:
        self.storage = storage
        self._lock = threading.RLock()
        self._session: Session | None = None
        self._user: User | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def token(self) -> str | None:
        if self._session is not None:
            return self._session.token
        value = self.storage.get(AUTH_TOKEN_KEY)
        return str(value) if value else None

    @property
    def tenant_id(self) -> str | None:
        value = self.storage.get(TENANT_ID_KEY)
        return str(value) if value else None

    @property
    def session_id(self) -> str | None:
        if self._session is not None and self._session.session_id:
            return self._session.session_id
        value = self.storage.get(SESSION_ID_KEY)
        return str(value) if value else None

    def stored_credential(self) -> tuple[str, PersistenceMode] | None:
        found = self.storage.lookup(AUTH_TOKEN_KEY)
        if found is None:
            return None
        value, mode = found
        return str(value), mode

    def save(
        self,
        *,
        token: str,
        mode: PersistenceMode,
        tenant_id: str,
        session_id: str | None,
        now: datetime,
    ) -> Session:
        with self._lock:
            self.storage.put(AUTH_TOKEN_KEY, token, mode)
            self.storage.put(TENANT_ID_KEY, tenant_id, mode)
            if session_id:
                self.storage.put(SESSION_ID_KEY, session_id, mode)
            else:
                self.storage.remove_everywhere([SESSION_ID_KEY])
            self._session = Session(
                token=token,
                mode=mode,
                session_id=session_id,
                last_activity=now,
                expires_at=now + SESSION_HORIZON,
            )
            return self._session

    def load(self, user: User, *, token: str, mode: PersistenceMode, now: datetime) -> Session:
        """Attach a user restored from a stored token."""
        with self._lock:
            self._user = user
            self._session = Session(
                token=token,
                mode=mode,
                session_id=self.session_id,
                last_activity=now,
                expires_at=now + SESSION_HORIZON,
            )
            return self._session

    def set_user(self, user: User | None) -> None:
        with self._lock:
            self._user = user

    def touch(self, now: datetime) -> None:
        with self._lock:
            if self._session is not None:
                self._session = self._session.model_copy(update={"last_activity": now})

    def clear(self) -> None:
        """Remove every session artifact from both scopes and from memory."""
        with self._lock:
            self.storage.remove_everywhere(SESSION_KEYS + SCOPE_KEYS)
            self._session = None
            self._user = None
