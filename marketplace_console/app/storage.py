from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Protocol

from platformdirs import user_data_dir

from ..models import PersistenceMode

AUTH_TOKEN_KEY = "auth_token"
SESSION_ID_KEY = "session_id"
TENANT_ID_KEY = "tenant_id"
SELLER_ID_KEY = "current_seller_id"
ARTISAN_ID_KEY = "current_artisan_id"
LOGIN_ACTIVITIES_KEY = "login_activities"

SESSION_KEYS = (AUTH_TOKEN_KEY, SESSION_ID_KEY, TENANT_ID_KEY)
SCOPE_KEYS = (SELLER_ID_KEY, ARTISAN_ID_KEY)

APP_NAME = "marketplace-console"


class StorageScope(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


@dataclass
class EphemeralStorage:
    """Lives as long as the console process."""

    _values: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)


def default_storage_path(data_dir: str | None = None, filename: str = "storage.json") -> Path:
    base = Path(data_dir) if data_dir else Path(user_data_dir(APP_NAME, "Marketplace"))
    return base / filename


@dataclass
class DurableStorage:
    """JSON file that survives console restarts."""

    path: Path

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            self._write({})
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            pass

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return list(self._read())


@dataclass
class ConsoleStorage:
    durable: StorageScope
    ephemeral: StorageScope

    def scope(self, mode: PersistenceMode) -> StorageScope:
        if mode is PersistenceMode.DURABLE:
            return self.durable
        return self.ephemeral

    def lookup(self, key: str) -> tuple[Any, PersistenceMode] | None:
        """Durable scope wins, mirroring localStorage || sessionStorage."""
        value = self.durable.get(key)
        if value is not None:
            return value, PersistenceMode.DURABLE
        value = self.ephemeral.get(key)
        if value is not None:
            return value, PersistenceMode.EPHEMERAL
        return None

    def get(self, key: str) -> Any | None:
        found = self.lookup(key)
        return found[0] if found else None

    def put(self, key: str, value: Any, mode: PersistenceMode) -> None:
        """Write to one scope and drop the key from the other."""
        target = self.scope(mode)
        other = self.ephemeral if target is self.durable else self.durable
        other.remove(key)
        target.set(key, value)

    def remove_everywhere(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.durable.remove(key)
            self.ephemeral.remove(key)


def build_storage(data_dir: str | None = None) -> ConsoleStorage:
    return ConsoleStorage(durable=DurableStorage(default_storage_path(data_dir)), ephemeral=EphemeralStorage())
