from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from ..models import Artisan, Seller
from .base import BaseClient

if TYPE_CHECKING:
    from ..app.session_store import SessionStore


class DirectoryApi(Protocol):
    def list_sellers(self) -> list[Seller]: ...

    def list_artisans(self) -> list[Artisan]: ...


def _items(data: dict[str, Any] | list[Any] | None, key: str) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for candidate in (key, "items", "data"):
            value = data.get(candidate)
            if isinstance(value, list):
                return value
    return []


class DirectoryClient(BaseClient):
    """Seller/artisan listings, authenticated with the current session."""

    def __init__(self, http, session_store: "SessionStore") -> None:
        super().__init__(http=http)
        self.session_store = session_store

    def _credentials(self) -> dict[str, str | None]:
        return {"token": self.session_store.token, "tenant_id": self.session_store.tenant_id}

    def list_sellers(self) -> list[Seller]:
        data = self._request("GET", "/admin/sellers", **self._credentials())
        return [self._parse(Seller, item) for item in _items(data, "sellers")]

    def list_artisans(self) -> list[Artisan]:
        data = self._request("GET", "/admin/artisans", **self._credentials())
        return [self._parse(Artisan, item) for item in _items(data, "artisans")]
