from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import DEFAULT_TENANT
from .storage import TENANT_ID_KEY, ConsoleStorage

_TENANT_ROUTE = re.compile(r"^/([^/]+)/admin(?:/(.*))?$")

LOGIN_PATH = "login"
FORGOT_PASSWORD_PATH = "forgot-password"
DASHBOARD_PATH = "dashboard"


@dataclass(frozen=True)
class TenantInfo:
    tenant_id: str
    source: str


def split_location(path: str) -> tuple[str | None, str]:
    """`/acme/admin/orders` -> ("acme", "orders"); `/orders` -> (None, "orders")."""
    clean = "/" + (path or "").split("?", 1)[0].split("#", 1)[0].strip("/")
    match = _TENANT_ROUTE.match(clean)
    if match:
        return match.group(1), (match.group(2) or "").strip("/")
    return None, clean.strip("/")


def tenant_path(path: str, tenant_id: str | None) -> str:
    clean = (path or "").strip("/")
    if tenant_id and tenant_id != DEFAULT_TENANT:
        return f"/{tenant_id}/admin/{clean}"
    return f"/{clean}"


class TenantResolver:
    """Works out which tenant a location belongs to. Never writes storage."""

    def __init__(self, storage: ConsoleStorage) -> None:
        self.storage = storage

    def stored_tenant(self) -> str | None:
        value = self.storage.get(TENANT_ID_KEY)
        return str(value) if value else None

    def resolve(self, path: str) -> TenantInfo:
        tenant_from_route, _ = split_location(path)
        if tenant_from_route:
            return TenantInfo(tenant_id=tenant_from_route, source="path")
        stored = self.stored_tenant()
        if stored:
            return TenantInfo(tenant_id=stored, source="storage")
        return TenantInfo(tenant_id=DEFAULT_TENANT, source="default")

    def tenant_path(self, path: str, tenant_id: str | None) -> str:
        return tenant_path(path, tenant_id)

    def login_path(self, tenant_id: str | None) -> str:
        return tenant_path(LOGIN_PATH, tenant_id)

    def forgot_password_path(self, tenant_id: str | None) -> str:
        return tenant_path(FORGOT_PASSWORD_PATH, tenant_id)

    def dashboard_path(self, tenant_id: str | None, home: str = DASHBOARD_PATH) -> str:
        return tenant_path(home, tenant_id)
