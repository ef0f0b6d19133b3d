"""In-process stand-in for the remote admin API.

Serves the demo tenants, users, sellers and artisans so the console can run
without a backend (``CONSOLE_USE_MOCK_DATA=true``). Tokens are opaque
``base64(user_id:timestamp)`` strings and the accepted second-factor code is
``123456``.
"""
from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from ..models import (
    Artisan,
    LoginResponse,
    Seller,
    SessionInfo,
    TenantConfig,
    TwoFactorResult,
    User,
)
from .auth_client import PASSWORD_RESET_MESSAGE
from .exceptions import ApiError, AuthError, NotFoundError

ACCEPTED_TWO_FACTOR_CODE = "123456"
SESSION_LIFETIME = timedelta(hours=24)

MOCK_TENANTS: dict[str, TenantConfig] = {
    "tenant1": TenantConfig(
        id="tenant1",
        name="Tenant 1 Store",
        subdomain="tenant1",
        logo_url="https://api.dicebear.com/7.x/shapes/svg?seed=tenant1",
        primary_color="340 75% 55%",
        secondary_color="142 30% 55%",
    ),
    "tenant2": TenantConfig(
        id="tenant2",
        name="Tenant 2 Shop",
        subdomain="tenant2",
        logo_url="https://api.dicebear.com/7.x/shapes/svg?seed=tenant2",
        primary_color="220 75% 55%",
        secondary_color="280 60% 55%",
    ),
    "default": TenantConfig(id="default", name="Home Decor Admin", subdomain="default"),
}

MOCK_SELLERS: list[Seller] = [
    Seller(id="SELLER-001", name="John's Crafts"),
    Seller(id="SELLER-002", name="Premium Pottery"),
    Seller(id="SELLER-003", name="Vintage Vault"),
]

MOCK_ARTISANS: list[Artisan] = [
    Artisan(id="ARTISAN-001", name="Alice Potter", seller_id="SELLER-001"),
    Artisan(id="ARTISAN-002", name="Bob Weaver", seller_id="SELLER-001"),
    Artisan(id="ARTISAN-003", name="Carol Smith", seller_id="SELLER-002"),
]


@dataclass(frozen=True)
class MockAccount:
    user: User
    password: str
    requires_two_factor: bool = False


MOCK_ACCOUNTS: list[MockAccount] = [
    MockAccount(
        user=User(
            id="1",
            email="admin@handmade.com",
            name="Platform Admin",
            role="super_admin",
            tenant_id="handmade-inc",
            avatar_url="https://api.dicebear.com/7.x/avataaars/svg?seed=admin",
        ),
        password="admin123",
    ),
    MockAccount(
        user=User(
            id="2",
            email="seller@johncrafts.com",
            name="John Williams",
            role="seller",
            tenant_id="handmade-inc",
            seller_id="SELLER-001",
            avatar_url="https://api.dicebear.com/7.x/avataaars/svg?seed=seller",
        ),
        password="seller123",
    ),
    MockAccount(
        user=User(
            id="3",
            email="artisan@alice.com",
            name="Alice Potter",
            role="artisan",
            tenant_id="handmade-inc",
            seller_id="SELLER-001",
            artisan_id="ARTISAN-001",
            avatar_url="https://api.dicebear.com/7.x/avataaars/svg?seed=artisan",
        ),
        password="artisan123",
    ),
    MockAccount(
        user=User(
            id="4",
            email="security@handmade.com",
            name="Security Officer",
            role="super_admin",
            tenant_id="handmade-inc",
        ),
        password="secure123",
        requires_two_factor=True,
    ),
]


class ActiveSessionStore(Protocol):
    def get(self, session_id: str) -> SessionInfo | None: ...

    def put(self, session: SessionInfo) -> None: ...

    def delete(self, session_id: str) -> None: ...


@dataclass
class InMemoryActiveSessionStore:
    _sessions: dict[str, SessionInfo] = field(default_factory=dict)

    def get(self, session_id: str) -> SessionInfo | None:
        return self._sessions.get(session_id)

    def put(self, session: SessionInfo) -> None:
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _auth_error(code: str, message: str) -> ApiError:
    return AuthError(code=code, message=message, details=None, trace_id=None, status_code=401)


class MockBackend:
    def __init__(
        self,
        accounts: list[MockAccount] | None = None,
        sessions: ActiveSessionStore | None = None,
        sellers: list[Seller] | None = None,
        artisans: list[Artisan] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.accounts = list(accounts if accounts is not None else MOCK_ACCOUNTS)
        self.sessions = sessions or InMemoryActiveSessionStore()
        self.sellers = list(sellers if sellers is not None else MOCK_SELLERS)
        self.artisans = list(artisans if artisans is not None else MOCK_ARTISANS)
        self.clock = clock
        self.password_reset_requests: list[str] = []
        self._last_logins: dict[str, datetime] = {}

    def _account_by_email(self, email: str) -> MockAccount | None:
        return next((item for item in self.accounts if item.user.email == email), None)

    def _account_by_id(self, user_id: str) -> MockAccount | None:
        return next((item for item in self.accounts if item.user.id == user_id), None)

    def login(self, email: str, password: str, tenant_id: str | None = None) -> LoginResponse:
        account = self._account_by_email(email)
        if account is None or account.password != password:
            raise _auth_error("INVALID_CREDENTIALS", "Invalid email or password")

        now = self.clock()
        token = base64.b64encode(f"{account.user.id}:{int(now.timestamp() * 1000)}".encode()).decode()
        session_id = f"session_{uuid.uuid4().hex}"
        self.sessions.put(
            SessionInfo(
                session_id=session_id,
                user_id=account.user.id,
                last_activity=now,
                expires_at=now + SESSION_LIFETIME,
            )
        )
        resolved_tenant = tenant_id or "default"
        self._last_logins[account.user.id] = now
        user = account.user.model_copy(update={"last_login": now, "tenant_id": resolved_tenant})
        return LoginResponse(
            user=user,
            token=token,
            requires_two_factor=account.requires_two_factor,
            session_id=session_id,
            tenant_config=MOCK_TENANTS.get(resolved_tenant),
        )

    def verify_two_factor(self, code: str, session_id: str) -> TwoFactorResult:
        if self.sessions.get(session_id) is None:
            raise NotFoundError(
                code="SESSION_NOT_FOUND",
                message="Unknown verification session",
                details=None,
                trace_id=None,
                status_code=404,
            )
        return TwoFactorResult(success=code == ACCEPTED_TWO_FACTOR_CODE)

    def me(self, token: str, tenant_id: str | None = None) -> User:
        try:
            user_id = base64.b64decode(token.encode(), validate=True).decode().split(":", 1)[0]
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise _auth_error("INVALID_TOKEN", "No authentication token") from exc
        account = self._account_by_id(user_id)
        if account is None:
            raise _auth_error("INVALID_TOKEN", "User not found")
        return account.user.model_copy(
            update={"last_login": self._last_logins.get(user_id), "tenant_id": tenant_id or "default"}
        )

    def logout(self, token: str | None, session_id: str | None = None) -> None:
        if session_id:
            self.sessions.delete(session_id)

    def request_password_reset(self, email: str) -> str:
        if self._account_by_email(email) is not None:
            self.password_reset_requests.append(email)
        return PASSWORD_RESET_MESSAGE

    def verify_session(self, session_id: str) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        now = self.clock()
        if now > session.expires_at:
            self.sessions.delete(session_id)
            return False
        self.sessions.put(session.model_copy(update={"last_activity": now}))
        return True

    def list_sellers(self) -> list[Seller]:
        return list(self.sellers)

    def list_artisans(self) -> list[Artisan]:
        return list(self.artisans)
