from __future__ import annotations

from typing import Protocol

from ..models import LoginResponse, TwoFactorResult, User
from .base import BaseClient
from .exceptions import AuthError, ForbiddenError, NotFoundError, ValidationError

PASSWORD_RESET_MESSAGE = "If an account exists, a reset link has been sent to your email."


class AuthApi(Protocol):
    """Remote authentication endpoints the session layer consumes."""

    def login(self, email: str, password: str, tenant_id: str | None = None) -> LoginResponse: ...

    def verify_two_factor(self, code: str, session_id: str) -> TwoFactorResult: ...

    def me(self, token: str, tenant_id: str | None = None) -> User: ...

    def logout(self, token: str | None, session_id: str | None = None) -> None: ...

    def request_password_reset(self, email: str) -> str: ...

    def verify_session(self, session_id: str) -> bool: ...


class AuthClient(BaseClient):
    def login(self, email: str, password: str, tenant_id: str | None = None) -> LoginResponse:
        payload = {"email": email, "password": password}
        data = self._request(
            "POST", "/admin/login", tenant_id=tenant_id, json_body=payload, notify_auth_errors=False
        )
        return self._parse(LoginResponse, data)

    def verify_two_factor(self, code: str, session_id: str) -> TwoFactorResult:
        payload = {"code": code, "sessionId": session_id}
        data = self._request("POST", "/admin/verify-2fa", json_body=payload, notify_auth_errors=False)
        return self._parse(TwoFactorResult, data)

    def me(self, token: str, tenant_id: str | None = None) -> User:
        data = self._request("GET", "/admin/me", token=token, tenant_id=tenant_id, notify_auth_errors=False)
        return self._parse(User, data)

    def logout(self, token: str | None, session_id: str | None = None) -> None:
        payload = {"sessionId": session_id} if session_id else None
        self._request("POST", "/admin/logout", token=token, json_body=payload, notify_auth_errors=False)

    def request_password_reset(self, email: str) -> str:
        data = self._request(
            "POST", "/admin/password-reset", json_body={"email": email}, notify_auth_errors=False
        )
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return PASSWORD_RESET_MESSAGE

    def verify_session(self, session_id: str) -> bool:
        try:
            data = self._request(
                "POST", "/admin/verify-session", json_body={"sessionId": session_id}, notify_auth_errors=False
            )
        except (AuthError, ForbiddenError, NotFoundError, ValidationError):
            return False
        if isinstance(data, dict) and "valid" in data:
            return bool(data["valid"])
        return True
