"""Session lifecycle for the operator console.

States::

    ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED | PENDING_TWO_FACTOR
    PENDING_TWO_FACTOR -> AUTHENTICATED
    AUTHENTICATED <-> EXPIRING -> LOGGED_OUT -> ANONYMOUS

Every remote failure is converted into the console error taxonomy in
:mod:`marketplace_console.errors`; transport exceptions never escape.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from ..clients.auth_client import PASSWORD_RESET_MESSAGE, AuthApi
from ..clients.exceptions import (
    ApiError,
    InvalidResponseError,
    RateLimitError,
    ServerError,
    TransportError,
)
from ..config import ConsoleConfig
from ..errors import (
    AuthenticationError,
    NetworkError,
    SessionExpiredError,
    ThrottledError,
    TwoFactorError,
)
from ..infrastructure.logger import get_logger, log_action
from ..models import DEFAULT_TENANT, PersistenceMode, TenantConfig, User
from .activity_log import LoginActivityLog
from .login_attempts import LoginThrottle
from .navigation import Navigator
from .scheduler import Scheduler, ThreadingScheduler, TimerHandle
from .session_store import SessionStore
from .tenant import TenantResolver
from .theme import TenantTheme

logger = get_logger(__name__)

_TWO_FACTOR_CODE = re.compile(r"^\d{6}$")

UserListener = Callable[["User | None"], None]
WarningListener = Callable[[timedelta], None]


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    PENDING_TWO_FACTOR = "pending_two_factor"
    AUTHENTICATED = "authenticated"
    EXPIRING = "expiring"
    LOGGED_OUT = "logged_out"


class ActivitySignal(str, Enum):
    POINTER_DOWN = "pointerdown"
    KEY_DOWN = "keydown"
    SCROLL = "scroll"
    TOUCH_START = "touchstart"


ACTIVE_STATES = frozenset({SessionStatus.AUTHENTICATED, SessionStatus.EXPIRING})

# Failures that say nothing about the credentials.
UNREACHABLE_ERRORS = (TransportError, ServerError, InvalidResponseError)


@dataclass(frozen=True)
class LoginOutcome:
    user: User
    tenant_id: str
    requires_two_factor: bool = False
    session_id: str | None = None


@dataclass
class PendingChallenge:
    email: str
    session_id: str
    user: User
    token: str | None
    remember_me: bool
    tenant_id: str | None
    tenant_config: TenantConfig | None
    attempts: int = 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _network_error(exc: ApiError) -> NetworkError:
    return NetworkError(message="Unable to reach the server. Please try again.", trace_id=exc.trace_id)


class SessionManager:
    def __init__(
        self,
        auth_api: AuthApi,
        store: SessionStore,
        resolver: TenantResolver,
        *,
        config: ConsoleConfig | None = None,
        throttle: LoginThrottle | None = None,
        activity_log: LoginActivityLog | None = None,
        navigator: Navigator | None = None,
        theme: TenantTheme | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config or ConsoleConfig()
        self.auth_api = auth_api
        self.store = store
        self.resolver = resolver
        self.throttle = throttle or LoginThrottle(
            max_attempts=self.config.max_login_attempts,
            lockout=self.config.lockout_duration,
        )
        self.activity_log = activity_log or LoginActivityLog(store.storage, self.config.activity_log_limit)
        self.navigator = navigator or Navigator()
        self.theme = theme or TenantTheme()
        self.scheduler = scheduler or ThreadingScheduler()
        self.clock = clock

        self._lock = threading.RLock()
        self._status = SessionStatus.ANONYMOUS
        self._loading = False
        self._pending: PendingChallenge | None = None
        self._tenant_config: TenantConfig | None = None
        self._last_activity: datetime | None = None
        self._warned = False
        self._timer: TimerHandle | None = None
        self._listeners: list[UserListener] = []
        self._warning_listeners: list[WarningListener] = []
        self.last_expiry: SessionExpiredError | None = None

    # -- read-only state ------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def user(self) -> User | None:
        return self.store.user

    @property
    def is_authenticated(self) -> bool:
        return self._status in ACTIVE_STATES and self.store.user is not None

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def tenant_config(self) -> TenantConfig | None:
        return self._tenant_config

    @property
    def pending_challenge(self) -> PendingChallenge | None:
        return self._pending

    @property
    def last_activity(self) -> datetime | None:
        return self._last_activity

    # -- listeners ------------------------------------------------------

    def subscribe(self, listener: UserListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_expiry_warning(self, listener: WarningListener) -> None:
        self._warning_listeners.append(listener)

    def _notify(self, user: User | None) -> None:
        for listener in list(self._listeners):
            listener(user)

    def _log(self, action: str, outcome: str, *, trace_id: str | None = None, level: int | None = None) -> None:
        user = self.store.user
        kwargs = {"level": level} if level is not None else {}
        log_action(
            logger,
            module="session",
            action=action,
            actor_role=user.role if user else None,
            tenant_id=self.store.tenant_id,
            trace_id=trace_id,
            outcome=outcome,
            **kwargs,
        )

    # -- login ----------------------------------------------------------

    def login(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
        tenant_id: str | None = None,
    ) -> LoginOutcome:
        now = self.clock()
        remaining = self.throttle.remaining_minutes(email, now)
        if remaining is not None:
            self._log("login", "throttled")
            raise ThrottledError(
                message=f"Too many failed login attempts. Please try again in {remaining} minutes.",
                remaining_minutes=remaining,
            )

        with self._lock:
            previous = self._status
            self._status = SessionStatus.AUTHENTICATING

        try:
            response = self.auth_api.login(email, password, tenant_id)
        except UNREACHABLE_ERRORS as exc:
            self._restore_status(previous)
            self._log("login", "network_error", trace_id=exc.trace_id)
            raise _network_error(exc) from exc
        except RateLimitError as exc:
            self._restore_status(previous)
            self._log("login", "rate_limited", trace_id=exc.trace_id)
            raise ThrottledError(message=exc.message, trace_id=exc.trace_id) from exc
        except ApiError as exc:
            self._restore_status(previous)
            raise self._login_failed(email, exc) from exc

        self.throttle.register_success(email)

        if response.requires_two_factor:
            if not response.session_id:
                self._restore_status(previous)
                raise AuthenticationError(message="Two-factor verification could not be started.")
            with self._lock:
                self._pending = PendingChallenge(
                    email=email,
                    session_id=response.session_id,
                    user=response.user,
                    token=response.token,
                    remember_me=remember_me,
                    tenant_id=tenant_id,
                    tenant_config=response.tenant_config,
                )
                self._status = SessionStatus.PENDING_TWO_FACTOR
            self._log("login", "two_factor_required")
            return LoginOutcome(
                user=response.user,
                tenant_id=self._pick_tenant(response.tenant_config, tenant_id, response.user),
                requires_two_factor=True,
                session_id=response.session_id,
            )

        if not response.token:
            self._restore_status(previous)
            raise AuthenticationError(message="The server did not return a session token.")

        resolved = self._establish(
            user=response.user,
            token=response.token,
            remember_me=remember_me,
            session_id=response.session_id,
            tenant_id=tenant_id,
            tenant_config=response.tenant_config,
        )
        return LoginOutcome(user=response.user, tenant_id=resolved, session_id=response.session_id)

    def _restore_status(self, previous: SessionStatus) -> None:
        with self._lock:
            self._status = previous if previous is not SessionStatus.AUTHENTICATING else SessionStatus.ANONYMOUS

    def _login_failed(self, email: str, exc: ApiError) -> AuthenticationError | ThrottledError:
        now = self.clock()
        record = self.throttle.register_failure(email, now)
        self.activity_log.record(success=False, now=now, failure_reason=exc.message)
        if record.locked_until is not None:
            minutes = self.throttle.remaining_minutes(email, now)
            self._log("login", "locked_out", trace_id=exc.trace_id)
            return ThrottledError(
                message=f"Too many failed login attempts. Please try again in {minutes} minutes.",
                trace_id=exc.trace_id,
                remaining_minutes=minutes,
            )
        self._log("login", "invalid_credentials", trace_id=exc.trace_id)
        return AuthenticationError(message="Invalid email or password", trace_id=exc.trace_id)

    @staticmethod
    def _pick_tenant(config: TenantConfig | None, requested: str | None, user: User) -> str:
        if config is not None and config.id:
            return config.id
        return requested or user.tenant_id or DEFAULT_TENANT

    def _establish(
        self,
        *,
        user: User,
        token: str,
        remember_me: bool,
        session_id: str | None,
        tenant_id: str | None,
        tenant_config: TenantConfig | None,
    ) -> str:
        now = self.clock()
        resolved = self._pick_tenant(tenant_config, tenant_id, user)
        mode = PersistenceMode.DURABLE if remember_me else PersistenceMode.EPHEMERAL
        with self._lock:
            self.store.save(token=token, mode=mode, tenant_id=resolved, session_id=session_id, now=now)
            self.store.set_user(user)
            self._tenant_config = tenant_config
            self.theme.apply(tenant_config)
            self._pending = None
            self._last_activity = now
            self._warned = False
            self.last_expiry = None
            self._status = SessionStatus.AUTHENTICATED
            self._start_idle_monitor()
        self.activity_log.record(success=True, now=now)
        self._log("login", "success")
        self._notify(user)
        return resolved

    # -- two factor -----------------------------------------------------

    def verify_two_factor(self, code: str, pending_session_id: str | None = None) -> LoginOutcome:
        pending = self._pending
        if pending is None or self._status is not SessionStatus.PENDING_TWO_FACTOR:
            raise TwoFactorError(message="No verification is pending. Please sign in again.")
        if pending_session_id and pending_session_id != pending.session_id:
            raise TwoFactorError(message="This verification session is no longer valid.")
        if not _TWO_FACTOR_CODE.match((code or "").strip()):
            raise TwoFactorError(message="Enter the 6-digit verification code.")

        try:
            result = self.auth_api.verify_two_factor(code.strip(), pending.session_id)
        except UNREACHABLE_ERRORS as exc:
            self._log("verify_two_factor", "network_error", trace_id=exc.trace_id)
            raise _network_error(exc) from exc
        except ApiError as exc:
            self._log("verify_two_factor", "rejected", trace_id=exc.trace_id)
            self._two_factor_failed(pending)
            raise TwoFactorError(message="Invalid verification code", trace_id=exc.trace_id) from exc

        if not result.success:
            self._log("verify_two_factor", "invalid_code")
            self._two_factor_failed(pending)
            raise TwoFactorError(message="Invalid verification code")

        token = result.token or pending.token
        if not token:
            raise TwoFactorError(message="The server did not return a session token.")
        resolved = self._establish(
            user=pending.user,
            token=token,
            remember_me=pending.remember_me,
            session_id=pending.session_id,
            tenant_id=pending.tenant_id,
            tenant_config=pending.tenant_config,
        )
        return LoginOutcome(user=pending.user, tenant_id=resolved, session_id=pending.session_id)

    def _two_factor_failed(self, pending: PendingChallenge) -> None:
        pending.attempts += 1
        cap = self.config.two_factor_max_attempts
        if cap and pending.attempts >= cap:
            with self._lock:
                self._pending = None
                self._status = SessionStatus.ANONYMOUS
            self._log("verify_two_factor", "attempts_exhausted")
            raise ThrottledError(message="Too many invalid verification codes. Please sign in again.")

    # -- idle tracking --------------------------------------------------

    def record_activity(self, signal: ActivitySignal = ActivitySignal.POINTER_DOWN) -> None:
        with self._lock:
            if self._status not in ACTIVE_STATES:
                return
            now = self.clock()
            self._last_activity = now
            self._warned = False
            self._status = SessionStatus.AUTHENTICATED
            self.store.touch(now)

    def idle_for(self) -> timedelta:
        if self._last_activity is None:
            return timedelta(0)
        return self.clock() - self._last_activity

    def check_idle(self) -> SessionStatus:
        """Timer callback: warn near the timeout, expire at it."""
        warn_with: timedelta | None = None
        expire_reason: str | None = None
        with self._lock:
            if self._status not in ACTIVE_STATES or self._last_activity is None:
                return self._status
            now = self.clock()
            idle = now - self._last_activity
            session = self.store.session
            if session is not None and now >= session.expires_at:
                expire_reason = "session_expired"
            elif idle >= self.config.session_timeout:
                expire_reason = "idle_timeout"
            elif idle >= self.config.warning_threshold:
                self._status = SessionStatus.EXPIRING
                if not self._warned:
                    self._warned = True
                    warn_with = self.config.session_timeout - idle

        if expire_reason:
            self.expire(expire_reason)
        elif warn_with is not None:
            self._log("idle_warning", "expiring")
            for listener in list(self._warning_listeners):
                listener(warn_with)
        return self._status

    def expire(self, reason: str = "idle_timeout") -> SessionExpiredError:
        error = SessionExpiredError(message="Your session has expired. Please sign in again.", reason=reason)
        self._log("expire", reason)
        self.logout(redirect_state={"session_expired": True, "reason": reason})
        self.last_expiry = error
        return error

    def _start_idle_monitor(self) -> None:
        self._stop_idle_monitor()
        self._timer = self.scheduler.every(self.config.idle_check_seconds, self.check_idle)

    def _stop_idle_monitor(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # -- teardown -------------------------------------------------------

    def logout(self, redirect_state: dict | None = None) -> str:
        """Local teardown always happens; the server call is best effort."""
        token = self.store.token
        session_id = self.store.session_id
        tenant_id = self.store.tenant_id
        try:
            if token:
                self.auth_api.logout(token, session_id)
        except ApiError as exc:
            self._log("logout", "server_error", trace_id=exc.trace_id, level=logging.WARNING)
        finally:
            self._teardown()

        login_path = self.resolver.login_path(tenant_id)
        self.navigator.navigate(login_path, state=redirect_state, replace=True)
        self._log("logout", "success")
        return login_path

    def _teardown(self) -> None:
        with self._lock:
            self._stop_idle_monitor()
            self.store.clear()
            self._pending = None
            self._tenant_config = None
            self.theme.clear()
            self._last_activity = None
            self._warned = False
            self._status = SessionStatus.LOGGED_OUT
        self._notify(None)
        with self._lock:
            self._status = SessionStatus.ANONYMOUS

    def shutdown(self) -> None:
        self._stop_idle_monitor()

    # -- revalidation ---------------------------------------------------

    def check_session(self) -> bool:
        session_id = self.store.session_id
        if not session_id:
            return False
        try:
            valid = self.auth_api.verify_session(session_id)
        except ApiError as exc:
            self._log("check_session", "error", trace_id=exc.trace_id, level=logging.WARNING)
            valid = False
        if self._status not in ACTIVE_STATES:
            # Torn down while the call was in flight (auth hook or idle timer).
            return False
        if not valid:
            self.expire("session_invalid")
            return False
        return True

    def restore(self) -> User | None:
        """Load the user behind a stored token; any failure clears everything silently."""
        credential = self.store.stored_credential()
        if credential is None:
            with self._lock:
                self._status = SessionStatus.ANONYMOUS
            return None
        token, mode = credential
        self._loading = True
        try:
            user = self.auth_api.me(token, self.store.tenant_id)
        except ApiError as exc:
            self._log("restore", "cleared", trace_id=exc.trace_id)
            with self._lock:
                self.store.clear()
                self._status = SessionStatus.ANONYMOUS
            self._notify(None)
            return None
        finally:
            self._loading = False

        now = self.clock()
        with self._lock:
            self.store.load(user, token=token, mode=mode, now=now)
            self._last_activity = now
            self._warned = False
            self._status = SessionStatus.AUTHENTICATED
            self._start_idle_monitor()
        self._log("restore", "success")
        self._notify(user)
        return user

    def handle_unauthorized(self, error: ApiError) -> None:
        """HTTP client hook for 401/403 on authenticated calls."""
        if self._status not in ACTIVE_STATES:
            return
        self._log("unauthorized", str(error.status_code), trace_id=error.trace_id)
        self.expire("unauthorized")

    # -- password reset -------------------------------------------------

    def request_password_reset(self, email: str) -> str:
        try:
            return self.auth_api.request_password_reset(email)
        except UNREACHABLE_ERRORS as exc:
            raise _network_error(exc) from exc
        except ApiError:
            return PASSWORD_RESET_MESSAGE
