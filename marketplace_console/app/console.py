from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

import requests

from ..clients.auth_client import AuthApi, AuthClient
from ..clients.directory_client import DirectoryApi, DirectoryClient
from ..clients.http_client import HttpClient
from ..clients.mock_backend import MockBackend
from ..config import ConsoleConfig
from ..models import Role
from .activity_log import LoginActivityLog
from .authorization_gate import AuthorizationGate, GateDecision, GateOutcome
from .hierarchy import HierarchyScope
from .login_attempts import LoginAttemptStore, LoginThrottle
from .navigation import Navigator
from .role_router import Route, RoleRouter
from .scheduler import Scheduler
from .session_manager import ActivitySignal, LoginOutcome, SessionManager, utcnow
from .session_store import SessionStore
from .storage import ConsoleStorage, build_storage
from .tenant import FORGOT_PASSWORD_PATH, LOGIN_PATH, TenantResolver, split_location
from .theme import TenantTheme

PUBLIC_PATHS = frozenset({LOGIN_PATH, FORGOT_PASSWORD_PATH})


@dataclass(frozen=True)
class Resolution:
    location: str
    tenant_id: str
    decision: GateDecision
    route: Route | None = None

    @property
    def not_found(self) -> bool:
        return self.decision.allowed and self.route is None


class ConsoleApp:
    """Application root: every collaborator is built once and passed down."""

    def __init__(
        self,
        *,
        config: ConsoleConfig,
        storage: ConsoleStorage,
        store: SessionStore,
        resolver: TenantResolver,
        session: SessionManager,
        scope: HierarchyScope,
        gate: AuthorizationGate,
        router: RoleRouter,
        navigator: Navigator,
        theme: TenantTheme,
        http: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.storage = storage
        self.store = store
        self.resolver = resolver
        self.session = session
        self.scope = scope
        self.gate = gate
        self.router = router
        self.navigator = navigator
        self.theme = theme
        self.http = http

    def start(self) -> None:
        self.scope.attach(self.session)
        self.session.restore()

    def shutdown(self) -> None:
        self.session.shutdown()

    def open(self, location: str, required_roles: Iterable[Role | str] | Role | str | None = None) -> Resolution:
        tenant_id = self.resolver.resolve(location).tenant_id
        _, subpath = split_location(location)
        if subpath in PUBLIC_PATHS:
            self.navigator.navigate(location)
            return Resolution(location, tenant_id, GateDecision(GateOutcome.RENDER))

        self.session.record_activity(ActivitySignal.POINTER_DOWN)
        decision = self.gate.enforce(location, required_roles)
        if not decision.allowed:
            return Resolution(location, tenant_id, decision)

        user = self.session.user
        route = self.router.resolve(user.role if user else None, subpath)
        self.navigator.navigate(location)
        return Resolution(location, tenant_id, decision, route)

    def login(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
        tenant_id: str | None = None,
        return_to: str | None = None,
    ) -> LoginOutcome:
        outcome = self.session.login(email, password, remember_me=remember_me, tenant_id=tenant_id)
        if not outcome.requires_two_factor:
            self._after_login(outcome, return_to)
        return outcome

    def verify_two_factor(self, code: str, return_to: str | None = None) -> LoginOutcome:
        outcome = self.session.verify_two_factor(code)
        self._after_login(outcome, return_to)
        return outcome

    def _after_login(self, outcome: LoginOutcome, return_to: str | None) -> None:
        if not self.session.is_authenticated:
            return
        home = self.router.home_for(outcome.user.role)
        target = return_to or self.resolver.dashboard_path(outcome.tenant_id, home)
        self.navigator.navigate(target, replace=True)

    def logout(self) -> str:
        return self.session.logout()


def build_console(
    config: ConsoleConfig | None = None,
    *,
    storage: ConsoleStorage | None = None,
    backend: MockBackend | None = None,
    attempt_store: LoginAttemptStore | None = None,
    scheduler: Scheduler | None = None,
    clock: Callable[[], datetime] = utcnow,
    http_session: requests.Session | None = None,
) -> ConsoleApp:
    config = config or ConsoleConfig()
    storage = storage or build_storage(config.data_dir)
    store = SessionStore(storage)
    resolver = TenantResolver(storage)
    navigator = Navigator()
    theme = TenantTheme()
    router = RoleRouter()

    http: HttpClient | None = None
    auth_api: AuthApi
    directory: DirectoryApi
    if config.use_mock_data:
        mock = backend or MockBackend(clock=clock)
        auth_api, directory = mock, mock
    else:
        http = HttpClient(config=config, session=http_session)
        auth_api = AuthClient(http=http)
        directory = DirectoryClient(http, store)

    session = SessionManager(
        auth_api,
        store,
        resolver,
        config=config,
        throttle=LoginThrottle(attempt_store, config.max_login_attempts, config.lockout_duration),
        activity_log=LoginActivityLog(storage, config.activity_log_limit),
        navigator=navigator,
        theme=theme,
        scheduler=scheduler,
        clock=clock,
    )
    if http is not None:
        http.register_auth_error_handler(session.handle_unauthorized)

    scope = HierarchyScope(storage, directory)
    gate = AuthorizationGate(session, resolver, router, navigator)
    return ConsoleApp(
        config=config,
        storage=storage,
        store=store,
        resolver=resolver,
        session=session,
        scope=scope,
        gate=gate,
        router=router,
        navigator=navigator,
        theme=theme,
        http=http,
    )
