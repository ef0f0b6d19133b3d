from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from ..infrastructure.logger import get_logger, log_action
from ..models import Role
from .navigation import Navigator
from .role_router import RoleRouter
from .session_manager import SessionManager
from .tenant import TenantResolver

logger = get_logger(__name__)


class GateOutcome(str, Enum):
    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    redirect_to: str | None = None
    state: dict[str, Any] | None = None
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.RENDER


def _normalize_roles(required_roles: Iterable[Role | str] | Role | str | None) -> set[Role] | None:
    if required_roles is None:
        return None
    if isinstance(required_roles, (Role, str)):
        required_roles = [required_roles]
    return {role for role in (Role.parse(item) for item in required_roles) if role is not None}


class AuthorizationGate:
    """Decides whether a protected view renders, waits, or redirects. Never raises."""

    def __init__(
        self,
        session: SessionManager,
        resolver: TenantResolver,
        router: RoleRouter,
        navigator: Navigator,
    ) -> None:
        self.session = session
        self.resolver = resolver
        self.router = router
        self.navigator = navigator

    def evaluate(self, location: str, required_roles: Iterable[Role | str] | Role | str | None = None) -> GateDecision:
        tenant = self.resolver.resolve(location).tenant_id

        if self.session.is_loading:
            return GateDecision(GateOutcome.LOADING, reason="restoring")

        user = self.session.user
        if user is None or not self.session.is_authenticated:
            return GateDecision(
                GateOutcome.REDIRECT,
                redirect_to=self.resolver.login_path(tenant),
                state={"from": location},
                reason="unauthenticated",
            )

        allowed = _normalize_roles(required_roles)
        if allowed is not None and user.parsed_role not in allowed:
            home = self.router.home_for(user.role)
            return GateDecision(
                GateOutcome.REDIRECT,
                redirect_to=self.resolver.dashboard_path(tenant, home),
                reason="role_not_permitted",
            )

        return GateDecision(GateOutcome.RENDER)

    def enforce(self, location: str, required_roles: Iterable[Role | str] | Role | str | None = None) -> GateDecision:
        decision = self.evaluate(location, required_roles)
        if decision.outcome is GateOutcome.REDIRECT and decision.redirect_to:
            user = self.session.user
            log_action(
                logger,
                module="gate",
                action="redirect",
                actor_role=user.role if user else None,
                tenant_id=self.session.store.tenant_id,
                trace_id=None,
                outcome=decision.reason,
            )
            self.navigator.navigate(decision.redirect_to, state=decision.state, replace=True)
        return decision
