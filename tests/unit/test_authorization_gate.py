from __future__ import annotations

import pytest

from marketplace_console.app.authorization_gate import GateOutcome
from marketplace_console.models import Role


def test_loading_while_restoring(console, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(console.session, "_loading", True)

    decision = console.gate.enforce("/tenant1/admin/orders")

    assert decision.outcome is GateOutcome.LOADING
    assert decision.redirect_to is None
    assert console.navigator.history == []


def test_anonymous_redirects_to_tenant_login_preserving_location(console) -> None:
    decision = console.gate.enforce("/tenant1/admin/orders")

    assert decision.outcome is GateOutcome.REDIRECT
    assert decision.redirect_to == "/tenant1/admin/login"
    assert decision.state == {"from": "/tenant1/admin/orders"}
    assert console.navigator.current.path == "/tenant1/admin/login"


def test_anonymous_without_tenant_goes_to_bare_login(console) -> None:
    decision = console.gate.evaluate("/orders")

    assert decision.redirect_to == "/login"


@pytest.mark.parametrize(
    ("email", "password"),
    [("seller@johncrafts.com", "seller123"), ("artisan@alice.com", "artisan123")],
)
def test_wrong_role_goes_to_own_dashboard(console, email: str, password: str) -> None:
    console.login(email, password, tenant_id="tenant1")

    decision = console.gate.enforce("/tenant1/admin/settings", required_roles=[Role.SUPER_ADMIN])

    assert decision.outcome is GateOutcome.REDIRECT
    assert decision.redirect_to == "/tenant1/admin/dashboard"
    assert decision.redirect_to != "/tenant1/admin/settings"
    landing = console.router.resolve(console.session.user.role, "dashboard")
    assert landing.view == f"{console.session.user.role}.dashboard"


def test_permitted_role_renders(console) -> None:
    console.login("admin@handmade.com", "admin123", tenant_id="tenant1")

    decision = console.gate.evaluate("/tenant1/admin/settings", required_roles="super_admin")

    assert decision.outcome is GateOutcome.RENDER
    assert decision.allowed


def test_no_role_restriction_renders_for_any_user(console) -> None:
    console.login("artisan@alice.com", "artisan123")

    assert console.gate.evaluate("/dashboard").allowed


def test_unknown_required_roles_never_raise(console) -> None:
    console.login("seller@johncrafts.com", "seller123")

    decision = console.gate.evaluate("/orders", required_roles=["auditor", None])

    assert decision.outcome is GateOutcome.REDIRECT
    assert decision.redirect_to == "/dashboard"
