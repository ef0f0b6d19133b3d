from __future__ import annotations

import pytest

from marketplace_console.app.hierarchy import ARTISAN_SELECTABLE, SELLER_SELECTABLE
from marketplace_console.app.role_router import (
    ARTISAN_ROUTES,
    ROUTE_TABLES,
    SELLER_ROUTES,
    SUPER_ADMIN_ROUTES,
    RoleRouter,
)
from marketplace_console.models import Role


def test_every_role_has_an_entry_in_each_decision_table() -> None:
    for table in (ROUTE_TABLES, SELLER_SELECTABLE, ARTISAN_SELECTABLE):
        assert set(table) == set(Role)


def test_tables_by_role() -> None:
    router = RoleRouter()

    assert router.table_for(Role.SUPER_ADMIN) is SUPER_ADMIN_ROUTES
    assert router.table_for("seller") is SELLER_ROUTES
    assert router.table_for("artisan") is ARTISAN_ROUTES


@pytest.mark.parametrize("role", ["viewer", "VIEWER", "auditor", "", None])
def test_unclassified_roles_get_the_artisan_table(role) -> None:
    assert RoleRouter().table_for(role) is ARTISAN_ROUTES


def test_super_admin_table_is_a_superset_of_seller_table() -> None:
    assert set(SELLER_ROUTES.paths) < set(SUPER_ADMIN_ROUTES.paths)
    assert {"categories", "settings"} <= set(SUPER_ADMIN_ROUTES.paths)


def test_artisan_table_only_has_the_dashboard() -> None:
    assert set(ARTISAN_ROUTES.paths) == {"", "dashboard"}


def test_resolve_matches_subpaths() -> None:
    router = RoleRouter()

    assert router.resolve("seller", "/products/create/").view == "catalog.product_create"
    assert router.resolve("seller", "settings") is None
    assert router.resolve("artisan", "orders") is None
    assert router.resolve("super_admin", "settings").view == "settings.platform"


def test_dashboards_are_role_specific_views() -> None:
    router = RoleRouter()
    views = {role: router.resolve(role, router.home_for(role)).view for role in ("super_admin", "seller", "artisan")}

    assert len(set(views.values())) == 3
