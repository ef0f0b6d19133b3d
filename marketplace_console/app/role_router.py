from __future__ import annotations

from dataclasses import dataclass

from ..models import Role


@dataclass(frozen=True)
class Route:
    path: str
    view: str
    label: str


@dataclass(frozen=True)
class RouteTable:
    name: str
    home: str
    routes: tuple[Route, ...]

    def match(self, subpath: str) -> Route | None:
        clean = (subpath or "").strip("/")
        return next((route for route in self.routes if route.path == clean), None)

    @property
    def paths(self) -> list[str]:
        return [route.path for route in self.routes]


SUPER_ADMIN_ROUTES = RouteTable(
    name="super_admin",
    home="dashboard",
    routes=(
        Route("", "super_admin.dashboard", "Dashboard"),
        Route("dashboard", "super_admin.dashboard", "Dashboard"),
        Route("products", "catalog.products", "Products"),
        Route("products/create", "catalog.product_create", "Create product"),
        Route("orders", "orders.list", "Orders"),
        Route("customers", "customers.list", "Customers"),
        Route("categories", "catalog.categories", "Categories"),
        Route("settings", "settings.platform", "Settings"),
    ),
)

SELLER_ROUTES = RouteTable(
    name="seller",
    home="dashboard",
    routes=(
        Route("", "seller.dashboard", "Dashboard"),
        Route("dashboard", "seller.dashboard", "Dashboard"),
        Route("products", "catalog.products", "Products"),
        Route("products/create", "catalog.product_create", "Create product"),
        Route("orders", "orders.list", "Orders"),
        Route("customers", "customers.list", "Customers"),
    ),
)

ARTISAN_ROUTES = RouteTable(
    name="artisan",
    home="dashboard",
    routes=(
        Route("", "artisan.dashboard", "Tasks"),
        Route("dashboard", "artisan.dashboard", "Tasks"),
    ),
)

# Anything not classified as super admin or seller gets the artisan table.
ROUTE_TABLES: dict[Role, RouteTable] = {
    Role.SUPER_ADMIN: SUPER_ADMIN_ROUTES,
    Role.SELLER: SELLER_ROUTES,
    Role.ARTISAN: ARTISAN_ROUTES,
    Role.VIEWER: ARTISAN_ROUTES,
}
FALLBACK_TABLE = ARTISAN_ROUTES


class RoleRouter:
    def table_for(self, role: Role | str | None) -> RouteTable:
        parsed = Role.parse(role)
        if parsed is None:
            return FALLBACK_TABLE
        return ROUTE_TABLES.get(parsed, FALLBACK_TABLE)

    def resolve(self, role: Role | str | None, subpath: str) -> Route | None:
        return self.table_for(role).match(subpath)

    def home_for(self, role: Role | str | None) -> str:
        return self.table_for(role).home
