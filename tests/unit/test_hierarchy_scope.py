from __future__ import annotations

import pytest

from marketplace_console.app.hierarchy import HierarchyScope
from marketplace_console.app.storage import ARTISAN_ID_KEY, SELLER_ID_KEY
from marketplace_console.clients.exceptions import ServerError
from marketplace_console.clients.mock_backend import MOCK_ARTISANS, MockBackend
from marketplace_console.models import User


def _user(role: str, **extra) -> User:
    return User(id="u", name="Operator", email="op@example.com", role=role, **extra)


SUPER_ADMIN = _user("super_admin")
SELLER = _user("seller", seller_id="SELLER-001")
ARTISAN = _user("artisan", seller_id="SELLER-001", artisan_id="ARTISAN-001")


@pytest.fixture
def scope(storage) -> HierarchyScope:
    return HierarchyScope(storage, MockBackend())


def test_super_admin_defaults_to_first_seller(scope: HierarchyScope, storage) -> None:
    scope.initialize(SUPER_ADMIN)

    assert scope.current_seller_id == "SELLER-001"
    assert scope.current_artisan_id is None
    assert storage.durable.get(SELLER_ID_KEY) == "SELLER-001"


def test_super_admin_restores_persisted_seller(scope: HierarchyScope, storage) -> None:
    storage.durable.set(SELLER_ID_KEY, "SELLER-002")
    storage.durable.set(ARTISAN_ID_KEY, "ARTISAN-003")

    scope.initialize(SUPER_ADMIN)

    assert scope.current_seller_id == "SELLER-002"
    assert scope.current_artisan_id is None
    assert storage.durable.get(ARTISAN_ID_KEY) is None


@pytest.mark.parametrize("seller_id", ["SELLER-001", "SELLER-002", "SELLER-003", ""])
def test_super_admin_set_seller_always_unsets_artisan(scope: HierarchyScope, seller_id: str) -> None:
    scope.initialize(SUPER_ADMIN)
    scope.set_artisan_id("ARTISAN-001")

    scope.set_seller_id(seller_id)

    assert scope.current_artisan_id is None
    assert scope.current_seller_id == (seller_id or None)


def test_clearing_seller_enters_platform_view(scope: HierarchyScope, storage) -> None:
    scope.initialize(SUPER_ADMIN)

    scope.set_seller_id("")

    assert scope.current_seller_id is None
    assert storage.durable.get(SELLER_ID_KEY) is None
    assert scope.available_artisans == []


@pytest.mark.parametrize("seller_id", ["SELLER-001", "SELLER-002", "SELLER-003", "UNKNOWN", None])
def test_available_artisans_match_current_seller(scope: HierarchyScope, seller_id) -> None:
    scope.initialize(SUPER_ADMIN)
    scope.set_seller_id(seller_id)

    expected = [artisan for artisan in MOCK_ARTISANS if seller_id and artisan.seller_id == seller_id]

    assert scope.available_artisans == expected


def test_seller_is_locked_to_own_shop(scope: HierarchyScope, storage) -> None:
    storage.durable.set(SELLER_ID_KEY, "SELLER-003")
    scope.initialize(SELLER)

    scope.set_seller_id("SELLER-002")
    scope.set_artisan_id("ARTISAN-002")

    assert scope.current_seller_id == "SELLER-001"
    assert scope.current_artisan_id == "ARTISAN-002"
    assert storage.durable.get(ARTISAN_ID_KEY) == "ARTISAN-002"
    assert [artisan.id for artisan in scope.available_artisans] == ["ARTISAN-001", "ARTISAN-002"]


def test_seller_can_clear_artisan(scope: HierarchyScope, storage) -> None:
    scope.initialize(SELLER)
    scope.set_artisan_id("ARTISAN-002")

    scope.set_artisan_id("")

    assert scope.current_artisan_id is None
    assert storage.durable.get(ARTISAN_ID_KEY) is None


@pytest.mark.parametrize(
    ("seller_id", "artisan_id"),
    [("SELLER-002", "ARTISAN-003"), ("", ""), (None, None), ("SELLER-001", "ARTISAN-002")],
)
def test_artisan_scope_is_immutable(scope: HierarchyScope, seller_id, artisan_id) -> None:
    scope.initialize(ARTISAN)

    scope.set_seller_id(seller_id)
    scope.set_artisan_id(artisan_id)

    assert scope.current_seller_id == "SELLER-001"
    assert scope.current_artisan_id == "ARTISAN-001"


def test_viewer_scope_is_empty_and_immutable(scope: HierarchyScope) -> None:
    scope.initialize(_user("viewer"))

    scope.set_seller_id("SELLER-001")
    scope.set_artisan_id("ARTISAN-001")

    assert scope.current_seller_id is None
    assert scope.current_artisan_id is None


def test_no_user_resets_scope(scope: HierarchyScope) -> None:
    scope.initialize(SUPER_ADMIN)

    scope.initialize(None)

    assert scope.current_seller_id is None
    assert scope.available_sellers == []


class _BrokenDirectory:
    def list_sellers(self):
        raise ServerError(code="DOWN", message="down", details=None, trace_id="t-1", status_code=503)

    def list_artisans(self):
        return []


def test_directory_failure_leaves_lists_empty(storage) -> None:
    scope = HierarchyScope(storage, _BrokenDirectory())

    scope.initialize(SUPER_ADMIN)

    assert scope.available_sellers == []
    assert scope.current_seller_id is None


def test_seller_cannot_pick_another_sellers_artisan(scope: HierarchyScope, storage) -> None:
    scope.initialize(SELLER)
    scope.set_artisan_id("ARTISAN-002")

    scope.set_artisan_id("ARTISAN-003")

    assert scope.current_artisan_id == "ARTISAN-002"
    assert storage.durable.get(ARTISAN_ID_KEY) == "ARTISAN-002"


@pytest.mark.parametrize("artisan_id", ["ARTISAN-003", "ARTISAN-999"])
def test_super_admin_artisan_must_belong_to_current_seller(scope: HierarchyScope, artisan_id: str) -> None:
    scope.initialize(SUPER_ADMIN)

    scope.set_artisan_id(artisan_id)

    assert scope.current_seller_id == "SELLER-001"
    assert scope.current_artisan_id is None


def test_platform_view_has_no_selectable_artisans(scope: HierarchyScope) -> None:
    scope.initialize(SUPER_ADMIN)
    scope.set_seller_id("")

    scope.set_artisan_id("ARTISAN-001")

    assert scope.current_artisan_id is None
