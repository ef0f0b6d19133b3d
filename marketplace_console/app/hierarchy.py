"""Seller/artisan scope the current operator is looking at.

- super_admin: picks any seller, then one of its artisans; the seller pick
  survives restarts.
- seller: locked to their own seller, picks among that seller's artisans.
- artisan: locked to their own seller and artisan.

Invalid changes are silent no-ops; nothing here raises.
"""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from ..clients.directory_client import DirectoryApi
from ..clients.exceptions import ApiError
from ..infrastructure.logger import get_logger, log_action
from ..models import Artisan, DirectorySnapshot, PersistenceMode, Role, Seller, User
from .storage import ARTISAN_ID_KEY, SELLER_ID_KEY, ConsoleStorage

if TYPE_CHECKING:
    from .session_manager import SessionManager

logger = get_logger(__name__)

SELLER_SELECTABLE: dict[Role, bool] = {
    Role.SUPER_ADMIN: True,
    Role.SELLER: False,
    Role.ARTISAN: False,
    Role.VIEWER: False,
}

ARTISAN_SELECTABLE: dict[Role, bool] = {
    Role.SUPER_ADMIN: True,
    Role.SELLER: True,
    Role.ARTISAN: False,
    Role.VIEWER: False,
}


class HierarchyScope:
    def __init__(self, storage: ConsoleStorage, directory: DirectoryApi) -> None:
        self.storage = storage
        self.directory = directory
        self._lock = threading.RLock()
        self._user: User | None = None
        self._seller_id: str | None = None
        self._artisan_id: str | None = None
        self._snapshot = DirectorySnapshot()
        self._generation = 0

    def attach(self, session: "SessionManager") -> None:
        """Follow the session's user from now on."""
        session.subscribe(self.initialize)
        self.initialize(session.user)

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def current_seller_id(self) -> str | None:
        return self._seller_id

    @property
    def current_artisan_id(self) -> str | None:
        return self._artisan_id

    @property
    def available_sellers(self) -> list[Seller]:
        return list(self._snapshot.sellers)

    @property
    def available_artisans(self) -> list[Artisan]:
        seller_id = self._seller_id
        if not seller_id:
            return []
        return [artisan for artisan in self._snapshot.artisans if artisan.seller_id == seller_id]

    def _role(self) -> Role | None:
        return self._user.parsed_role if self._user else None

    def can_select_seller(self) -> bool:
        role = self._role()
        return role is not None and SELLER_SELECTABLE[role]

    def can_select_artisan(self) -> bool:
        role = self._role()
        return role is not None and ARTISAN_SELECTABLE[role]

    def _load_directory(self) -> DirectorySnapshot:
        try:
            return DirectorySnapshot(
                sellers=self.directory.list_sellers(),
                artisans=self.directory.list_artisans(),
            )
        except ApiError as exc:
            logger.warning("Directory unavailable, scope lists left empty: %s", exc)
            return DirectorySnapshot()

    def initialize(self, user: User | None) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
        snapshot = self._load_directory() if user is not None else DirectorySnapshot()

        with self._lock:
            # A newer initialize ran while the directory was loading.
            if generation != self._generation:
                return
            self._user = user
            self._seller_id = None
            self._artisan_id = None
            self._snapshot = snapshot
            if user is None:
                return

            role = user.parsed_role
            if role is Role.SUPER_ADMIN:
                stored = self.storage.durable.get(SELLER_ID_KEY)
                first = self._snapshot.sellers[0].id if self._snapshot.sellers else None
                self._seller_id = str(stored) if stored else first
                if self._seller_id:
                    self._persist(SELLER_ID_KEY, self._seller_id)
                self._persist(ARTISAN_ID_KEY, None)
            elif role is Role.SELLER:
                self._seller_id = user.seller_id
                self._persist(ARTISAN_ID_KEY, None)
            elif role is Role.ARTISAN:
                self._seller_id = user.seller_id
                self._artisan_id = user.artisan_id
                self._persist(ARTISAN_ID_KEY, self._artisan_id)
            else:
                self._persist(ARTISAN_ID_KEY, None)

        log_action(
            logger,
            module="hierarchy",
            action="initialize",
            actor_role=user.role,
            tenant_id=user.tenant_id,
            trace_id=None,
            outcome=f"seller={self._seller_id or '-'} artisan={self._artisan_id or '-'}",
        )

    def set_seller_id(self, seller_id: str | None) -> None:
        """Super admin only. An empty id switches to the platform-wide view."""
        with self._lock:
            if not self.can_select_seller():
                return
            self._seller_id = seller_id or None
            self._artisan_id = None
            self._persist(SELLER_ID_KEY, self._seller_id)
            self._persist(ARTISAN_ID_KEY, None)

    def set_artisan_id(self, artisan_id: str | None) -> None:
        """Only artisans of the current seller; an empty id clears the pick."""
        with self._lock:
            if not self.can_select_artisan():
                return
            if artisan_id and artisan_id not in {artisan.id for artisan in self.available_artisans}:
                return
            self._artisan_id = artisan_id or None
            self._persist(ARTISAN_ID_KEY, self._artisan_id)

    def _persist(self, key: str, value: str | None) -> None:
        if value:
            self.storage.put(key, value, PersistenceMode.DURABLE)
        else:
            self.storage.remove_everywhere([key])
