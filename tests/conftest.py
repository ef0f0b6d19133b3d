from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from marketplace_console.app.console import ConsoleApp, build_console
from marketplace_console.app.storage import ConsoleStorage, DurableStorage, EphemeralStorage
from marketplace_console.clients.mock_backend import MockBackend
from marketplace_console.config import ConsoleConfig


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@dataclass
class ManualTimer:
    interval_seconds: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    timers: list[ManualTimer] = field(default_factory=list)

    def every(self, interval_seconds: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval_seconds, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def tick(self) -> None:
        for timer in self.active:
            timer.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def storage(tmp_path) -> ConsoleStorage:
    return ConsoleStorage(durable=DurableStorage(tmp_path / "storage.json"), ephemeral=EphemeralStorage())


@pytest.fixture
def backend(clock: FakeClock) -> MockBackend:
    return MockBackend(clock=clock)


@pytest.fixture
def console(storage: ConsoleStorage, backend: MockBackend, scheduler: ManualScheduler, clock: FakeClock) -> ConsoleApp:
    app = build_console(ConsoleConfig(), storage=storage, backend=backend, scheduler=scheduler, clock=clock)
    app.start()
    yield app
    app.shutdown()
