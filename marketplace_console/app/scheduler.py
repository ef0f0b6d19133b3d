from __future__ import annotations

import threading
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def every(self, interval_seconds: float, callback: Callable[[], None]) -> TimerHandle: ...


class RecurringTimer:
    """Calls `callback` every `interval_seconds` on a daemon thread until cancelled."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None]) -> None:
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="console-idle-timer", daemon=True)

    def start(self) -> "RecurringTimer":
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.callback()

    def cancel(self) -> None:
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()


class ThreadingScheduler:
    def every(self, interval_seconds: float, callback: Callable[[], None]) -> RecurringTimer:
        return RecurringTimer(interval_seconds, callback).start()
