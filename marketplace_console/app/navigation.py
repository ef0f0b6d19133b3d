from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Location:
    path: str
    state: dict[str, Any] | None = None


@dataclass
class Navigator:
    current: Location = field(default_factory=lambda: Location("/login"))
    history: list[Location] = field(default_factory=list)

    def navigate(self, path: str, state: dict[str, Any] | None = None, replace: bool = False) -> Location:
        location = Location(path=path, state=state)
        if not replace:
            self.history.append(self.current)
        self.current = location
        return location
