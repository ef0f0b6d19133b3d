from __future__ import annotations

from ..models import TenantConfig

PRIMARY_VAR = "--tenant-primary"
SECONDARY_VAR = "--tenant-secondary"


class TenantTheme:
    """Branding variables for the active tenant."""

    def __init__(self) -> None:
        self.config: TenantConfig | None = None
        self.variables: dict[str, str] = {}

    def apply(self, config: TenantConfig | None) -> None:
        self.config = config
        self.variables = {}
        if config is None:
            return
        if config.primary_color:
            self.variables[PRIMARY_VAR] = config.primary_color
        if config.secondary_color:
            self.variables[SECONDARY_VAR] = config.secondary_color

    def clear(self) -> None:
        self.apply(None)

    @property
    def title(self) -> str | None:
        return self.config.name if self.config else None
