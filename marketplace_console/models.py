from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TENANT = "default"


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    SELLER = "seller"
    ARTISAN = "artisan"
    VIEWER = "viewer"

    @classmethod
    def parse(cls, value: "Role | str | None") -> "Role | None":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        return None


class PersistenceMode(str, Enum):
    DURABLE = "durable"
    EPHEMERAL = "ephemeral"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: str
    tenant_id: str = DEFAULT_TENANT
    seller_id: str | None = None
    artisan_id: str | None = None
    avatar_url: str | None = None
    last_login: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: object) -> str:
        if isinstance(value, Role):
            return value.value
        return str(value or "").strip().lower()

    @property
    def parsed_role(self) -> Role | None:
        return Role.parse(self.role)


class TenantConfig(WireModel):
    id: str
    name: str
    subdomain: str
    logo_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None


class LoginResponse(WireModel):
    user: User
    token: str | None = None
    requires_two_factor: bool = False
    session_id: str | None = None
    tenant_config: Optional[TenantConfig] = None


class TwoFactorResult(WireModel):
    success: bool = False
    token: str | None = None


class Session(WireModel):
    token: str
    mode: PersistenceMode
    session_id: str | None = None
    last_activity: datetime
    expires_at: datetime


class Seller(WireModel):
    id: str
    name: str


class Artisan(WireModel):
    id: str
    name: str
    seller_id: str


class LoginActivity(WireModel):
    timestamp: datetime
    device_info: str
    ip_address: str | None = None
    success: bool
    failure_reason: str | None = None


class SessionInfo(WireModel):
    session_id: str
    user_id: str
    last_activity: datetime
    expires_at: datetime


class DirectorySnapshot(WireModel):
    sellers: List[Seller] = Field(default_factory=list)
    artisans: List[Artisan] = Field(default_factory=list)
