from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SYSTEM_ADMIN_PERMISSION = "can_manage_system"
COMPANY_ADMIN_PERMISSION = "can_manage_company"


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in {"1", "true", "yes", "on", "t"}


def status_text(value: Any, default: str) -> str:
    """Lower-cased status value; enum members contribute their value, not their name."""
    if isinstance(value, Enum):
        value = value.value
    if value is None or value == "":
        return default
    return str(value).strip().lower()


def parse_count(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValueError(f"expected a whole number, got {value!r}") from None


def coerce_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


class RolePermission(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    name: str | None = None
    is_active: bool = True

    @field_validator("is_active", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return True if value is None else coerce_bool(value)


class RoleInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    permissions: list[RolePermission] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("permissions", mode="before")
    @classmethod
    def _permissions_default(cls, value: Any) -> Any:
        return value or []


class UserResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company_id: str | None = None
    role_id: str | None = None
    role: RoleInfo | None = None
    is_active: bool | None = None

    @field_validator("id", "company_id", "role_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("role", mode="before")
    @classmethod
    def _role_from_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    @property
    def display_name(self) -> str:
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.email or self.id

    @property
    def permission_keys(self) -> set[str]:
        if self.role is None:
            return set()
        return {permission.key for permission in self.role.permissions if permission.is_active}


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    token: str
    expires_at: datetime | None = None
    user: UserResponse | None = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    data: TokenResponse


class StoreItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    company_id: str | None = None
    store_code: str | None = None
    city: str | None = None
    is_active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class StoreListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    stores: list[StoreItem] = Field(default_factory=list)

    @field_validator("stores", mode="before")
    @classmethod
    def _stores_default(cls, value: Any) -> Any:
        return value or []


class UserListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    users: list[UserResponse] = Field(default_factory=list)

    @field_validator("users", mode="before")
    @classmethod
    def _users_default(cls, value: Any) -> Any:
        return value or []


class PageMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    current_page: int = 1
    last_page: int = 1
    per_page: int = 0
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.last_page


class PermissionEntry(BaseModel):
    key: str
    allowed: bool
    source: str | None = None


class EffectivePermissionsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: str | None = None
    role: str | None = None
    is_system_admin: bool = False
    permissions: List[PermissionEntry] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: UserResponse | None) -> EffectivePermissionsResponse:
        if user is None:
            return cls()
        keys = sorted(user.permission_keys)
        return cls(
            user_id=user.id,
            role=user.role.name if user.role else None,
            is_system_admin=SYSTEM_ADMIN_PERMISSION in keys,
            permissions=[PermissionEntry(key=key, allowed=True, source="role") for key in keys],
        )


class SessionData(BaseModel):
    access_token: str
    expires_at: datetime | None = None
    user: Optional[UserResponse] = None
    env_name: str | None = None
