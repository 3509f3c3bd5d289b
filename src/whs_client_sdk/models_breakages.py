from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import PageMeta, UserResponse, coerce_bool, parse_count, status_text
from .models_dispatch import resolve_display_names


class BreakageStatus(str, Enum):
    PENDING = "pending"
    DISPATCH_INITIATED = "dispatch_initiated"
    RESOLVED = "resolved"
    REPLACED = "replaced"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BreakageCause(str, Enum):
    HANDLING_ERROR = "handling_error"
    EQUIPMENT_MALFUNCTION = "equipment_malfunction"
    TRANSPORT_DAMAGE = "transport_damage"
    STORAGE_ISSUE = "storage_issue"
    MANUFACTURING_DEFECT = "manufacturing_defect"
    NORMAL_WEAR = "normal_wear"
    ACCIDENT = "accident"
    OTHER = "other"


BREAKAGE_CAUSES = frozenset(cause.value for cause in BreakageCause)


class BreakageQuery(BaseModel):
    model_config = ConfigDict(extra="allow")

    reported_by: str | None = None
    approval_status: str | None = None
    status: str | None = None
    page: int | None = None
    per_page: int | None = None


class AssignableItem(BaseModel):
    """A received dispatch item that can be referenced by a breakage report."""

    model_config = ConfigDict(extra="allow")

    id: str
    dispatch_id: str | None = None
    dispatch_number: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = 0
    received_quantity: int = 0
    returned_quantity: int = 0
    is_returnable: bool = False
    is_returned: bool = False
    return_date: str | None = None
    return_notes: str | None = None
    type: str | None = None
    from_store_id: str | None = None
    to_entity: str | None = None
    product_name: str | None = None
    variant_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _display_names(cls, data: Any) -> Any:
        return resolve_display_names(data)

    @field_validator("id", "dispatch_id", "product_id", "variant_id", "from_store_id", mode="before")
    @classmethod
    def _ids_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("quantity", "received_quantity", "returned_quantity", mode="before")
    @classmethod
    def _counters(cls, value: Any) -> int:
        return parse_count(value)

    @field_validator("is_returnable", "is_returned", mode="before")
    @classmethod
    def _flags(cls, value: Any) -> bool:
        return coerce_bool(value)


class AssignableItemsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    items: list[AssignableItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _items_default(cls, value: Any) -> Any:
        return value or []


class BreakageItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    breakage_id: str | None = None
    assignable_item_id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = 0
    cause: str = BreakageCause.OTHER.value
    notes: str | None = None
    replacement_requested: bool = False
    image_path: str | None = None
    product_name: str | None = None
    variant_name: str | None = None
    product: dict[str, Any] | None = None
    variant: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _display_names(cls, data: Any) -> Any:
        return resolve_display_names(data)

    @field_validator("id", "breakage_id", "assignable_item_id", "product_id", "variant_id", mode="before")
    @classmethod
    def _ids_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int:
        return parse_count(value)

    @field_validator("replacement_requested", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return coerce_bool(value)


class Breakage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    breakage_number: str = ""
    status: str = BreakageStatus.PENDING.value
    approval_status: str = ApprovalStatus.PENDING.value
    notes: str | None = None
    reported_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    items: list[BreakageItem] = Field(default_factory=list)
    reporter: UserResponse | None = None
    approver: UserResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "reported_by", "approved_by", mode="before")
    @classmethod
    def _ids_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("status", "approval_status", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> str:
        return status_text(value, "pending")

    @field_validator("items", mode="before")
    @classmethod
    def _items_default(cls, value: Any) -> Any:
        return value or []

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class BreakagePage(PageMeta):
    data: list[Breakage] = Field(default_factory=list)


class BreakageListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    breakages: BreakagePage = Field(default_factory=BreakagePage)


class BreakageMutationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    breakage: Breakage | None = None


class BreakageItemCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    assignable_item_id: str | None = None
    product_id: str | None = None
    quantity: int = 0
    cause: str | None = None
    notes: str | None = None
    replacement_requested: bool = False
    image_path: str | None = None


class BreakageCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    approver_id: str | None = None
    store_id: str | None = None
    notes: str | None = None
    items: list[BreakageItemCreate] = Field(default_factory=list)


class BreakageUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    notes: str | None = None
    items: list[BreakageItemCreate] | None = None


class BreakageApprovalRequest(BaseModel):
    approval_status: str
    notes: str | None = None

    @field_validator("approval_status", mode="before")
    @classmethod
    def _decision(cls, value: Any) -> str:
        return status_text(value, "")
