from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import PageMeta, StoreItem, UserResponse, coerce_bool, parse_count


class DispatchType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


def resolve_display_names(data: Any) -> Any:
    """Fill product_name/variant_name from whichever shape the API sent."""
    if not isinstance(data, dict):
        return data
    resolved = dict(data)
    product = resolved.get("product") if isinstance(resolved.get("product"), dict) else {}
    variant = resolved.get("variant") if isinstance(resolved.get("variant"), dict) else {}
    assignable = resolved.get("assignableItem") if isinstance(resolved.get("assignableItem"), dict) else {}
    if not resolved.get("product_name"):
        resolved["product_name"] = product.get("name") or assignable.get("product_name") or None
    if not resolved.get("variant_name"):
        resolved["variant_name"] = variant.get("name") or assignable.get("variant_name") or None
    return resolved


class DispatchQuery(BaseModel):
    model_config = ConfigDict(extra="allow")

    from_store_id: str | None = None
    to_user_id: str | None = None
    type: str | None = None
    page: int | None = None
    per_page: int | None = None


class DispatchItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    dispatch_id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = 0
    received_quantity: int = 0
    returned_quantity: int = 0
    is_returnable: bool = False
    is_returned: bool = False
    return_date: str | None = None
    return_notes: str | None = None
    notes: str | None = None
    reminder_status: str | None = None
    product_name: str | None = None
    variant_name: str | None = None
    product: dict[str, Any] | None = None
    variant: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _display_names(cls, data: Any) -> Any:
        return resolve_display_names(data)

    @field_validator("id", "dispatch_id", "product_id", "variant_id", mode="before")
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


class Dispatch(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    dispatch_number: str = ""
    type: str = DispatchType.INTERNAL.value
    from_store_id: str | None = None
    to_entity: str | None = None
    to_user_id: str | None = None
    is_returnable: bool = False
    is_returned: bool = False
    return_date: str | None = None
    returned_by: str | None = None
    notes: str | None = None
    acknowledged_by: UserResponse | None = None
    dispatch_items: list[DispatchItem] = Field(default_factory=list)
    from_store: StoreItem | None = None
    to_user: UserResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "from_store_id", "to_user_id", mode="before")
    @classmethod
    def _ids_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("dispatch_items", mode="before")
    @classmethod
    def _items_default(cls, value: Any) -> Any:
        return value or []

    @field_validator("is_returnable", "is_returned", mode="before")
    @classmethod
    def _flags(cls, value: Any) -> bool:
        return coerce_bool(value)


class DispatchPage(PageMeta):
    data: list[Dispatch] = Field(default_factory=list)


class DispatchListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    dispatches: DispatchPage = Field(default_factory=DispatchPage)


class DispatchMutationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    dispatch: Dispatch | None = None
    data: Dispatch | None = None

    @property
    def succeeded(self) -> bool:
        return (self.status or "success") == "success"

    @property
    def record(self) -> Dispatch | None:
        return self.dispatch or self.data


class DispatchItemCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = 0
    is_returnable: bool = False
    return_date: str | None = None
    notes: str | None = None


class DispatchCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    from_store_id: str | None = None
    to_entity: str | None = None
    to_user_id: str | None = None
    type: str = DispatchType.INTERNAL.value
    notes: str | None = None
    items: list[DispatchItemCreate] = Field(default_factory=list)


class DispatchUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    from_store_id: str | None = None
    to_entity: str | None = None
    to_user_id: str | None = None
    type: str | None = None
    notes: str | None = None
    items: list[DispatchItemCreate] | None = None


class AcknowledgeLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    received_quantity: int

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class AcknowledgeRequest(BaseModel):
    items: list[AcknowledgeLine]


class ReturnLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    returned_quantity: int
    return_notes: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class ReturnRequest(BaseModel):
    items: list[ReturnLine]


class OverdueReturnsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: list[DispatchItem] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _items_default(cls, value: Any) -> Any:
        return value or []
