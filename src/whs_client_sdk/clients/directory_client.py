from __future__ import annotations

from dataclasses import dataclass

from ..models import StoreItem, StoreListResponse, UserListResponse, UserResponse
from .base import BaseClient


@dataclass
class DirectoryClient(BaseClient):
    def list_stores(self) -> list[StoreItem]:
        payload = self._request("GET", "/stores", module="directory", operation="list_stores")
        if isinstance(payload, list):
            payload = {"stores": payload}
        if not isinstance(payload, dict):
            raise ValueError("Expected stores response to be a JSON object")
        return StoreListResponse.model_validate(payload).stores

    def list_users(self) -> list[UserResponse]:
        payload = self._request("GET", "/users", module="directory", operation="list_users")
        if isinstance(payload, list):
            payload = {"users": payload}
        if not isinstance(payload, dict):
            raise ValueError("Expected users response to be a JSON object")
        return UserListResponse.model_validate(payload).users
