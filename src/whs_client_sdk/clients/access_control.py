from __future__ import annotations

from dataclasses import dataclass

from ..models import EffectivePermissionsResponse, UserResponse
from .auth import AuthClient


@dataclass
class AccessControlClient(AuthClient):
    """Permissions are carried on the user's role; refresh the profile to read them."""

    def effective_permissions(self, user_id: str) -> EffectivePermissionsResponse:
        return EffectivePermissionsResponse.from_user(self.me(user_id))

    @staticmethod
    def permissions_for(user: UserResponse | None) -> EffectivePermissionsResponse:
        return EffectivePermissionsResponse.from_user(user)
