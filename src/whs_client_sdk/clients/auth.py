from __future__ import annotations

from ..exceptions import AuthError
from ..models import LoginResponse, TokenResponse, UserResponse
from .base import BaseClient


class AuthClient(BaseClient):
    def login(self, email: str, password: str) -> TokenResponse:
        payload = {"email": email, "password": password}
        data = self.http.request("POST", "/login", json_body=payload, module="auth", operation="login")
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise AuthError(
                code="LOGIN_FAILED",
                message="Sign in failed with no specific message.",
                details=None,
                trace_id=None,
                status_code=401,
                raw_payload=data,
            )
        return LoginResponse.model_validate(data).data

    def me(self, user_id: str) -> UserResponse:
        data = self._request("GET", f"/users/{user_id}", module="auth", operation="me")
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        elif isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        return UserResponse.model_validate(data)
