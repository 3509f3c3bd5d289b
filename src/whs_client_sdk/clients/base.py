from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import NotLoggedInError
from ..http_client import HttpClient

NOT_LOGGED_IN_MESSAGE = "You are not logged in. Please sign in and try again."


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    context_key: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            raise NotLoggedInError(
                code="NOT_LOGGED_IN",
                message=NOT_LOGGED_IN_MESSAGE,
                details=None,
                trace_id=None,
                status_code=401,
            )
        return {"Authorization": f"Bearer {self.access_token}"}

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(), **headers}
        if self.context_key and "context_key" not in kwargs:
            kwargs["context_key"] = self.context_key
        return self.http.request(method, path, headers=merged, **kwargs)
