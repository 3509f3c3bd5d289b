from __future__ import annotations

from dataclasses import dataclass

from .auth_store import AuthStore
from .clients.access_control import AccessControlClient
from .clients.auth import AuthClient
from .clients.breakages_client import BreakagesClient
from .clients.directory_client import DirectoryClient
from .clients.dispatches_client import DispatchesClient
from .clients.products_client import ProductsClient
from .config import ClientConfig
from .http_client import HttpClient
from .models import EffectivePermissionsResponse, SessionData, TokenResponse, UserResponse
from .tracing import TraceContext


@dataclass
class ApiSession:
    """Signed-in state plus one shared HttpClient for every client it hands out.

    Sharing the HttpClient keeps GET cache invalidation and context switching
    visible across clients.
    """

    config: ClientConfig
    auth_store: AuthStore | None = None
    trace: TraceContext | None = None
    token: str | None = None
    user: UserResponse | None = None
    http: HttpClient | None = None

    def __post_init__(self) -> None:
        self.auth_store = self.auth_store or AuthStore()
        self.trace = self.trace or TraceContext()
        self.http = self.http or HttpClient(config=self.config, trace=self.trace)
        stored = self.auth_store.load()
        if stored and not self.token:
            self.token = stored.access_token
            self.user = stored.user

    def auth_client(self) -> AuthClient:
        return AuthClient(http=self.http, access_token=self.token)

    def access_control_client(self) -> AccessControlClient:
        return AccessControlClient(http=self.http, access_token=self.token)

    def dispatches_client(self, context_key: str | None = None) -> DispatchesClient:
        return DispatchesClient(http=self.http, access_token=self.token, context_key=context_key)

    def breakages_client(self, context_key: str | None = None) -> BreakagesClient:
        return BreakagesClient(http=self.http, access_token=self.token, context_key=context_key)

    def products_client(self, context_key: str | None = None) -> ProductsClient:
        return ProductsClient(http=self.http, access_token=self.token, context_key=context_key)

    def directory_client(self, context_key: str | None = None) -> DirectoryClient:
        return DirectoryClient(http=self.http, access_token=self.token, context_key=context_key)

    def permissions(self) -> EffectivePermissionsResponse:
        return EffectivePermissionsResponse.from_user(self.user)

    def login(self, email: str, password: str) -> UserResponse | None:
        token = self.auth_client().login(email, password)
        self.establish(token, token.user)
        return self.user

    def establish(self, token: TokenResponse, user: UserResponse | None) -> None:
        self.token = token.token
        self.user = user
        self.http.clear_cache()
        self.auth_store.save(
            SessionData(
                access_token=self.token,
                expires_at=token.expires_at,
                user=self.user,
                env_name=self.config.env_name,
            )
        )

    def clear(self) -> None:
        self.token = None
        self.user = None
        self.http.clear_cache()
        if self.auth_store:
            self.auth_store.clear()
