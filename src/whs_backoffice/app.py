from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk import ApiSession, ClientConfig, load_config

from .logging_setup import ActionLog
from .navigation import allowed_modules
from .services.auth_service import AuthService
from .services.breakage_service import BreakageService
from .services.dispatch_service import DispatchService
from .services.errors import ServiceError
from .services.permissions_service import PermissionGate, PermissionsService
from .services.product_service import ProductService
from .services.reference_data_service import ReferenceDataService
from .ui.breakages.breakage_delete_view import BreakageDeleteView
from .ui.breakages.breakage_detail_view import BreakageDetailView
from .ui.breakages.breakage_form_view import BreakageFormView
from .ui.breakages.breakage_list_view import BreakageListView
from .ui.breakages.replacement_dispatch_view import ReplacementDispatchView
from .ui.dispatch.dispatch_delete_view import DispatchDeleteView
from .ui.dispatch.dispatch_detail_view import DispatchDetailView
from .ui.dispatch.dispatch_form_view import DispatchFormView
from .ui.dispatch.dispatch_list_view import DispatchListView
from .ui.dispatch.dispatch_return_view import DispatchReturnView
from .ui.products.product_delete_view import ProductDeleteView
from .ui.products.product_form_view import ProductFormView
from .ui.products.product_list_view import ProductListView
from .ui.shared.notification_center import NotificationCenter


@dataclass
class LoginResult:
    ok: bool
    error_message: str | None = None
    modules: list[str] = field(default_factory=list)


class BackofficeApp:
    """Wires one ApiSession into the services and hands out views sharing one toast center."""

    def __init__(self, config: ClientConfig | None = None, session: ApiSession | None = None) -> None:
        self.config = config or load_config()
        self.session = session or ApiSession(self.config)
        self.notifications = NotificationCenter()
        self.auth_service = AuthService(self.session)
        self.permissions_service = PermissionsService(self.session)
        self.dispatch_service = DispatchService(self.session)
        self.breakage_service = BreakageService(self.session)
        self.product_service = ProductService(self.session)
        self.reference_data = ReferenceDataService(self.session)
        self.gate = PermissionGate([])
        self.actions = ActionLog(actor_role=self._actor_role)

    def _actor_role(self) -> str | None:
        user = self.session.user
        return user.role.name if user and user.role else None

    def start(self) -> LoginResult:
        if not self.auth_service.has_active_session():
            return LoginResult(ok=False, error_message="No active session")
        self.gate = self.permissions_service.gate()
        return LoginResult(ok=True, modules=self.visible_navigation())

    def login(self, email: str, password: str) -> LoginResult:
        try:
            self.auth_service.login(email, password)
        except ServiceError as exc:
            self.actions.failed("auth", "login", exc)
            return LoginResult(ok=False, error_message=exc.message)
        self.gate = self.permissions_service.gate()
        self.actions.record("auth", "login", "success", trace_id=self.session.trace.trace_id)
        return LoginResult(ok=True, modules=self.visible_navigation())

    def logout(self) -> None:
        self.actions.record("auth", "logout", "success", trace_id=self.session.trace.trace_id)
        self.auth_service.logout()
        self.gate = PermissionGate([])
        self.notifications.clear()

    def visible_navigation(self) -> list[str]:
        return [module.label for module in allowed_modules(self.gate)]

    def _view_kwargs(self) -> dict[str, Any]:
        return {"gate": self.gate, "notifications": self.notifications}

    def dispatch_list(self) -> DispatchListView:
        return DispatchListView(
            service=self.dispatch_service, debounce_ms=self.config.search_debounce_ms, **self._view_kwargs()
        )

    def dispatch_detail(self) -> DispatchDetailView:
        return DispatchDetailView(service=self.dispatch_service, actions=self.actions, **self._view_kwargs())

    def dispatch_form(self, dispatch=None) -> DispatchFormView:
        return DispatchFormView(
            service=self.dispatch_service, lookups=self.reference_data, dispatch=dispatch, **self._view_kwargs()
        )

    def breakage_list(self) -> BreakageListView:
        return BreakageListView(
            service=self.breakage_service, debounce_ms=self.config.search_debounce_ms, **self._view_kwargs()
        )

    def breakage_detail(self) -> BreakageDetailView:
        return BreakageDetailView(service=self.breakage_service, actions=self.actions, **self._view_kwargs())

    def breakage_form(self, breakage=None) -> BreakageFormView:
        return BreakageFormView(
            service=self.breakage_service, lookups=self.reference_data, breakage=breakage, **self._view_kwargs()
        )

    def product_list(self) -> ProductListView:
        return ProductListView(
            service=self.product_service, debounce_ms=self.config.search_debounce_ms, **self._view_kwargs()
        )

    def product_form(self, product=None) -> ProductFormView:
        return ProductFormView(
            service=self.product_service, lookups=self.reference_data, product=product, **self._view_kwargs()
        )

    def dispatch_return(self, dispatch) -> DispatchReturnView:
        return DispatchReturnView(
            service=self.dispatch_service, dispatch=dispatch, actions=self.actions, **self._view_kwargs()
        )

    def dispatch_delete(self) -> DispatchDeleteView:
        return DispatchDeleteView(service=self.dispatch_service, **self._view_kwargs())

    def breakage_delete(self) -> BreakageDeleteView:
        return BreakageDeleteView(service=self.breakage_service, **self._view_kwargs())

    def replacement_dispatch(self, breakage) -> ReplacementDispatchView:
        return ReplacementDispatchView(
            service=self.breakage_service,
            lookups=self.reference_data,
            breakage=breakage,
            actions=self.actions,
            **self._view_kwargs(),
        )

    def product_delete(self) -> ProductDeleteView:
        return ProductDeleteView(service=self.product_service, **self._view_kwargs())
