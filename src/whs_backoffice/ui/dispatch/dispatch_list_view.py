from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.dispatch_state import (
    derive_dispatch_status,
    dispatch_action_availability,
    dispatch_stats,
    dispatch_totals,
    receipt_progress,
    status_badge,
)
from whs_client_sdk.models_dispatch import Dispatch

from ...services.dispatch_service import DispatchService
from ...services.errors import ServiceError
from ...services.permissions_service import DISPATCH_CREATE, DISPATCH_UPDATE, DISPATCH_VIEW, PermissionGate
from ..shared.debounce import SearchDebouncer, TimerFactory, thread_timer
from ..shared.notification_center import NotificationCenter
from ..shared.search import dispatch_search_fields, filter_records
from ..shared.state_widgets import StateWidget
from ..shared.view_state import resolve_state


def dispatch_row(dispatch: Dispatch, *, can_manage: bool) -> dict[str, Any]:
    status = derive_dispatch_status(dispatch)
    totals = dispatch_totals(dispatch)
    recipient = dispatch.to_user.display_name if dispatch.to_user else dispatch.to_entity
    return {
        "id": dispatch.id,
        "dispatch_number": dispatch.dispatch_number,
        "type": dispatch.type,
        "from_store": dispatch.from_store.name if dispatch.from_store else None,
        "recipient": recipient,
        "item_count": len(dispatch.dispatch_items),
        "requested": totals.requested,
        "received": totals.received,
        "returned": totals.returned,
        "progress": receipt_progress(dispatch),
        "status": status.value,
        "badge": status_badge(status),
        "created_at": dispatch.created_at.isoformat() if dispatch.created_at else None,
        "actions": asdict(dispatch_action_availability(dispatch, can_manage=can_manage)),
    }


@dataclass
class DispatchListView:
    service: DispatchService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    debounce_ms: int = 300
    timer_factory: TimerFactory = thread_timer
    dispatches: list[Dispatch] = field(default_factory=list)
    visible: list[Dispatch] = field(default_factory=list)
    search_term: str = ""
    last_filters: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] | None = None
    is_loading: bool = False
    error_message: str | None = None
    trace_id: str | None = None

    def __post_init__(self) -> None:
        self._debouncer = SearchDebouncer(self.apply_search, self.debounce_ms, self.timer_factory)

    def can_view(self) -> bool:
        return self.gate.is_allowed(DISPATCH_VIEW)

    def can_create(self) -> bool:
        return self.gate.is_allowed(DISPATCH_CREATE)

    def can_manage(self) -> bool:
        return self.gate.is_allowed(DISPATCH_UPDATE)

    def load(self, filters: dict[str, Any] | None = None) -> bool:
        self.last_filters = dict(filters or {})
        if not self.can_view():
            self.error_message = "You do not have permission to view dispatches"
            self.dispatches = []
            self.visible = []
            return False
        self.is_loading = True
        self.error_message = None
        try:
            response = self.service.list_dispatches(self.last_filters)
            page = response.dispatches
            self.dispatches = list(page.data)
            self.meta = page.model_dump(mode="json", exclude={"data"})
            self.apply_search(self.search_term)
            return True
        except ServiceError as exc:
            self.error_message = exc.message
            self.trace_id = exc.trace_id
            self.notifications.error(exc.message, details={"trace_id": exc.trace_id})
            return False
        finally:
            self.is_loading = False

    def refresh(self) -> bool:
        return self.load(self.last_filters)

    def search(self, term: str) -> None:
        """Typing goes through the debouncer; ``apply_search`` runs once input settles."""
        self._debouncer.submit(term)

    def apply_search(self, term: str) -> None:
        self.search_term = term
        self.visible = filter_records(self.dispatches, term, dispatch_search_fields)

    def replace(self, dispatch: Dispatch) -> None:
        """Swap in a dispatch returned by a mutation so rows recompute from server state."""
        self.dispatches = [dispatch if row.id == dispatch.id else row for row in self.dispatches]
        self.apply_search(self.search_term)

    def find(self, dispatch_id: str) -> Dispatch | None:
        return next((row for row in self.dispatches if row.id == dispatch_id), None)

    def close(self) -> None:
        self._debouncer.cancel()

    def rows(self) -> list[dict[str, Any]]:
        can_manage = self.can_manage()
        return [dispatch_row(dispatch, can_manage=can_manage) for dispatch in self.visible]

    def render(self) -> dict[str, Any]:
        rows = self.rows()
        state = resolve_state(
            can_view=self.can_view(),
            is_loading=self.is_loading,
            error=self.error_message,
            has_data=bool(rows),
            trace_id=self.trace_id,
        )
        return {
            "can_view": self.can_view(),
            "actions": {"create": self.can_create()},
            "loading": self.is_loading,
            "error": self.error_message,
            "search": self.search_term,
            "search_pending": self._debouncer.pending,
            "stats": asdict(dispatch_stats(self.dispatches)),
            "rows": rows,
            "meta": self.meta,
            "view_state": StateWidget(state).render(),
            "notifications": self.notifications.render(),
            "filters": self.last_filters,
        }
