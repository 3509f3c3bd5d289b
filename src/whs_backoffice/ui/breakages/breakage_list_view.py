from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.breakage_state import breakage_action_availability, breakage_summary
from whs_client_sdk.models_breakages import Breakage

from ...services.breakage_service import BreakageService
from ...services.errors import ServiceError
from ...services.permissions_service import (
    BREAKAGE_APPROVE,
    BREAKAGE_CREATE,
    BREAKAGE_UPDATE,
    BREAKAGE_VIEW,
    PermissionGate,
)
from ..shared.debounce import SearchDebouncer, TimerFactory, thread_timer
from ..shared.notification_center import NotificationCenter
from ..shared.search import breakage_search_fields, filter_records
from ..shared.state_widgets import StateWidget
from ..shared.view_state import resolve_state


def breakage_row(breakage: Breakage, *, can_manage: bool, can_approve: bool) -> dict[str, Any]:
    return {
        "id": breakage.id,
        "breakage_number": breakage.breakage_number,
        "reporter": breakage.reporter.display_name if breakage.reporter else None,
        "approver": breakage.approver.display_name if breakage.approver else None,
        "status": breakage.status,
        "approval_status": breakage.approval_status,
        "item_count": len(breakage.items),
        "total_quantity": breakage.total_quantity,
        "created_at": breakage.created_at.isoformat() if breakage.created_at else None,
        "actions": asdict(breakage_action_availability(breakage, can_manage=can_manage, can_approve=can_approve)),
    }


@dataclass
class BreakageListView:
    service: BreakageService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    debounce_ms: int = 300
    timer_factory: TimerFactory = thread_timer
    breakages: list[Breakage] = field(default_factory=list)
    visible: list[Breakage] = field(default_factory=list)
    search_term: str = ""
    last_filters: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] | None = None
    is_loading: bool = False
    error_message: str | None = None
    trace_id: str | None = None

    def __post_init__(self) -> None:
        self._debouncer = SearchDebouncer(self.apply_search, self.debounce_ms, self.timer_factory)

    def can_view(self) -> bool:
        return self.gate.is_allowed(BREAKAGE_VIEW)

    def can_create(self) -> bool:
        return self.gate.is_allowed(BREAKAGE_CREATE)

    def load(self, filters: dict[str, Any] | None = None) -> bool:
        self.last_filters = dict(filters or {})
        if not self.can_view():
            self.error_message = "You do not have permission to view breakages"
            self.breakages = []
            self.visible = []
            return False
        self.is_loading = True
        self.error_message = None
        try:
            page = self.service.list_breakages(self.last_filters).breakages
            self.breakages = list(page.data)
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
        self._debouncer.submit(term)

    def apply_search(self, term: str) -> None:
        self.search_term = term
        self.visible = filter_records(self.breakages, term, breakage_search_fields)

    def replace(self, breakage: Breakage) -> None:
        self.breakages = [breakage if row.id == breakage.id else row for row in self.breakages]
        self.apply_search(self.search_term)

    def close(self) -> None:
        self._debouncer.cancel()

    def rows(self) -> list[dict[str, Any]]:
        can_manage = self.gate.is_allowed(BREAKAGE_UPDATE)
        can_approve = self.gate.is_allowed(BREAKAGE_APPROVE)
        return [breakage_row(row, can_manage=can_manage, can_approve=can_approve) for row in self.visible]

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
            "summary": asdict(breakage_summary(self.breakages)),
            "rows": rows,
            "meta": self.meta,
            "view_state": StateWidget(state).render(),
            "notifications": self.notifications.render(),
            "filters": self.last_filters,
        }
