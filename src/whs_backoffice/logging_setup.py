from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

ACTION_LOGGER = "whs_backoffice.actions"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def action_line(
    module: str,
    action: str,
    outcome: str,
    *,
    actor_role: str | None = None,
    trace_id: str | None = None,
    **context: Any,
) -> str:
    entry: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "module": module,
        "action": action,
        "outcome": outcome,
        "actor_role": actor_role,
        "trace_id": trace_id,
    }
    entry.update({key: value for key, value in context.items() if value is not None})
    return json.dumps(entry, default=str, sort_keys=True)


@dataclass
class ActionLog:
    """Audit trail of back-office actions, one JSON line each.

    ``actor_role`` is read at write time so a single log survives login and logout.
    """

    logger: logging.Logger = field(default_factory=lambda: get_logger(ACTION_LOGGER))
    actor_role: Callable[[], str | None] = lambda: None

    def record(
        self,
        module: str,
        action: str,
        outcome: str,
        *,
        trace_id: str | None = None,
        **context: Any,
    ) -> None:
        line = action_line(module, action, outcome, actor_role=self.actor_role(), trace_id=trace_id, **context)
        if outcome == "failed":
            self.logger.warning(line)
        else:
            self.logger.info(line)

    def failed(self, module: str, action: str, error: Any, **context: Any) -> None:
        # closed views are not user actions
        if getattr(error, "cancelled", False):
            return
        self.record(
            module,
            action,
            "failed",
            trace_id=getattr(error, "trace_id", None),
            category=getattr(error, "category", None),
            **context,
        )
