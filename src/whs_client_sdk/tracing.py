from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping

TRACE_HEADER = "X-Trace-ID"
# the gateway in front of the warehouse API echoes its own request id
_TRACE_KEYS = (TRACE_HEADER, "X-Request-ID", "trace_id")


@dataclass
class TraceContext:
    """Trace id shared by the requests of one back-office session.

    Ids echoed by the server replace the local one so toasts and action lines
    quote the id found in the server logs.
    """

    trace_id: str | None = None
    operations: dict[str, str] = field(default_factory=dict)

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def adopt(self, source: Mapping[str, Any], *, operation: str | None = None) -> str | None:
        """Take the trace id from response headers or an error envelope."""
        for key in _TRACE_KEYS:
            value = source.get(key)
            if isinstance(value, str) and value:
                self.trace_id = value
                if operation:
                    self.operations[operation] = value
                return value
        return None

    def for_operation(self, operation: str) -> str | None:
        return self.operations.get(operation)
