from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class NotificationCenter:
    messages: list[dict[str, Any]] = field(default_factory=list)

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        self.messages.append(payload)
        return payload

    def success(self, message: str, *, title: str = "Success") -> dict[str, Any]:
        return self.push(level="success", title=title, message=message)

    def warning(self, message: str, *, title: str = "Warning", details: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.push(level="warning", title=title, message=message, details=details)

    def error(self, message: str, *, title: str = "Error", details: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.push(level="error", title=title, message=message, details=details)

    def last(self) -> dict[str, Any] | None:
        return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}
