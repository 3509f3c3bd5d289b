from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, TypeVar

from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"

    @property
    def field_errors(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        for issue in self.issues:
            key = issue.field if issue.row_index is None else f"items[{issue.row_index}].{issue.field}"
            errors.setdefault(key, issue.reason)
        return errors


def coerce_model(value: T | Mapping[str, Any], model_type: type[T], row_index: int | None) -> T:
    if isinstance(value, model_type):
        return value
    try:
        return model_type.model_validate(value)
    except PydanticValidationError as exc:
        issue = exc.errors()[0] if exc.errors() else {"loc": ("line",), "msg": "Invalid line"}
        field = ".".join(str(part) for part in issue.get("loc", ("line",)))
        raise_issue(row_index, field, issue.get("msg", "Invalid line"))
        raise


def raise_issue(row_index: int | None, field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])


def raise_issues(issues: list[ValidationIssue]) -> None:
    if issues:
        raise ClientValidationError(issues)
