from __future__ import annotations

from dataclasses import dataclass, field

from ...services.errors import ServiceError


@dataclass
class ValidationResult:
    ok: bool
    field_errors: dict[str, str] = field(default_factory=dict)
    summary: list[str] = field(default_factory=list)


def result_from_errors(errors: dict[str, str]) -> ValidationResult:
    return ValidationResult(ok=not errors, field_errors=errors, summary=list(errors.values()))


def result_from_service_error(error: ServiceError) -> ValidationResult:
    errors = dict(error.field_errors)
    if not errors:
        errors["form"] = error.message
    return result_from_errors(errors)
