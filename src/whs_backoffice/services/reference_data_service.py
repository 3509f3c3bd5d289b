from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from whs_client_sdk import ApiSession
from whs_client_sdk.retry import retry_call

from .errors import ServiceError, normalize_error

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Dropdown data loaded independently; one failing source never blocks the others."""

    values: dict[str, list[Any]] = field(default_factory=dict)
    failures: dict[str, ServiceError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failure_summary(self) -> str | None:
        if not self.failures:
            return None
        names = ", ".join(sorted(self.failures))
        return f"Some form data could not be loaded: {names}"


class ReferenceDataService:
    def __init__(self, session: ApiSession, *, sleeper: Callable[[float], None] = time.sleep) -> None:
        self.session = session
        self.sleeper = sleeper

    def _load(self, name: str, fn: Callable[[], list[Any]], result: LookupResult) -> None:
        config = self.session.config
        try:
            result.values[name] = retry_call(
                fn,
                attempts=config.lookup_retries,
                delay_seconds=config.lookup_retry_delay_seconds,
                factor=1.5,
                sleeper=self.sleeper,
                label=f"lookup_{name}",
            )
        except Exception as exc:
            logger.warning("lookup_failed", extra={"lookup": name})
            result.values[name] = []
            result.failures[name] = normalize_error(exc, f"Failed to load {name}")

    def product_lookups(self, *, include_stores: bool = True) -> LookupResult:
        result = LookupResult()
        client = self.session.products_client()
        self._load("categories", client.list_categories, result)
        self._load("suppliers", client.list_suppliers, result)
        if include_stores:
            self._load("stores", self.session.directory_client().list_stores, result)
        return result

    def stores(self) -> LookupResult:
        result = LookupResult()
        self._load("stores", self.session.directory_client().list_stores, result)
        return result

    def dispatch_lookups(self) -> LookupResult:
        result = LookupResult()
        directory = self.session.directory_client()
        self._load("stores", directory.list_stores, result)
        self._load("users", directory.list_users, result)
        self._load("products", lambda: self.session.products_client().list_products().data.data, result)
        return result
