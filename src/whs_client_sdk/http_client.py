from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import database_error_code, flatten_message, map_error
from .exceptions import ServerError, TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]

NON_JSON_MESSAGE = (
    "The server returned an unexpected response. This may be a server error, a misconfigured "
    "endpoint, or a session timeout. Please try again or contact support if the problem persists."
)


def _error_type_from_status(status_code: int) -> str:
    if status_code in {401, 403}:
        return "auth"
    if status_code in {400, 404, 422}:
        return "validation"
    if status_code == 409:
        return "conflict"
    if status_code <= 0:
        return "network"
    return "internal"


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    trace_id: str | None
    type: str


@dataclass(frozen=True)
class RetryNotice:
    path: str
    attempt: int
    max_attempts: int
    reason: str


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    on_retry: Callable[[RetryNotice], None] | None = None
    sleeper: Callable[[float], None] = time.sleep
    cache_ttl_seconds: float = 3.0
    enable_get_cache: bool = True
    _cache: dict[str, tuple[float, dict[str, Any] | list[Any] | None]] = field(default_factory=dict)
    _context_versions: dict[str, int] = field(default_factory=dict)
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
        response_hook: ResponseHook | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
        use_get_cache: bool = True,
        context_key: str | None = None,
        context_version: int | None = None,
        invalidate_paths: list[str] | None = None,
    ) -> dict[str, Any] | list[Any] | None:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        trace_context = self.trace or TraceContext()
        request_headers[TRACE_HEADER] = trace_context.ensure()

        normalized_method = method.upper()
        url = self._build_url(path)
        request_context = {
            "headers": request_headers,
            "json_body": json_body,
            "params": params,
        }
        if self.before_request:
            self.before_request(normalized_method, url, request_context)

        can_retry = normalized_method in {"GET", "HEAD"} or retry_mutation
        attempts = self.config.retries + 1
        cache_key = self._cache_key(normalized_method, url, request_headers, params)
        should_use_get_cache = self.enable_get_cache and use_get_cache and normalized_method == "GET"
        if should_use_get_cache and cache_key:
            cached = self._read_cache(cache_key)
            if cached is not None:
                self.last_operation = LastOperation(
                    module=module,
                    operation=operation,
                    duration_ms=0,
                    result="success(cache)",
                    trace_id=trace_context.trace_id,
                )
                return cached

        started = time.monotonic()
        if context_key and context_version is None:
            context_version = self.get_context_version(context_key)
        if context_key and not self._context_is_current(context_key, context_version):
            raise self._cancelled(trace_context, "Request cancelled before dispatch")

        response: requests.Response | None = None
        payload: Any = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if not can_retry or attempt >= attempts - 1:
                    self._record_operation(module, operation, started, "error", trace_context.trace_id)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message="Could not connect to the server. Please check your internet connection or try again later.",
                        details={"type": type(exc).__name__, "error": str(exc)},
                        trace_id=trace_context.ensure(),
                        status_code=0,
                        raw_payload=None,
                    ) from exc
                self._notify_retry(path, attempt, attempts, type(exc).__name__)
                self.sleeper(self.config.retry_backoff_seconds * (2**attempt))
                continue

            payload = self._parse_payload(response)
            if attempt >= attempts - 1 or not self._should_retry(normalized_method, can_retry, response, payload):
                break
            self._notify_retry(path, attempt, attempts, f"HTTP {response.status_code}")
            if self._is_database_failure(normalized_method, response, payload):
                # database hiccups back off linearly
                self.sleeper(self.config.retry_backoff_seconds * (attempt + 1))
            else:
                self.sleeper(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError(f"HTTP request failed without response: {method} {path}")

        if context_key and not self._context_is_current(context_key, context_version):
            raise self._cancelled(trace_context, "Request cancelled due to context switch")

        if self.after_response:
            self.after_response(response)
        trace_context.adopt(response.headers, operation=operation)
        if response_hook:
            response_hook(response)

        if payload is _NON_JSON:
            self._record_operation(module, operation, started, "error", trace_context.trace_id)
            raise ServerError(
                code="NON_JSON_RESPONSE",
                message=NON_JSON_MESSAGE,
                details={"body": response.text[:100]},
                trace_id=trace_context.trace_id,
                status_code=response.status_code,
                raw_payload=None,
            )

        if response.ok and not _is_failed_envelope(payload):
            if should_use_get_cache and cache_key:
                self._write_cache(cache_key, payload)
            if normalized_method != "GET":
                self._invalidate_cache(invalidate_paths or [])
            self._record_operation(module, operation, started, "success", trace_context.trace_id)
            return payload

        error_payload = payload if isinstance(payload, dict) else {}
        trace_context.adopt(error_payload, operation=operation)
        self._record_operation(module, operation, started, "error", trace_context.trace_id)
        status_code = response.status_code if not response.ok else 400
        raise map_error(status_code, error_payload, trace_context.trace_id)

    def normalize_error(self, error: Exception) -> NormalizedError:
        if isinstance(error, TransportError):
            return NormalizedError(
                code=error.code,
                message=error.message,
                trace_id=error.trace_id,
                type="network",
            )
        code = getattr(error, "code", "UNKNOWN_ERROR")
        message = getattr(error, "message", str(error))
        trace_id = getattr(error, "trace_id", None)
        status_code = int(getattr(error, "status_code", 0) or 0)
        return NormalizedError(
            code=str(code),
            message=str(message),
            trace_id=trace_id,
            type=_error_type_from_status(status_code),
        )

    def switch_context(self, context_key: str) -> int:
        new_version = self.get_context_version(context_key) + 1
        self._context_versions[context_key] = new_version
        self.clear_cache()
        return new_version

    def get_context_version(self, context_key: str) -> int:
        return self._context_versions.get(context_key, 0)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _should_retry(self, method: str, can_retry: bool, response: requests.Response, payload: Any) -> bool:
        if self._is_database_failure(method, response, payload):
            return True
        return can_retry and response.status_code >= 500

    @staticmethod
    def _is_database_failure(method: str, response: requests.Response, payload: Any) -> bool:
        if method == "POST" or not isinstance(payload, dict):
            return False
        if response.ok and not _is_failed_envelope(payload):
            return False
        return database_error_code(flatten_message(payload.get("message"))) is not None

    def _notify_retry(self, path: str, attempt: int, attempts: int, reason: str) -> None:
        logger.warning(
            "http_retry",
            extra={"path": path, "attempt": attempt + 2, "max_attempts": attempts, "reason": reason},
        )
        if self.on_retry:
            self.on_retry(RetryNotice(path=path, attempt=attempt + 1, max_attempts=attempts - 1, reason=reason))

    @staticmethod
    def _parse_payload(response: requests.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("Content-Type", "")
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            if "json" in content_type or not response.ok:
                if response.text.lstrip().startswith(("<!DOCTYPE", "<html")):
                    return _NON_JSON
                return {"message": response.text}
            return _NON_JSON

    @staticmethod
    def _cancelled(trace_context: TraceContext, message: str) -> TransportError:
        return TransportError(
            code="REQUEST_CANCELLED",
            message=message,
            details={"type": "context_switched"},
            trace_id=trace_context.trace_id,
            status_code=0,
            raw_payload=None,
        )

    def _record_operation(self, module: str, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )

    def _context_is_current(self, context_key: str, context_version: int | None) -> bool:
        if context_version is None:
            return True
        return self.get_context_version(context_key) == context_version

    def _cache_key(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        params: dict[str, Any] | None,
    ) -> str | None:
        if method != "GET":
            return None
        safe_headers = {key: value for key, value in headers.items() if key in {"Authorization"}}
        return json.dumps({"url": url, "headers": safe_headers, "params": params or {}}, sort_keys=True)

    def _read_cache(self, key: str) -> dict[str, Any] | list[Any] | None:
        record = self._cache.get(key)
        if not record:
            return None
        expires_at, payload = record
        if time.monotonic() >= expires_at:
            self._cache.pop(key, None)
            return None
        return payload

    def _write_cache(self, key: str, payload: dict[str, Any] | list[Any] | None) -> None:
        self._cache[key] = (time.monotonic() + self.cache_ttl_seconds, payload)

    def _invalidate_cache(self, paths: list[str]) -> None:
        if not paths:
            return
        doomed = [key for key in self._cache if any(path in key for path in paths)]
        for key in doomed:
            self._cache.pop(key, None)


class _NonJson:
    def __repr__(self) -> str:
        return "<non-json>"


_NON_JSON = _NonJson()


def _is_failed_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("status") == "failed"
