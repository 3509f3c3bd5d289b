from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import pytest

from whs_client_sdk.config import load_config
from whs_client_sdk.http_client import HttpClient
from whs_client_sdk.tracing import TraceContext

BASE_URL = "https://api.example.com"


@pytest.fixture(autouse=True)
def _whs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "WHS_ENV",
        "WHS_API_BASE_URL_DEV",
        "WHS_TIMEOUT_SECONDS",
        "WHS_CONNECT_TIMEOUT_SECONDS",
        "WHS_READ_TIMEOUT_SECONDS",
        "WHS_RETRIES",
        "WHS_RETRY_BACKOFF_SECONDS",
        "WHS_MAX_CONNECTIONS",
        "WHS_VERIFY_SSL",
        "WHS_LOOKUP_RETRIES",
        "WHS_LOOKUP_RETRY_DELAY_SECONDS",
        "WHS_SEARCH_DEBOUNCE_MS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WHS_API_BASE_URL", BASE_URL)


def make_http(base_url: str = BASE_URL, **kwargs) -> HttpClient:
    cfg = load_config()
    object.__setattr__(cfg, "api_base_url", base_url)
    kwargs.setdefault("sleeper", lambda _seconds: None)
    return HttpClient(cfg, trace=TraceContext(), **kwargs)


@dataclass
class FakeTimer:
    seconds: float
    fn: Callable[[], None]
    started: bool = False
    cancelled: bool = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


@dataclass
class FakeTimerFactory:
    timers: list[FakeTimer] = field(default_factory=list)

    def __call__(self, seconds: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(seconds, fn)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def http() -> HttpClient:
    return make_http()
