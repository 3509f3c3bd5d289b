from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def thread_timer(seconds: float, fn: Callable[[], None]) -> Timer:
    timer = threading.Timer(seconds, fn)
    timer.daemon = True
    return timer


@dataclass
class SearchDebouncer:
    """Run ``callback(term)`` once input has been quiet for ``delay_ms``.

    Each ``submit`` replaces the pending call. Views call ``cancel`` on close.
    """

    callback: Callable[[str], Any]
    delay_ms: int = 300
    timer_factory: TimerFactory = thread_timer
    _pending: Timer | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)

    def submit(self, term: str) -> None:
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            if self.delay_ms <= 0:
                self._pending = None
            else:
                self._pending = self.timer_factory(self.delay_ms / 1000, lambda: self._fire(generation, term))
                self._pending.start()
                return
        self.callback(term)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._generation += 1

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def _fire(self, generation: int, term: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._pending = None
        self.callback(term)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
