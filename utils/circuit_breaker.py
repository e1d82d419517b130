"""Thread-safe circuit breaker for upstream quote providers.

Usage:
    cb = CircuitBreaker(name='finnhub', failure_threshold=5, recovery_time=30)
    with cb:
        resp = client.get(...)

States: CLOSED -> OPEN -> HALF_OPEN -> CLOSED. While OPEN the context
manager raises CircuitOpenError without running the guarded block.
Exceptions listed in ``ignore`` pass through without counting as failures.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from .logging_setup import get_logger

logger = get_logger('circuit_breaker')


class CircuitOpenError(RuntimeError):
    pass


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_time: float = 30.0,
        half_open_max_calls: int = 1,
        ignore: tuple[type[BaseException], ...] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = max(1, int(failure_threshold))
        self.recovery_time = float(recovery_time)
        self.half_open_max_calls = max(1, int(half_open_max_calls))
        self.ignore = ignore
        self._clock = clock
        self._lock = threading.Lock()
        self._state = 'CLOSED'  # CLOSED | OPEN | HALF_OPEN
        self._failures = 0
        self._opened_at = 0.0
        self._half_open_inflight = 0
        self._opened_count = 0

    def _can_pass(self) -> bool:
        if self._state == 'OPEN':
            if (self._clock() - self._opened_at) >= self.recovery_time:
                self._state = 'HALF_OPEN'
                self._half_open_inflight = 0
                logger.info(f"circuit {self.name} -> HALF_OPEN")
                return True
            return False
        if self._state == 'HALF_OPEN':
            return self._half_open_inflight < self.half_open_max_calls
        return True

    def _open(self, reason: str) -> None:
        self._state = 'OPEN'
        self._opened_at = self._clock()
        self._half_open_inflight = 0
        self._opened_count += 1
        logger.warning(f"circuit {self.name} -> OPEN ({reason})")

    def _on_success(self) -> None:
        if self._state != 'CLOSED':
            logger.info(f"circuit {self.name} -> CLOSED")
        self._state = 'CLOSED'
        self._failures = 0
        self._half_open_inflight = 0

    def _on_failure(self) -> None:
        if self._state == 'HALF_OPEN':
            self._open('half-open probe failed')
            return
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._open('threshold')

    def __enter__(self) -> CircuitBreaker:
        with self._lock:
            if not self._can_pass():
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")
            if self._state == 'HALF_OPEN':
                self._half_open_inflight += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        with self._lock:
            if exc is None or isinstance(exc, self.ignore):
                self._on_success()
            else:
                self._on_failure()

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def stats(self) -> dict:
        with self._lock:
            return {
                'name': self.name,
                'state': self._state,
                'failures': self._failures,
                'opened_count': self._opened_count,
            }
