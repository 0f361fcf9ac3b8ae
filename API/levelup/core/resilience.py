"""Retry and circuit-breaker helpers wrapped around outbound task-generator calls."""
import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock

import httpx

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    TimeoutError,
    ConnectionError,
    asyncio.TimeoutError,
    httpx.TimeoutException,
    httpx.TransportError,
)


async def retry_with_backoff(
    async_func,
    *,
    max_attempts: int = 1,
    base_delay_seconds: float = 0.5,
    retryable_errors: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
):
    """Await ``async_func`` up to ``max_attempts`` times, sleeping exponentially between transient failures."""
    attempts = max(1, int(max_attempts))
    for attempt in range(attempts):
        try:
            return await async_func()
        except retryable_errors:  # type: ignore[misc]
            if attempt == attempts - 1:
                raise
            await asyncio.sleep(base_delay_seconds * (2**attempt))


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(RuntimeError):
    def __init__(self, name: str):
        super().__init__(f"circuit '{name}' is open")
        self.name = name


@dataclass
class CircuitBreaker:
    name: str
    failure_threshold: int = 4
    recovery_timeout_seconds: float = 30.0
    half_open_max_calls: int = 1
    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    last_failure_time: float = field(default=0.0)
    half_open_calls: int = field(default=0)
    _lock: Lock = field(default_factory=Lock)

    def can_execute(self) -> bool:
        with self._lock:
            if self.state == CircuitState.OPEN:
                if time.time() - self.last_failure_time < self.recovery_timeout_seconds:
                    return False
                self.state = CircuitState.HALF_OPEN
                self.half_open_calls = 0
            if self.state == CircuitState.HALF_OPEN:
                if self.half_open_calls >= self.half_open_max_calls:
                    return False
                self.half_open_calls += 1
            return True

    def record_success(self) -> None:
        with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.half_open_calls = 0

    def record_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.time()
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitState.OPEN
                self.half_open_calls = 0

    async def call(self, async_func):
        if not self.can_execute():
            raise CircuitOpenError(self.name)
        try:
            result = await async_func()
        except (Exception, asyncio.CancelledError):
            self.record_failure()
            raise
        self.record_success()
        return result

    def status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
        }


_registry: dict[str, CircuitBreaker] = {}
_registry_lock = Lock()


def get_breaker(name: str) -> CircuitBreaker:
    with _registry_lock:
        if name not in _registry:
            _registry[name] = CircuitBreaker(name=name)
        return _registry[name]


def get_breakers_status() -> dict[str, dict]:
    with _registry_lock:
        return {name: breaker.status() for name, breaker in _registry.items()}


def reset_breakers() -> None:
    """Drop all registered breakers (e.g. for tests)."""
    with _registry_lock:
        _registry.clear()
