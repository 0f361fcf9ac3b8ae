"""In-memory app metrics: request latency and error rates, with optional alerts."""
from __future__ import annotations

import time
from collections import deque
from threading import Lock

from starlette.requests import Request
from starlette.responses import Response

_LATENCY_WINDOW = 500
_ERROR_RATE_ALERT_THRESHOLD = 0.10
# Includes generation requests, which wait on the task generator.
_LATENCY_P95_ALERT_MS = 5000

_lock = Lock()
_request_count = 0
_error_count = 0
_status_counts: dict[int, int] = {}
_latencies: deque[float] = deque(maxlen=_LATENCY_WINDOW)


def record_request(duration_sec: float, status_code: int) -> None:
    global _request_count, _error_count
    with _lock:
        _request_count += 1
        if status_code >= 400:
            _error_count += 1
        _status_counts[status_code] = _status_counts.get(status_code, 0) + 1
        _latencies.append(duration_sec)


def _percentile(sorted_values: list[float], fraction: float) -> float | None:
    if not sorted_values:
        return None
    return sorted_values[int((len(sorted_values) - 1) * fraction)]


def get_metrics() -> dict:
    with _lock:
        total = _request_count
        errors = _error_count
        statuses = dict(_status_counts)
        latencies_ms = sorted(lat * 1000 for lat in _latencies)

    error_rate = (errors / total) if total else 0.0
    p50 = _percentile(latencies_ms, 0.50)
    p95 = _percentile(latencies_ms, 0.95)

    alerts: list[str] = []
    if total and error_rate >= _ERROR_RATE_ALERT_THRESHOLD:
        alerts.append("high_error_rate")
    if p95 is not None and p95 >= _LATENCY_P95_ALERT_MS:
        alerts.append("high_latency_p95")

    return {
        "request_count": total,
        "error_count": errors,
        "error_rate": round(error_rate, 4),
        "status_counts": {str(code): count for code, count in sorted(statuses.items())},
        "latency_ms_p50": round(p50, 2) if p50 is not None else None,
        "latency_ms_p95": round(p95, 2) if p95 is not None else None,
        "alerts": alerts,
    }


def reset_metrics() -> None:
    """Reset counters (e.g. for tests)."""
    global _request_count, _error_count
    with _lock:
        _request_count = 0
        _error_count = 0
        _status_counts.clear()
        _latencies.clear()


async def metrics_middleware(request: Request, call_next) -> Response:
    """Record request duration and status for app metrics (skips /health and /metrics)."""
    path = request.url.path
    if path == "/health" or path.startswith("/metrics"):
        return await call_next(request)
    start = time.perf_counter()
    response = await call_next(request)
    record_request(time.perf_counter() - start, response.status_code)
    return response
