from __future__ import annotations

from fastapi import APIRouter

from levelup.core.app_metrics import get_metrics
from levelup.core.resilience import get_breakers_status

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/app")
async def app_metrics():
    """Request latency (p50/p95), error rate, status breakdown and alerts."""
    out = get_metrics()
    breakers = get_breakers_status()
    if any(b["state"] == "open" for b in breakers.values()):
        out["alerts"] = list(out.get("alerts", [])) + ["task_generator_circuit_open"]
    return out


@router.get("/resilience")
async def resilience_metrics():
    return {"breakers": get_breakers_status()}
