from fastapi import APIRouter, Request

from levelup.core.settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    connection = getattr(request.app.state, "mongo_connection", None)
    store = {"backend": settings.level_store_backend, "connected": True, "error": None}
    if connection is not None:
        connected, error = connection.ping()
        store.update(connected=connected, error=error, db_name=connection.db_name)
    return {
        "status": "ok" if store["connected"] else "degraded",
        "service": "levelup-api",
        "env": settings.app_env,
        "llm_provider": settings.llm_provider,
        "store": store,
    }
