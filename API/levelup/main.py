from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from levelup.api.health import router as health_router
from levelup.api.journeys import router as journeys_router
from levelup.api.levels import router as levels_router
from levelup.api.metrics import router as metrics_router
from levelup.core.app_metrics import metrics_middleware
from levelup.core.errors import (
    http_exception_handler,
    progression_exception_handler,
    request_id_middleware,
    unhandled_exception_handler,
    validation_exception_handler,
)
from levelup.core.logging import configure_logging
from levelup.core.settings import settings
from levelup.memory.database import MongoConnection
from levelup.memory.journey_store import build_journey_store
from levelup.memory.level_store import build_level_store
from levelup.orchestrator.engine import ProgressionEngine
from levelup.orchestrator.errors import ProgressionError


configure_logging(settings.log_level)

app = FastAPI(title="LevelUp API", version="0.1.0")
app.include_router(health_router)
app.include_router(levels_router)
app.include_router(journeys_router)
app.include_router(metrics_router)
app.middleware("http")(metrics_middleware)
app.middleware("http")(request_id_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-request-id"],
)
app.add_exception_handler(ProgressionError, progression_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.on_event("startup")
async def on_startup():
    connection = MongoConnection() if settings.level_store_backend.strip().lower() == "mongo" else None
    app.state.mongo_connection = connection
    app.state.journey_store = build_journey_store(connection)
    app.state.progression_engine = ProgressionEngine(build_level_store(connection))


@app.on_event("shutdown")
async def on_shutdown():
    connection = getattr(app.state, "mongo_connection", None)
    if connection is not None:
        connection.close()
