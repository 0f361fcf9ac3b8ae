from __future__ import annotations

import asyncio
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Test-mode runtime guards:
# - no MongoDB or LLM traffic unless a test opts in
# - deterministic stub task generator for engine and API tests
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LEVEL_STORE_BACKEND", "memory")
os.environ.setdefault("LLM_PROVIDER", "none")
os.environ.setdefault("LLM_MAX_RETRIES", "1")

from levelup.agents.task_generator import TaskGenerationAgent  # noqa: E402
from levelup.api.deps import get_progression_engine  # noqa: E402
from levelup.core.llm_provider import BaseLLMProvider  # noqa: E402
from levelup.core.resilience import reset_breakers  # noqa: E402
from levelup.main import app  # noqa: E402
from levelup.memory.level_store import InMemoryLevelStore  # noqa: E402
from levelup.orchestrator.engine import ProgressionEngine  # noqa: E402


class StubTaskProvider(BaseLLMProvider):
    """Records every prompt and answers with canned task text."""

    provider_name = "stub"
    model_name = "stub-model"

    def __init__(self):
        self.prompts: list[str] = []
        self.outputs: list[str | None] = []
        self.delay_seconds = 0.0
        self.error: Exception | None = None

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        self.prompts.append(prompt)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        if self.outputs:
            return self.outputs.pop(0), {"provider": self.provider_name}
        return f"  Practice task number {len(self.prompts)} for ten minutes.  \n", {"provider": self.provider_name}


def level_document(journey_id: str, level_number: int, *, completed: bool = False, rating: int | None = None, **extra) -> dict:
    from bson import ObjectId

    created = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc) + timedelta(days=level_number)
    doc = {
        "id": str(ObjectId()),
        "journey_id": journey_id,
        "level_number": level_number,
        "task": f"Task for level {level_number}",
        "completed": completed,
        "difficulty_rating": rating,
        "created_at": created,
        "completed_at": created if completed else None,
    }
    doc.update(extra)
    return doc


@pytest.fixture
def stub_provider() -> StubTaskProvider:
    return StubTaskProvider()


@pytest.fixture
def level_store() -> InMemoryLevelStore:
    return InMemoryLevelStore()


@pytest.fixture
def engine(level_store, stub_provider) -> ProgressionEngine:
    return ProgressionEngine(
        level_store,
        task_agent=TaskGenerationAgent(provider=stub_provider),
        generation_timeout_seconds=2.0,
    )


@pytest.fixture
def client(engine) -> TestClient:
    app.dependency_overrides[get_progression_engine] = lambda: engine
    try:
        with TestClient(app) as tc:
            yield tc
    finally:
        app.dependency_overrides.pop(get_progression_engine, None)


@pytest.fixture(autouse=True)
def _fresh_breakers():
    reset_breakers()
    yield
    reset_breakers()
