from fastapi import Request

from levelup.memory.journey_store import JourneyStore
from levelup.orchestrator.engine import ProgressionEngine


def get_progression_engine(request: Request) -> ProgressionEngine:
    return request.app.state.progression_engine


def get_journey_store(request: Request) -> JourneyStore:
    return request.app.state.journey_store
