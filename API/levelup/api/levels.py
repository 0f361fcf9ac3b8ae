from __future__ import annotations

from fastapi import APIRouter, Depends

from levelup.api.deps import get_progression_engine
from levelup.orchestrator.engine import ProgressionEngine
from levelup.schemas.levels import (
    CompleteLevelRequest,
    CompleteLevelResponse,
    CurrentLevelResponse,
    GenerateLevelRequest,
    GenerateLevelResponse,
    LevelHistoryResponse,
)

router = APIRouter(prefix="/levels", tags=["levels"])


@router.get("/current/{journey_id}", response_model=CurrentLevelResponse)
async def current_level(journey_id: str, engine: ProgressionEngine = Depends(get_progression_engine)):
    status = engine.resolve_status(journey_id)
    return CurrentLevelResponse(
        status=status.state.value,
        current_level=status.level,
        needs_new_level=status.needs_new_level,
    )


@router.post("/generate", response_model=GenerateLevelResponse)
async def generate_level(payload: GenerateLevelRequest, engine: ProgressionEngine = Depends(get_progression_engine)):
    level = await engine.generate_level(
        journey_id=payload.journey_id,
        skill=payload.skill,
        level=payload.level,
        time_commitment=payload.time_commitment,
        goal=payload.goal,
    )
    return GenerateLevelResponse(level=level)


@router.post("/complete/{level_id}", response_model=CompleteLevelResponse)
async def complete_level(
    level_id: str,
    payload: CompleteLevelRequest,
    engine: ProgressionEngine = Depends(get_progression_engine),
):
    level = engine.complete_level(level_id, payload.difficulty_rating)
    return CompleteLevelResponse(message="Level completed successfully", level=level)


@router.get("/history/{journey_id}", response_model=LevelHistoryResponse)
async def level_history(journey_id: str, engine: ProgressionEngine = Depends(get_progression_engine)):
    history = engine.get_history(journey_id)
    return LevelHistoryResponse(
        levels=history.levels,
        total_levels=history.total,
        completed_levels=history.completed,
    )
