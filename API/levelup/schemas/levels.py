from pydantic import BaseModel, Field

from levelup.models.entities import Level


class GenerateLevelRequest(BaseModel):
    # Blank values are rejected by the engine so both HTTP and direct callers get the same error.
    journey_id: str = Field(default="", description="Journey identifier")
    skill: str = Field(default="", description="Skill being learned")
    level: str = Field(default="", description="Experience level, e.g. Beginner")
    time_commitment: str | None = None
    goal: str | None = None


class GenerateLevelResponse(BaseModel):
    success: bool = True
    level: Level


class CompleteLevelRequest(BaseModel):
    difficulty_rating: int = Field(..., description="How hard the level felt, 1 (very easy) to 5 (very hard)")


class CompleteLevelResponse(BaseModel):
    success: bool = True
    message: str
    level: Level


class CurrentLevelResponse(BaseModel):
    success: bool = True
    status: str
    current_level: Level | None
    needs_new_level: bool


class LevelHistoryResponse(BaseModel):
    success: bool = True
    levels: list[Level]
    total_levels: int
    completed_levels: int
