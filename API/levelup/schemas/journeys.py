from pydantic import BaseModel, Field

from levelup.models.entities import Journey


class CreateJourneyRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    skill: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1, description="Beginner, Intermediate or Advanced")
    time_commitment: str | None = None
    goal: str | None = None


class UpdateJourneyRequest(BaseModel):
    skill: str | None = Field(default=None, min_length=1)
    level: str | None = Field(default=None, min_length=1)
    time_commitment: str | None = None
    goal: str | None = None


class CreateJourneyResponse(BaseModel):
    success: bool = True
    message: str
    journey_id: str


class JourneyResponse(BaseModel):
    success: bool = True
    data: Journey


class JourneyListResponse(BaseModel):
    success: bool = True
    data: list[Journey]
