"""Typed documents stored by the level and journey stores.

Store documents are validated into these models on the way out, so a level
with a missing number or an out-of-range rating is caught at the boundary
instead of leaking into progression decisions.
"""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

MIN_DIFFICULTY_RATING = 1
MAX_DIFFICULTY_RATING = 5

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class Level(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    journey_id: str = Field(min_length=1)
    level_number: int = Field(ge=1)
    task: str = Field(min_length=1)
    completed: bool = False
    difficulty_rating: int | None = Field(default=None, ge=MIN_DIFFICULTY_RATING, le=MAX_DIFFICULTY_RATING)
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict) -> "Level":
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


class Journey(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str | None = None
    skill: str = Field(min_length=1)
    level: str = Field(min_length=1)
    time_commitment: str | None = None
    goal: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict) -> "Journey":
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)
