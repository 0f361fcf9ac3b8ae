"""
Level progression engine.

Decides whether a journey needs a new level, asks the task generator for one,
and records completions. A journey has at most one pending level: a repeated
generation request returns the pending level untouched, and two requests
racing past that check are separated by the store's unique key on
``(journey_id, level_number)``: the loser re-resolves the status and returns
the pending level, or reports the conflict when that level is already done.
"""
from __future__ import annotations

import asyncio
import json

from levelup.agents.task_generator import TaskGenerationAgent
from levelup.core.logging import DOMAIN_PROGRESSION, get_domain_logger
from levelup.core.settings import settings
from levelup.memory.level_store import LevelStore
from levelup.models.entities import MAX_DIFFICULTY_RATING, MIN_DIFFICULTY_RATING, Level, utc_now
from levelup.orchestrator.errors import (
    DuplicateLevelError,
    GenerationFailure,
    LevelIntegrityError,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from levelup.orchestrator.states import LevelHistory, LevelStatus, NeedsNewLevel, NoLevelYet, PendingLevel

logger = get_domain_logger(__name__, DOMAIN_PROGRESSION)


def _log_event(event_type: str, **fields) -> None:
    logger.info(json.dumps({"type": event_type, **fields}, default=str))


def _sorted_latest_first(journey_id: str, levels: list[Level]) -> list[Level]:
    ordered = sorted(levels, key=lambda level: level.level_number, reverse=True)
    if len(ordered) > 1 and ordered[0].level_number == ordered[1].level_number:
        raise LevelIntegrityError(
            f"Journey {journey_id} has more than one level numbered {ordered[0].level_number}",
            details={
                "journey_id": journey_id,
                "level_number": ordered[0].level_number,
                "level_ids": [lvl.id for lvl in ordered if lvl.level_number == ordered[0].level_number],
            },
        )
    return ordered


def _require_text(field: str, value) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{field} is required", details={"field": field})
    return text


class ProgressionEngine:
    def __init__(
        self,
        level_store: LevelStore,
        task_agent: TaskGenerationAgent | None = None,
        generation_timeout_seconds: float | None = None,
    ):
        self.level_store = level_store
        self.task_agent = task_agent or TaskGenerationAgent()
        self.generation_timeout_seconds = (
            generation_timeout_seconds if generation_timeout_seconds is not None else settings.generation_timeout_seconds
        )

    def _levels_latest_first(self, journey_id: str) -> list[Level]:
        return _sorted_latest_first(journey_id, self.level_store.list_levels(journey_id))

    def resolve_status(self, journey_id: str) -> LevelStatus:
        journey_id = _require_text("journey_id", journey_id)
        levels = self._levels_latest_first(journey_id)
        if not levels:
            return NoLevelYet()
        latest = levels[0]
        if latest.completed:
            return NeedsNewLevel(latest)
        return PendingLevel(latest)

    async def generate_level(
        self,
        journey_id: str,
        skill: str,
        level: str,
        time_commitment: str | None = None,
        goal: str | None = None,
    ) -> Level:
        journey_id = _require_text("journey_id", journey_id)
        skill = _require_text("skill", skill)
        level = _require_text("level", level)

        previous_levels = self._levels_latest_first(journey_id)
        latest = previous_levels[0] if previous_levels else None
        if latest is not None and not latest.completed:
            _log_event(
                "level_generation_skipped",
                journey_id=journey_id,
                level_id=latest.id,
                level_number=latest.level_number,
                reason="pending_level_exists",
            )
            return latest

        level_number = latest.level_number + 1 if latest is not None else 1
        try:
            generated = await asyncio.wait_for(
                self.task_agent.run(
                    {
                        "journey_id": journey_id,
                        "skill": skill,
                        "level": level,
                        "time_commitment": time_commitment,
                        "goal": goal,
                        "level_number": level_number,
                        "previous_levels": previous_levels,
                    }
                ),
                timeout=self.generation_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationFailure(
                f"Task generator timed out after {self.generation_timeout_seconds}s",
                details={"journey_id": journey_id, "level_number": level_number},
            ) from exc

        try:
            created = self.level_store.insert_level(journey_id, level_number, generated["task"], utc_now())
        except DuplicateLevelError as conflict:
            return self._level_created_concurrently(journey_id, level_number, conflict)

        _log_event(
            "level_generated",
            journey_id=journey_id,
            level_id=created.id,
            level_number=level_number,
            adjustment=generated["adjustment"],
        )
        return created

    def _level_created_concurrently(self, journey_id: str, level_number: int, conflict: DuplicateLevelError) -> Level:
        status = self.resolve_status(journey_id)
        if isinstance(status, PendingLevel):
            _log_event(
                "level_generation_conflict",
                journey_id=journey_id,
                level_id=status.level.id,
                level_number=status.level.level_number,
                outcome="returned_pending",
            )
            return status.level
        if isinstance(status, NoLevelYet) or status.level.level_number < level_number:
            raise PersistenceFailure(
                f"Level {level_number} for journey {journey_id} was rejected as a duplicate but cannot be read back",
                details={"journey_id": journey_id, "level_number": level_number},
            ) from conflict
        # The competing level exists but was completed before this insert landed.
        _log_event(
            "level_generation_conflict",
            journey_id=journey_id,
            level_id=status.level.id,
            level_number=status.level.level_number,
            outcome="already_completed",
        )
        raise conflict

    def complete_level(self, level_id: str, difficulty_rating: int) -> Level:
        if (
            isinstance(difficulty_rating, bool)
            or not isinstance(difficulty_rating, int)
            or not MIN_DIFFICULTY_RATING <= difficulty_rating <= MAX_DIFFICULTY_RATING
        ):
            raise ValidationError(
                "Difficulty rating must be between 1 and 5",
                details={"difficulty_rating": difficulty_rating},
            )
        level_id = _require_text("level_id", level_id)

        if self.level_store.get_level(level_id) is None:
            raise NotFoundError("Level not found", details={"level_id": level_id})

        completed = self.level_store.complete_level(level_id, difficulty_rating, utc_now())
        if completed is None:
            raise NotFoundError("Level not found or already completed", details={"level_id": level_id})

        _log_event(
            "level_completed",
            journey_id=completed.journey_id,
            level_id=completed.id,
            level_number=completed.level_number,
            difficulty_rating=difficulty_rating,
        )
        return completed

    def get_history(self, journey_id: str) -> LevelHistory:
        journey_id = _require_text("journey_id", journey_id)
        levels = sorted(self.level_store.list_levels(journey_id), key=lambda lvl: lvl.level_number)
        return LevelHistory(levels=levels)
