"""Difficulty adaptation: maps the learner's last rating to the next task's challenge."""
from dataclasses import dataclass


@dataclass(frozen=True)
class DifficultyAdjustment:
    key: str
    instruction: str


BEGINNER_START = DifficultyAdjustment(
    key="beginner_start",
    instruction="Start with a beginner-friendly task.",
)

ADJUSTMENT_BY_RATING: dict[int, DifficultyAdjustment] = {
    1: DifficultyAdjustment(
        key="increase_material",
        instruction="The last task was very easy. Make this next task materially more challenging.",
    ),
    2: DifficultyAdjustment(
        key="increase_slight",
        instruction="The last task was easy. Make this next task slightly more challenging.",
    ),
    3: DifficultyAdjustment(
        key="keep",
        instruction="The last task was just right. Keep a similar level of challenge.",
    ),
    4: DifficultyAdjustment(
        key="decrease_slight",
        instruction="The last task was hard. Make this next task slightly easier.",
    ),
    5: DifficultyAdjustment(
        key="decrease_material",
        instruction="The last task was very hard. Make this next task materially easier.",
    ),
}


def resolve_adjustment(last_difficulty_rating: int | None) -> DifficultyAdjustment:
    if last_difficulty_rating is None:
        return BEGINNER_START
    try:
        return ADJUSTMENT_BY_RATING[last_difficulty_rating]
    except KeyError:
        raise ValueError(f"difficulty rating must be between 1 and 5, got {last_difficulty_rating!r}") from None
