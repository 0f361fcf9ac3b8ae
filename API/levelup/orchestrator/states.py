from dataclasses import dataclass
from enum import Enum

from levelup.models.entities import Level


class LevelState(str, Enum):
    NO_LEVEL_YET = "no_level_yet"
    PENDING_LEVEL = "pending_level"
    NEEDS_NEW_LEVEL = "needs_new_level"


@dataclass(frozen=True)
class NoLevelYet:
    state = LevelState.NO_LEVEL_YET
    level: None = None

    @property
    def needs_new_level(self) -> bool:
        return True


@dataclass(frozen=True)
class PendingLevel:
    """The latest level is still open; the learner keeps working on it."""

    level: Level
    state = LevelState.PENDING_LEVEL

    @property
    def needs_new_level(self) -> bool:
        return False


@dataclass(frozen=True)
class NeedsNewLevel:
    """The latest level is completed; a new one has to be generated."""

    level: Level
    state = LevelState.NEEDS_NEW_LEVEL

    @property
    def needs_new_level(self) -> bool:
        return True


LevelStatus = NoLevelYet | PendingLevel | NeedsNewLevel


@dataclass(frozen=True)
class LevelHistory:
    levels: list[Level]

    @property
    def total(self) -> int:
        return len(self.levels)

    @property
    def completed(self) -> int:
        return sum(1 for level in self.levels if level.completed)
