"""Failure taxonomy of the progression engine.

Each class carries the HTTP status and envelope code it maps to, so the API
layer can report each kind distinctly without inspecting messages.
"""


class ProgressionError(Exception):
    code = "progression_error"
    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ProgressionError):
    code = "validation_error"
    status_code = 400


class NotFoundError(ProgressionError):
    code = "not_found"
    status_code = 404


class GenerationFailure(ProgressionError):
    code = "generation_failed"
    status_code = 502


class PersistenceFailure(ProgressionError):
    code = "persistence_failed"
    status_code = 503


class LevelIntegrityError(PersistenceFailure):
    code = "level_integrity_error"
    status_code = 409


class DuplicateLevelError(PersistenceFailure):
    """Insert rejected because (journey_id, level_number) already exists."""

    code = "duplicate_level"
    status_code = 409

    def __init__(self, journey_id: str, level_number: int):
        super().__init__(
            f"Level {level_number} already exists for journey {journey_id}",
            details={"journey_id": journey_id, "level_number": level_number},
        )
        self.journey_id = journey_id
        self.level_number = level_number
