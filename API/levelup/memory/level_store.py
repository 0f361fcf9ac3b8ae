from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from threading import Lock

import pydantic
from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from levelup.core.logging import DOMAIN_PERSISTENCE, get_domain_logger
from levelup.core.settings import settings
from levelup.memory.database import MongoConnection, sanitize_mongo_error
from levelup.models.entities import Level
from levelup.orchestrator.errors import DuplicateLevelError, LevelIntegrityError, PersistenceFailure

logger = get_domain_logger(__name__, DOMAIN_PERSISTENCE)

LEVEL_UNIQUE_INDEX = "ux_levels_journey_level_number"


def _to_level(doc: dict) -> Level:
    try:
        return Level.from_document(doc)
    except pydantic.ValidationError as exc:
        raise LevelIntegrityError(
            f"Stored level {doc.get('_id', doc.get('id'))} is malformed",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


class LevelStore(ABC):
    """Data access for level documents.

    ``insert_level`` must reject a second level with the same
    ``(journey_id, level_number)`` by raising ``DuplicateLevelError``;
    ``complete_level`` must only modify a level that is still pending.
    """

    @abstractmethod
    def list_levels(self, journey_id: str) -> list[Level]:
        raise NotImplementedError

    @abstractmethod
    def get_level(self, level_id: str) -> Level | None:
        raise NotImplementedError

    @abstractmethod
    def insert_level(self, journey_id: str, level_number: int, task: str, created_at: datetime) -> Level:
        raise NotImplementedError

    @abstractmethod
    def complete_level(self, level_id: str, difficulty_rating: int, completed_at: datetime) -> Level | None:
        raise NotImplementedError


class InMemoryLevelStore(LevelStore):
    def __init__(self):
        self._docs: dict[str, dict] = {}
        self._lock = Lock()

    def list_levels(self, journey_id: str) -> list[Level]:
        with self._lock:
            docs = [dict(doc) for doc in self._docs.values() if doc["journey_id"] == journey_id]
        return [_to_level(doc) for doc in docs]

    def get_level(self, level_id: str) -> Level | None:
        with self._lock:
            doc = self._docs.get(level_id)
            doc = dict(doc) if doc else None
        return _to_level(doc) if doc else None

    def insert_level(self, journey_id: str, level_number: int, task: str, created_at: datetime) -> Level:
        with self._lock:
            for doc in self._docs.values():
                if doc["journey_id"] == journey_id and doc["level_number"] == level_number:
                    raise DuplicateLevelError(journey_id, level_number)
            level_id = str(ObjectId())
            doc = {
                "id": level_id,
                "journey_id": journey_id,
                "level_number": level_number,
                "task": task,
                "completed": False,
                "difficulty_rating": None,
                "created_at": created_at,
                "completed_at": None,
            }
            self._docs[level_id] = doc
            return _to_level(dict(doc))

    def complete_level(self, level_id: str, difficulty_rating: int, completed_at: datetime) -> Level | None:
        with self._lock:
            doc = self._docs.get(level_id)
            if doc is None or doc["completed"]:
                return None
            doc.update(completed=True, difficulty_rating=difficulty_rating, completed_at=completed_at)
            return _to_level(dict(doc))

    def put_document(self, doc: dict) -> None:
        """Store a raw document as-is, bypassing uniqueness checks (fixtures for integrity tests)."""
        with self._lock:
            self._docs[str(doc["id"])] = dict(doc)


class MongoLevelStore(LevelStore):
    def __init__(self, db: Database, collection_name: str | None = None):
        self._levels = db[collection_name or settings.levels_collection]
        self._indexes_ready = False

    def ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        try:
            self._levels.create_index(
                [("journey_id", ASCENDING), ("level_number", ASCENDING)],
                unique=True,
                name=LEVEL_UNIQUE_INDEX,
            )
        except PyMongoError as exc:
            raise PersistenceFailure(f"Could not ensure level indexes: {sanitize_mongo_error(str(exc))}") from exc
        self._indexes_ready = True

    def list_levels(self, journey_id: str) -> list[Level]:
        try:
            docs = list(self._levels.find({"journey_id": journey_id}))
        except PyMongoError as exc:
            raise PersistenceFailure(f"Failed to read levels: {sanitize_mongo_error(str(exc))}") from exc
        logger.debug("Fetched %s levels journey_id=%s", len(docs), journey_id)
        return [_to_level(doc) for doc in docs]

    def get_level(self, level_id: str) -> Level | None:
        if not ObjectId.is_valid(level_id):
            return None
        try:
            doc = self._levels.find_one({"_id": ObjectId(level_id)})
        except PyMongoError as exc:
            raise PersistenceFailure(f"Failed to read level: {sanitize_mongo_error(str(exc))}") from exc
        return _to_level(doc) if doc else None

    def insert_level(self, journey_id: str, level_number: int, task: str, created_at: datetime) -> Level:
        # The unique index must exist before the first insert.
        self.ensure_indexes()
        doc = {
            "journey_id": journey_id,
            "level_number": level_number,
            "task": task,
            "completed": False,
            "difficulty_rating": None,
            "created_at": created_at,
            "completed_at": None,
        }
        try:
            result = self._levels.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateLevelError(journey_id, level_number) from exc
        except PyMongoError as exc:
            raise PersistenceFailure(f"Failed to insert level: {sanitize_mongo_error(str(exc))}") from exc
        doc["_id"] = result.inserted_id
        return _to_level(doc)

    def complete_level(self, level_id: str, difficulty_rating: int, completed_at: datetime) -> Level | None:
        if not ObjectId.is_valid(level_id):
            return None
        try:
            doc = self._levels.find_one_and_update(
                {"_id": ObjectId(level_id), "completed": False},
                {
                    "$set": {
                        "completed": True,
                        "difficulty_rating": difficulty_rating,
                        "completed_at": completed_at,
                    }
                },
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise PersistenceFailure(f"Failed to complete level: {sanitize_mongo_error(str(exc))}") from exc
        return _to_level(doc) if doc else None


def build_level_store(connection: MongoConnection | None) -> LevelStore:
    backend = settings.level_store_backend.strip().lower()
    if backend == "mongo":
        if connection is None:
            raise ValueError("LEVEL_STORE_BACKEND=mongo requires a MongoDB connection")
        return MongoLevelStore(connection.db)
    if backend != "memory":
        logger.warning("Unknown LEVEL_STORE_BACKEND=%s; falling back to in-memory level store", backend)
    return InMemoryLevelStore()
