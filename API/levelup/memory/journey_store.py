"""Journey metadata: skill, experience level, time budget and goal per journey.

The progression engine never reads this store; journeys are managed through
the ``/journeys`` routes and clients pass the attributes along when asking
for a new level.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Lock

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from levelup.core.logging import DOMAIN_JOURNEYS, get_domain_logger
from levelup.core.settings import settings
from levelup.memory.database import MongoConnection, sanitize_mongo_error
from levelup.models.entities import Journey, utc_now
from levelup.orchestrator.errors import PersistenceFailure

logger = get_domain_logger(__name__, DOMAIN_JOURNEYS)

# Fields a client may change after creation.
MUTABLE_FIELDS = ("skill", "level", "time_commitment", "goal")


class JourneyStore(ABC):
    @abstractmethod
    def create_journey(self, payload: dict) -> Journey:
        raise NotImplementedError

    @abstractmethod
    def list_journeys(self, user_id: str | None = None) -> list[Journey]:
        raise NotImplementedError

    @abstractmethod
    def get_journey(self, journey_id: str) -> Journey | None:
        raise NotImplementedError

    @abstractmethod
    def update_journey(self, journey_id: str, changes: dict) -> Journey | None:
        raise NotImplementedError

    @abstractmethod
    def delete_journey(self, journey_id: str) -> bool:
        raise NotImplementedError


def _new_journey_document(payload: dict) -> dict:
    now = utc_now()
    return {
        "user_id": payload.get("user_id"),
        "skill": payload["skill"],
        "level": payload["level"],
        "time_commitment": payload.get("time_commitment") or None,
        "goal": payload.get("goal") or None,
        "created_at": now,
        "updated_at": now,
    }


def _filter_changes(changes: dict) -> dict:
    return {key: value for key, value in changes.items() if key in MUTABLE_FIELDS}


class InMemoryJourneyStore(JourneyStore):
    def __init__(self):
        self._docs: dict[str, dict] = {}
        self._lock = Lock()

    def create_journey(self, payload: dict) -> Journey:
        doc = _new_journey_document(payload)
        doc["id"] = str(ObjectId())
        with self._lock:
            self._docs[doc["id"]] = doc
        return Journey.from_document(doc)

    def list_journeys(self, user_id: str | None = None) -> list[Journey]:
        with self._lock:
            docs = [dict(d) for d in self._docs.values() if user_id is None or d["user_id"] == user_id]
        return [Journey.from_document(doc) for doc in sorted(docs, key=lambda d: d["created_at"])]

    def get_journey(self, journey_id: str) -> Journey | None:
        with self._lock:
            doc = self._docs.get(journey_id)
            return Journey.from_document(dict(doc)) if doc else None

    def update_journey(self, journey_id: str, changes: dict) -> Journey | None:
        with self._lock:
            doc = self._docs.get(journey_id)
            if doc is None:
                return None
            doc.update(_filter_changes(changes), updated_at=utc_now())
            return Journey.from_document(dict(doc))

    def delete_journey(self, journey_id: str) -> bool:
        with self._lock:
            return self._docs.pop(journey_id, None) is not None


class MongoJourneyStore(JourneyStore):
    def __init__(self, db: Database, collection_name: str | None = None):
        self._journeys = db[collection_name or settings.journeys_collection]

    @staticmethod
    def _failure(action: str, exc: PyMongoError) -> PersistenceFailure:
        return PersistenceFailure(f"Failed to {action}: {sanitize_mongo_error(str(exc))}")

    def create_journey(self, payload: dict) -> Journey:
        doc = _new_journey_document(payload)
        try:
            result = self._journeys.insert_one(doc)
        except PyMongoError as exc:
            raise self._failure("create journey", exc) from exc
        doc["_id"] = result.inserted_id
        logger.info("Journey created journey_id=%s skill=%s", result.inserted_id, doc["skill"])
        return Journey.from_document(doc)

    def list_journeys(self, user_id: str | None = None) -> list[Journey]:
        query = {"user_id": user_id} if user_id else {}
        try:
            docs = list(self._journeys.find(query).sort("created_at", ASCENDING))
        except PyMongoError as exc:
            raise self._failure("list journeys", exc) from exc
        return [Journey.from_document(doc) for doc in docs]

    def get_journey(self, journey_id: str) -> Journey | None:
        if not ObjectId.is_valid(journey_id):
            return None
        try:
            doc = self._journeys.find_one({"_id": ObjectId(journey_id)})
        except PyMongoError as exc:
            raise self._failure("read journey", exc) from exc
        return Journey.from_document(doc) if doc else None

    def update_journey(self, journey_id: str, changes: dict) -> Journey | None:
        if not ObjectId.is_valid(journey_id):
            return None
        update = {**_filter_changes(changes), "updated_at": utc_now()}
        try:
            result = self._journeys.update_one({"_id": ObjectId(journey_id)}, {"$set": update})
        except PyMongoError as exc:
            raise self._failure("update journey", exc) from exc
        if result.matched_count == 0:
            return None
        return self.get_journey(journey_id)

    def delete_journey(self, journey_id: str) -> bool:
        if not ObjectId.is_valid(journey_id):
            return False
        try:
            result = self._journeys.delete_one({"_id": ObjectId(journey_id)})
        except PyMongoError as exc:
            raise self._failure("delete journey", exc) from exc
        return result.deleted_count > 0


def build_journey_store(connection: MongoConnection | None) -> JourneyStore:
    if settings.level_store_backend.strip().lower() == "mongo":
        if connection is None:
            raise ValueError("LEVEL_STORE_BACKEND=mongo requires a MongoDB connection")
        return MongoJourneyStore(connection.db)
    return InMemoryJourneyStore()
