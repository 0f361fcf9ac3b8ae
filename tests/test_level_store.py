from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from pymongo import MongoClient

from levelup.memory.database import MongoConnection
from levelup.memory.level_store import LEVEL_UNIQUE_INDEX, InMemoryLevelStore, MongoLevelStore
from levelup.orchestrator.errors import DuplicateLevelError

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def _can_connect_mongo(url: str = "mongodb://localhost:27017") -> bool:
    try:
        client = MongoClient(url, serverSelectionTimeoutMS=1000)
        client.admin.command("ping")
        return True
    except Exception:  # noqa: BLE001
        return False


@pytest.fixture
def mongo_store():
    connection = MongoConnection("mongodb://localhost:27017", f"levelup_test_{uuid.uuid4().hex}")
    store = MongoLevelStore(connection.db)
    try:
        yield store
    finally:
        connection.db.client.drop_database(connection.db_name)
        connection.close()


def _exercise_store_contract(store):
    first = store.insert_level("journey-1", 1, "Knead dough for five minutes", NOW)
    store.insert_level("journey-2", 1, "Whistle a scale", NOW)

    with pytest.raises(DuplicateLevelError):
        store.insert_level("journey-1", 1, "Another take on level one", NOW)

    assert [lvl.id for lvl in store.list_levels("journey-1")] == [first.id]
    assert store.get_level(first.id).task == "Knead dough for five minutes"

    completed = store.complete_level(first.id, 2, NOW)
    assert completed.completed is True
    assert completed.difficulty_rating == 2
    assert completed.completed_at == NOW
    assert store.complete_level(first.id, 4, NOW) is None
    assert store.get_level(first.id).difficulty_rating == 2

    assert store.get_level("not-an-id") is None
    assert store.complete_level("not-an-id", 3, NOW) is None


def test_in_memory_store_contract():
    _exercise_store_contract(InMemoryLevelStore())


@pytest.mark.skipif(not _can_connect_mongo(), reason="MongoDB is not running on localhost:27017")
def test_mongo_store_contract(mongo_store):
    _exercise_store_contract(mongo_store)


@pytest.mark.skipif(not _can_connect_mongo(), reason="MongoDB is not running on localhost:27017")
def test_mongo_unique_index_is_created_once(mongo_store):
    mongo_store.ensure_indexes()
    mongo_store.ensure_indexes()
    mongo_store.insert_level("journey-1", 1, "Stretch for ten minutes", NOW)
    index_names = [index["name"] for index in mongo_store._levels.list_indexes()]
    assert LEVEL_UNIQUE_INDEX in index_names
