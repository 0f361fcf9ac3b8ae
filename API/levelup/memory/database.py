"""Lifecycle of the shared MongoDB client.

One ``MongoClient`` is opened when the application starts and closed when it
stops; stores receive the ``Database`` handle instead of connecting per call.
"""
from __future__ import annotations

from pymongo import MongoClient
from pymongo.database import Database

from levelup.core.logging import DOMAIN_PERSISTENCE, get_domain_logger, redact_secrets
from levelup.core.settings import settings

logger = get_domain_logger(__name__, DOMAIN_PERSISTENCE)


def sanitize_mongo_error(raw: str) -> str:
    return redact_secrets(raw) if raw else raw


class MongoConnection:
    def __init__(self, url: str | None = None, db_name: str | None = None):
        self.url = url or settings.mongodb_url
        self.db_name = db_name or settings.mongodb_db_name
        self._client: MongoClient | None = None

    @property
    def db(self) -> Database:
        if self._client is None:
            self._client = MongoClient(
                self.url,
                serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
                tz_aware=True,
            )
            logger.info("MongoDB client opened db=%s", self.db_name)
        return self._client[self.db_name]

    def ping(self) -> tuple[bool, str | None]:
        try:
            self.db.client.admin.command("ping")
            return True, None
        except Exception as exc:  # noqa: BLE001
            return False, sanitize_mongo_error(str(exc))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB client closed db=%s", self.db_name)
