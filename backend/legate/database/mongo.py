from __future__ import annotations

"""
MongoDB connection helpers.
"""

import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        # Import settings lazily to ensure env vars are loaded
        from legate.config import settings

        logger.info("Initializing MongoClient for database %s", settings.MONGODB_DB_NAME)
        # tz_aware keeps invite expiry comparisons in aware UTC
        _client = MongoClient(settings.MONGODB_URI, tz_aware=True)
    return _client


def get_database() -> Database:
    # Import settings lazily
    from legate.config import settings

    client = get_client()
    return client[settings.MONGODB_DB_NAME]


def get_db():
    db = get_database()
    try:
        yield db
    finally:
        # PyMongo manages connection pooling automatically; nothing to close here.
        pass


def ensure_indexes(db: Database) -> None:
    """
    Create the indexes the access-control queries rely on.

    Safe to call on every startup; MongoDB ignores indexes that already exist.
    """
    try:
        db["estates"].create_index([("owner_id", ASCENDING)])
        db["estates"].create_index([("collaborators.user_id", ASCENDING)])
        db["estates"].create_index([("invites.token", ASCENDING)])
        db["users"].create_index([("email", ASCENDING)], unique=True)
        db["estate_events"].create_index(
            [("estate_id", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        db["estate_events"].create_index(
            [("estate_id", ASCENDING), ("type", ASCENDING), ("created_at", DESCENDING)]
        )
    except PyMongoError as exc:  # pragma: no cover - best effort at startup
        logger.warning("Skipping index creation: %s", exc)
