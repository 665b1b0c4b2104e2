"""
MongoDB access for the portal.

Two collections back the API: ``users`` and ``games``. Documents are stored
with snake_case keys; the Pydantic schemas translate them to the camelCase
JSON the clients see.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

import config

logger = logging.getLogger(__name__)

USERS = "users"
GAMES = "games"

# MongoClient connects lazily, so importing this module never blocks on the server
client = MongoClient(config.MONGODB_URI, serverSelectionTimeoutMS=5000, tz_aware=False)
db = client[config.DATABASE_NAME]


def utcnow() -> datetime:
    """Naive UTC timestamp, the form BSON dates round-trip as."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: Optional[str]) -> Optional[ObjectId]:
    if value is None or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document stamped with created_at/updated_at and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict.setdefault("created_at", now)
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def ensure_indexes(database: Database) -> None:
    """Create the unique and filtering indexes. Safe to call repeatedly."""
    users = database[USERS]
    games = database[GAMES]
    users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
    users.create_index([("role", ASCENDING)], name="role")
    games.create_index([("name", ASCENDING)], unique=True, name="name_unique")
    games.create_index([("genre", ASCENDING)], name="genre")
    games.create_index([("platforms", ASCENDING)], name="platforms")
    games.create_index([("release_date", ASCENDING)], name="release_date")
    games.create_index([("has_multiplayer", ASCENDING)], name="has_multiplayer")
    logger.info("MongoDB indexes ensured on %s", database.name)


def get_db(request: Request) -> Database:
    """FastAPI dependency returning the database bound to the running app."""
    return request.app.state.db
