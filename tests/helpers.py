"""Builders shared by the API tests."""
from datetime import datetime

from database import GAMES, USERS, utcnow
from security import get_password_hash, token_for_user

DEFAULT_PASSWORD = "password123"


def make_user(db, email, role, password=DEFAULT_PASSWORD):
    now = utcnow()
    doc = {
        "email": email,
        "password_hash": get_password_hash(password),
        "role": role,
        "created_at": now,
        "updated_at": now,
        "last_login": now,
    }
    doc["_id"] = db[USERS].insert_one(doc).inserted_id
    return doc


def auth_headers(user_doc):
    return {"Authorization": f"Bearer {token_for_user(user_doc)}"}


def make_game(db, created_by, **overrides):
    now = utcnow()
    doc = {
        "name": "Test Game",
        "genre": "Action",
        "platforms": ["NES"],
        "release_date": datetime(1990, 1, 1),
        "has_multiplayer": False,
        "description": "A test game for testing purposes",
        "image_url": None,
        "rating": 8.0,
        "created_by": created_by,
        "updated_by": None,
        "created_at": now,
        "updated_at": now,
    }
    doc.update(overrides)
    doc["_id"] = db[GAMES].insert_one(doc).inserted_id
    return doc


def game_payload(**overrides):
    payload = {
        "name": "Test Game",
        "genre": "Action",
        "platforms": ["NES"],
        "releaseDate": "1990-01-01",
        "hasMultiplayer": False,
        "description": "A test game",
        "rating": 8.0,
    }
    payload.update(overrides)
    return payload


