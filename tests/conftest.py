import os

# must be set before config is imported anywhere
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import mongomock  # noqa: E402
import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import ensure_indexes  # noqa: E402
from main import create_app  # noqa: E402
from tests.helpers import make_user  # noqa: E402


@pytest.fixture
def db():
    database = mongomock.MongoClient()["retro_games_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def app(db):
    return create_app(db=db, rate_limit=False)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def owner(db):
    return make_user(db, "owner@example.com", "owner")


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin@example.com", "admin")


@pytest.fixture
def guest(db):
    return make_user(db, "guest@example.com", "guest")


@pytest.fixture
def missing_id():
    return str(ObjectId())
