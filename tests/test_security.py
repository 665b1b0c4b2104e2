"""
Tests for password hashing, bearer tokens and role checks.
"""
from datetime import timedelta

import pytest
from bson import ObjectId
from jose import jwt

import config
from errors import Forbidden, TokenExpired, TokenInvalid, Unauthorized
from schemas import Role, UserOut
from security import (
    create_access_token,
    get_password_hash,
    require_admin,
    require_owner,
    resolve_user,
    role_at_least,
    verify_password,
    verify_token,
)
from tests.helpers import make_user

pytestmark = pytest.mark.unit


def _user(role: str) -> UserOut:
    return UserOut(id=str(ObjectId()), email=f"{role}@example.com", role=role)


class TestRoles:
    def test_roles_are_ordered(self):
        assert Role.GUEST.rank < Role.ADMIN.rank < Role.OWNER.rank

    @pytest.mark.parametrize(
        "role,required,expected",
        [
            ("guest", "guest", True),
            ("guest", "admin", False),
            ("guest", "owner", False),
            ("admin", "admin", True),
            ("admin", "owner", False),
            ("owner", "admin", True),
            ("owner", "owner", True),
        ],
    )
    def test_role_at_least(self, role, required, expected):
        assert role_at_least(role, required) is expected

    def test_unknown_role_never_passes(self):
        assert role_at_least("superuser", Role.GUEST) is False

    def test_owner_passes_everything_admin_passes(self):
        for required in Role:
            if role_at_least(Role.ADMIN, required):
                assert role_at_least(Role.OWNER, required)

    def test_require_admin(self):
        assert require_admin(_user("admin")).role == "admin"
        assert require_admin(_user("owner")).role == "owner"
        with pytest.raises(Forbidden, match="Admin access required"):
            require_admin(_user("guest"))

    def test_require_owner(self):
        assert require_owner(_user("owner")).role == "owner"
        for role in ("guest", "admin"):
            with pytest.raises(Forbidden, match="Owner access required"):
                require_owner(_user(role))


class TestPasswords:
    def test_hash_is_bcrypt_and_verifies(self):
        hashed = get_password_hash("password123")
        assert hashed != "password123"
        assert hashed.startswith("$2")
        assert verify_password("password123", hashed)
        assert not verify_password("wrongpassword", hashed)

    def test_empty_hash_never_verifies(self):
        assert verify_password("anything", "") is False


class TestTokens:
    def test_round_trip_returns_user_id(self):
        token = create_access_token({"sub": "abc123"})
        assert verify_token(token) == "abc123"

    def test_expired_token(self):
        token = create_access_token({"sub": "abc123"}, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpired, match="Token expired"):
            verify_token(token)

    def test_token_signed_with_other_secret(self):
        token = jwt.encode({"sub": "abc123"}, "not-the-secret", algorithm=config.ALGORITHM)
        with pytest.raises(TokenInvalid, match="Invalid token"):
            verify_token(token)

    def test_garbage_token(self):
        with pytest.raises(TokenInvalid):
            verify_token("not.a.jwt")

    def test_token_without_subject(self):
        token = create_access_token({"role": "owner"})
        with pytest.raises(TokenInvalid):
            verify_token(token)


class TestResolveUser:
    def test_missing_token(self, db):
        with pytest.raises(Unauthorized, match="Access token required"):
            resolve_user(db, None)

    def test_resolves_stored_user(self, db):
        doc = make_user(db, "admin@example.com", "admin")
        token = create_access_token({"sub": str(doc["_id"])})
        user = resolve_user(db, token)
        assert user.id == str(doc["_id"])
        assert user.role == "admin"

    def test_deleted_user_is_invalid(self, db):
        token = create_access_token({"sub": str(ObjectId())})
        with pytest.raises(TokenInvalid):
            resolve_user(db, token)

    def test_subject_that_is_not_an_object_id(self, db):
        token = create_access_token({"sub": "not-an-id"})
        with pytest.raises(TokenInvalid):
            resolve_user(db, token)
