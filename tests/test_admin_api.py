"""
Tests for owner-only admin management.
"""
from datetime import timedelta

import pytest

from database import USERS
from tests.helpers import auth_headers, make_game, make_user

pytestmark = pytest.mark.unit


def _new_admin(email="new-admin@example.com", password="abc123", confirm=None):
    return {"email": email, "password": password, "confirmPassword": confirm if confirm is not None else password}


class TestOwnerOnly:
    @pytest.mark.parametrize(
        "method,path",
        [("get", "/api/admin/users"), ("post", "/api/admin/users"), ("get", "/api/admin/stats")],
    )
    def test_admin_token_is_forbidden(self, client, admin_user, method, path):
        kwargs = {"json": _new_admin()} if method == "post" else {}
        response = getattr(client, method)(path, headers=auth_headers(admin_user), **kwargs)
        assert response.status_code == 403
        assert response.json() == {"message": "Owner access required"}

    def test_missing_token(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_admin_cannot_delete_other_admins(self, client, db, admin_user):
        other = make_user(db, "other@example.com", "admin")
        response = client.delete(f"/api/admin/users/{other['_id']}", headers=auth_headers(admin_user))
        assert response.status_code == 403
        assert db[USERS].count_documents({"role": "admin"}) == 2


class TestAdminAccounts:
    def test_create_and_list(self, client, owner):
        headers = auth_headers(owner)
        response = client.post("/api/admin/users", json=_new_admin(email="New.Admin@Example.com"), headers=headers)
        assert response.status_code == 201
        created = response.json()["admin"]
        assert created["email"] == "new.admin@example.com"
        assert created["role"] == "admin"

        admins = client.get("/api/admin/users", headers=headers).json()["admins"]
        assert [a["email"] for a in admins] == ["new.admin@example.com"]
        assert all("passwordHash" not in a for a in admins)

    def test_new_admin_can_log_in_but_not_manage_admins(self, client, owner):
        client.post("/api/admin/users", json=_new_admin(), headers=auth_headers(owner))
        login = client.post("/api/auth/login", json={"email": "new-admin@example.com", "password": "abc123"})
        assert login.status_code == 200
        token = login.json()["token"]
        response = client.get("/api/admin/users", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_duplicate_email(self, client, owner, admin_user):
        response = client.post("/api/admin/users", json=_new_admin(email="admin@example.com"), headers=auth_headers(owner))
        assert response.status_code == 400
        assert response.json() == {"message": "User with this email already exists"}

    def test_short_password(self, client, owner):
        response = client.post("/api/admin/users", json=_new_admin(password="12345"), headers=auth_headers(owner))
        assert response.status_code == 400
        assert response.json()["message"] == "Password must be at least 6 characters long"

    def test_password_mismatch(self, client, owner):
        response = client.post(
            "/api/admin/users", json=_new_admin(password="abc123", confirm="abc999"), headers=auth_headers(owner)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Passwords must match"

    def test_list_newest_first(self, client, db, owner):
        first = make_user(db, "first@example.com", "admin")
        make_user(db, "second@example.com", "admin")
        db[USERS].update_one({"_id": first["_id"]}, {"$set": {"created_at": first["created_at"] - timedelta(hours=1)}})
        admins = client.get("/api/admin/users", headers=auth_headers(owner)).json()["admins"]
        assert [a["email"] for a in admins] == ["second@example.com", "first@example.com"]


class TestDeleteAdmin:
    def test_delete_admin(self, client, db, owner, admin_user):
        response = client.delete(f"/api/admin/users/{admin_user['_id']}", headers=auth_headers(owner))
        assert response.status_code == 200
        assert response.json() == {"message": "Admin user deleted successfully"}
        assert db[USERS].find_one({"_id": admin_user["_id"]}) is None

    def test_deleted_admin_token_stops_working(self, client, owner, admin_user):
        headers = auth_headers(admin_user)
        client.delete(f"/api/admin/users/{admin_user['_id']}", headers=auth_headers(owner))
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401

    def test_owner_is_not_a_valid_target(self, client, owner):
        response = client.delete(f"/api/admin/users/{owner['_id']}", headers=auth_headers(owner))
        assert response.status_code == 400
        assert response.json() == {"message": "Can only delete admin users"}

    def test_guest_is_not_a_valid_target(self, client, owner, guest):
        response = client.delete(f"/api/admin/users/{guest['_id']}", headers=auth_headers(owner))
        assert response.status_code == 400

    @pytest.mark.parametrize("user_id", ["64b7f0c2a1b2c3d4e5f60718", "bogus"])
    def test_missing_user(self, client, owner, user_id):
        response = client.delete(f"/api/admin/users/{user_id}", headers=auth_headers(owner))
        assert response.status_code == 404
        assert response.json() == {"message": "Admin user not found"}


def test_stats(client, db, owner):
    for i in range(7):
        admin = make_user(db, f"admin{i}@example.com", "admin")
        db[USERS].update_one({"_id": admin["_id"]}, {"$set": {"last_login": admin["last_login"] + timedelta(minutes=i)}})
    make_game(db, owner["_id"], name="Contra")
    make_game(db, owner["_id"], name="Tetris")

    body = client.get("/api/admin/stats", headers=auth_headers(owner)).json()
    assert body["stats"] == {"totalAdmins": 7, "totalGames": 2}
    assert len(body["recentAdmins"]) == 5
    assert body["recentAdmins"][0]["email"] == "admin6@example.com"
