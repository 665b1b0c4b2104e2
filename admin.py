"""Owner-only management of admin accounts."""
import logging

from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING
from pymongo.database import Database

from auth import check_new_password, create_account
from database import GAMES, USERS, get_db, parse_object_id
from errors import InvalidTarget, NotFound
from schemas import AdminCreateBody, Role, UserOut
from security import require_owner, user_doc_to_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_owner)])

RECENT_ADMINS_LIMIT = 5
NO_PASSWORD = {"password_hash": 0}


def list_admins(database: Database):
    admins = database[USERS].find({"role": Role.ADMIN.value}, NO_PASSWORD).sort("created_at", DESCENDING)
    return [user_doc_to_out(a) for a in admins]


def create_admin(database: Database, email: str, password: str, confirm_password: str) -> UserOut:
    check_new_password(password, confirm_password)
    admin = create_account(database, email, password, Role.ADMIN)
    logger.info("Admin account created for %s", email)
    return user_doc_to_out(admin)


def delete_admin(database: Database, user_id: str) -> None:
    oid = parse_object_id(user_id)
    user = database[USERS].find_one({"_id": oid}) if oid is not None else None
    if user is None:
        raise NotFound("Admin user not found")
    if user.get("role") != Role.ADMIN.value:
        raise InvalidTarget()
    database[USERS].delete_one({"_id": oid})
    logger.info("Admin account %s deleted", user.get("email"))


def admin_stats(database: Database) -> dict:
    users = database[USERS]
    recent = users.find({"role": Role.ADMIN.value}, NO_PASSWORD).sort("last_login", DESCENDING).limit(RECENT_ADMINS_LIMIT)
    return {
        "stats": {
            "totalAdmins": users.count_documents({"role": Role.ADMIN.value}),
            "totalGames": database[GAMES].count_documents({}),
        },
        "recentAdmins": [user_doc_to_out(a).model_dump(by_alias=True, mode="json") for a in recent],
    }


# Routes
@router.get("/users")
def list_admins_route(db: Database = Depends(get_db)):
    return {"admins": [a.model_dump(by_alias=True, mode="json") for a in list_admins(db)]}


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_admin_route(body: AdminCreateBody, db: Database = Depends(get_db)):
    admin = create_admin(db, body.email, body.password, body.confirm_password)
    return {"message": "Admin user created successfully", "admin": admin.model_dump(by_alias=True, mode="json")}


@router.delete("/users/{user_id}")
def delete_admin_route(user_id: str, db: Database = Depends(get_db)):
    delete_admin(db, user_id)
    return {"message": "Admin user deleted successfully"}


@router.get("/stats")
def stats_route(db: Database = Depends(get_db)):
    return admin_stats(db)
