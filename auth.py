"""Authentication routes: owner bootstrap, login and session lookups."""
import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, status
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import config
from database import USERS, create_document, get_db, utcnow
from errors import DuplicateEmail, Forbidden, InvalidCredentials, PasswordMismatch, PasswordTooShort
from schemas import AuthResponse, LoginBody, RegisterBody, Role, SessionOut, User, UserOut
from security import get_current_user, get_optional_user, get_password_hash, token_for_user, user_doc_to_out, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def check_new_password(password: str, confirm_password: str) -> None:
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise PasswordTooShort()
    if password != confirm_password:
        raise PasswordMismatch()


def owner_exists(database: Database) -> bool:
    return database[USERS].find_one({"role": Role.OWNER.value}, {"_id": 1}) is not None


def create_account(database: Database, email: str, password: str, role: Role) -> dict:
    """Insert a user with a freshly hashed password and return the stored document."""
    users = database[USERS]
    if users.find_one({"email": email}) is not None:
        raise DuplicateEmail()
    user = User(email=email, password_hash=get_password_hash(password), role=role, last_login=utcnow())
    try:
        user_id = create_document(database, USERS, user)
    except DuplicateKeyError:
        raise DuplicateEmail()
    return users.find_one({"_id": ObjectId(user_id)})


def login(database: Database, email: str, password: str) -> AuthResponse:
    users = database[USERS]
    user = users.find_one({"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login attempt for %s", email)
        raise InvalidCredentials()

    now = utcnow()
    users.update_one({"_id": user["_id"]}, {"$set": {"last_login": now}})
    user["last_login"] = now
    logger.info("User %s logged in as %s", email, user.get("role"))
    return AuthResponse(message="Login successful", token=token_for_user(user), user=user_doc_to_out(user))


def register(database: Database, email: str, password: str, confirm_password: str) -> AuthResponse:
    """Create the single owner account. Closed once an owner exists."""
    if owner_exists(database):
        raise Forbidden("Owner account already exists. Registration is closed.")
    check_new_password(password, confirm_password)
    owner = create_account(database, email, password, Role.OWNER)
    if config.OWNER_EMAIL and email != config.OWNER_EMAIL.strip().lower():
        logger.warning("Owner registered as %s, which differs from OWNER_EMAIL", email)
    logger.info("Owner account created for %s", email)
    return AuthResponse(message="Owner account created successfully", token=token_for_user(owner), user=user_doc_to_out(owner))


# Routes
@router.post("/login", response_model=AuthResponse)
def login_route(body: LoginBody, db: Database = Depends(get_db)):
    return login(db, body.email, body.password)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_route(body: RegisterBody, db: Database = Depends(get_db)):
    return register(db, body.email, body.password, body.confirm_password)


@router.get("/owner-exists")
def owner_exists_route(db: Database = Depends(get_db)):
    return {"ownerExists": owner_exists(db)}


@router.get("/me")
def me(current: UserOut = Depends(get_current_user)):
    return {"user": current.model_dump(by_alias=True, mode="json")}


@router.get("/session", response_model=SessionOut)
def session(current: Optional[UserOut] = Depends(get_optional_user), db: Database = Depends(get_db)):
    return SessionOut(
        authenticated=current is not None,
        role=current.role if current is not None else Role.GUEST,
        user=current,
        owner_exists=owner_exists(db),
    )
