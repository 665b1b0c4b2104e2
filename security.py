"""
Authentication and access control.

Passwords are hashed with bcrypt through passlib, bearer tokens are HS256
JWTs carrying the user id in ``sub``. Guards run in a fixed order: token
verification, then the role check, then the route handler.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

import config
from database import USERS, get_db, parse_object_id
from errors import Forbidden, TokenExpired, TokenInvalid, Unauthorized
from schemas import Role, UserOut

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)
# auto_error=False so a missing header reaches our own Unauthorized error
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def token_for_user(user_doc: dict) -> str:
    return create_access_token({"sub": str(user_doc["_id"]), "role": user_doc.get("role", Role.GUEST.value)})


def verify_token(token: str) -> str:
    """Return the user id embedded in ``token``.

    Raises TokenExpired for a correctly signed token past its ``exp``, and
    TokenInvalid for anything else that does not decode to a user id.
    """
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise TokenInvalid()
    user_id = payload.get("sub")
    if not user_id:
        raise TokenInvalid()
    return user_id


def user_doc_to_out(doc: dict) -> UserOut:
    return UserOut(
        id=str(doc["_id"]),
        email=doc.get("email"),
        role=doc.get("role", Role.GUEST.value),
        created_at=doc.get("created_at"),
        last_login=doc.get("last_login"),
    )


def resolve_user(database: Database, token: Optional[str]) -> UserOut:
    if not token:
        raise Unauthorized()
    user_id = parse_object_id(verify_token(token))
    if user_id is None:
        raise TokenInvalid()
    user = database[USERS].find_one({"_id": user_id}, {"password_hash": 0})
    if user is None:
        raise TokenInvalid()
    return user_doc_to_out(user)


def role_at_least(role, required) -> bool:
    """Single comparison over the ordered roles: guest < admin < owner."""
    try:
        return Role(role).rank >= Role(required).rank
    except ValueError:
        return False


# Dependency to get current user
def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)) -> UserOut:
    return resolve_user(db, token)


def get_optional_user(token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)) -> Optional[UserOut]:
    """Best-effort resolution: a bad or expired token means a guest."""
    if not token:
        return None
    try:
        return resolve_user(db, token)
    except Unauthorized as exc:
        logger.debug("Ignoring unusable bearer token: %s", exc.message)
        return None


def require_admin(user: UserOut = Depends(get_current_user)) -> UserOut:
    if not role_at_least(user.role, Role.ADMIN):
        raise Forbidden("Admin access required")
    return user


def require_owner(user: UserOut = Depends(get_current_user)) -> UserOut:
    if not role_at_least(user.role, Role.OWNER):
        raise Forbidden("Owner access required")
    return user
