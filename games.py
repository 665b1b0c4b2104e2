"""Game catalog routes: public reads, admin/owner mutations."""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query, status
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import GAMES, USERS, create_document, get_db, parse_object_id, utcnow
from errors import DuplicateName, NotFound, ValidationError
from filters import MIN_YEAR, find_games, parse_game_query
from schemas import (
    GENRES,
    PLATFORMS,
    FilterOptions,
    Game,
    GameCreate,
    GameListResponse,
    GameOut,
    GameResponse,
    GameUpdate,
    Pagination,
    UserOut,
    UserRef,
    YearRange,
)
from security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/games", tags=["Games"])

FUTURE_RELEASE_MESSAGE = "Release date cannot be in the future."


def _user_refs(database: Database, docs: Iterable[dict]) -> Dict[ObjectId, str]:
    ids = {doc.get(key) for doc in docs for key in ("created_by", "updated_by")}
    ids.discard(None)
    if not ids:
        return {}
    users = database[USERS].find({"_id": {"$in": list(ids)}}, {"email": 1})
    return {u["_id"]: u.get("email") for u in users}


def _ref(user_id: Optional[ObjectId], emails: Dict[ObjectId, str]) -> Optional[UserRef]:
    if user_id is None:
        return None
    return UserRef(id=str(user_id), email=emails.get(user_id))


def game_doc_to_out(doc: dict, emails: Optional[Dict[ObjectId, str]] = None) -> GameOut:
    emails = emails or {}
    release_date: datetime = doc["release_date"]
    return GameOut(
        id=str(doc["_id"]),
        name=doc["name"],
        genre=doc["genre"],
        platforms=doc.get("platforms", []),
        release_date=release_date,
        release_year=release_date.year,
        has_multiplayer=doc["has_multiplayer"],
        description=doc.get("description"),
        image_url=doc.get("image_url"),
        rating=doc.get("rating"),
        created_by=_ref(doc.get("created_by"), emails),
        updated_by=_ref(doc.get("updated_by"), emails),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


def _games_out(database: Database, docs: List[dict]) -> List[GameOut]:
    emails = _user_refs(database, docs)
    return [game_doc_to_out(d, emails) for d in docs]


def _find_game(database: Database, game_id: str) -> dict:
    oid = parse_object_id(game_id)
    doc = database[GAMES].find_one({"_id": oid}) if oid is not None else None
    if doc is None:
        raise NotFound("Game not found")
    return doc


def _reject_future(release_date: datetime) -> None:
    if release_date > utcnow():
        raise ValidationError(FUTURE_RELEASE_MESSAGE)


def get_game(database: Database, game_id: str) -> GameOut:
    return _games_out(database, [_find_game(database, game_id)])[0]


def create_game(database: Database, payload: GameCreate, acting_user: UserOut) -> GameOut:
    _reject_future(payload.release_date)
    if database[GAMES].find_one({"name": payload.name}) is not None:
        raise DuplicateName()

    game = Game(**payload.model_dump(), created_by=ObjectId(acting_user.id))
    try:
        game_id = create_document(database, GAMES, game)
    except DuplicateKeyError:
        # lost a race against a concurrent insert of the same name
        raise DuplicateName()
    logger.info("Game %r created by %s", payload.name, acting_user.email)
    return get_game(database, game_id)


def update_game(database: Database, game_id: str, payload: GameUpdate, acting_user: UserOut) -> GameOut:
    doc = _find_game(database, game_id)
    changes = payload.model_dump(exclude_unset=True)

    if "release_date" in changes:
        _reject_future(changes["release_date"])
    if "name" in changes:
        clash = database[GAMES].find_one({"name": changes["name"], "_id": {"$ne": doc["_id"]}})
        if clash is not None:
            raise DuplicateName()

    changes["updated_by"] = ObjectId(acting_user.id)
    changes["updated_at"] = utcnow()
    try:
        database[GAMES].update_one({"_id": doc["_id"]}, {"$set": changes})
    except DuplicateKeyError:
        raise DuplicateName()
    logger.info("Game %s updated by %s (fields: %s)", doc["_id"], acting_user.email, ", ".join(sorted(changes)))
    return get_game(database, game_id)


def delete_game(database: Database, game_id: str, acting_user: UserOut) -> None:
    doc = _find_game(database, game_id)
    database[GAMES].delete_one({"_id": doc["_id"]})
    logger.info("Game %r deleted by %s", doc["name"], acting_user.email)


def filter_options(database: Database) -> FilterOptions:
    games = database[GAMES]
    oldest = games.find_one({}, {"release_date": 1}, sort=[("release_date", ASCENDING)])
    newest = games.find_one({}, {"release_date": 1}, sort=[("release_date", DESCENDING)])
    if oldest is None or newest is None:
        year_range = YearRange(min=MIN_YEAR, max=utcnow().year)
    else:
        year_range = YearRange(min=oldest["release_date"].year, max=newest["release_date"].year)
    return FilterOptions(genres=GENRES, platforms=PLATFORMS, year_range=year_range)


# Routes
@router.get("", response_model=GameListResponse)
def list_games(
    search: Optional[str] = None,
    genre: Optional[str] = None,
    year_from: Optional[str] = Query(None, alias="yearFrom"),
    year_to: Optional[str] = Query(None, alias="yearTo"),
    multiplayer: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    query = parse_game_query(search, genre, year_from, year_to, multiplayer, page, limit)
    docs, meta = find_games(db, query)
    return GameListResponse(games=_games_out(db, docs), pagination=Pagination(**meta))


@router.get("/filters/options", response_model=FilterOptions)
def read_filter_options(db: Database = Depends(get_db)):
    return filter_options(db)


@router.get("/{game_id}", response_model=GameResponse)
def read_game(game_id: str, db: Database = Depends(get_db)):
    return GameResponse(game=get_game(db, game_id))


@router.post("", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
def create_game_route(payload: GameCreate, user: UserOut = Depends(require_admin), db: Database = Depends(get_db)):
    return GameResponse(message="Game created successfully", game=create_game(db, payload, user))


@router.put("/{game_id}", response_model=GameResponse)
def update_game_route(
    game_id: str,
    payload: GameUpdate,
    user: UserOut = Depends(require_admin),
    db: Database = Depends(get_db),
):
    return GameResponse(message="Game updated successfully", game=update_game(db, game_id, payload, user))


@router.delete("/{game_id}")
def delete_game_route(game_id: str, user: UserOut = Depends(require_admin), db: Database = Depends(get_db)):
    delete_game(db, game_id, user)
    return {"message": "Game deleted successfully"}
