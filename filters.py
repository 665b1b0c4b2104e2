"""
Translate game list query parameters into a MongoDB query.

Parameters arrive as raw query-string values. Absent or empty values add no
constraint; everything else is validated up front so a bad request never
reaches the database.
"""
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING
from pymongo.database import Database

from database import GAMES, utcnow
from errors import ValidationError

MIN_YEAR = 1970
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_LIMIT = 1000
# skip travels to MongoDB as a signed 64-bit integer
MAX_SKIP = 2 ** 63 - 1
SORT = [("name", ASCENDING)]


@dataclass
class GameQuery:
    search: Optional[str] = None
    genre: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    multiplayer: Optional[bool] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _blank(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


def _parse_year(value: str, field: str, errors: List[Dict[str, Any]], current_year: int) -> Optional[int]:
    try:
        year = int(str(value).strip())
    except ValueError:
        year = None
    if year is None or not MIN_YEAR <= year <= current_year:
        errors.append({"field": field, "message": "Year must be between 1970 and current year"})
        return None
    return year


def _parse_int(value: str, field: str, errors: List[Dict[str, Any]], low: int, high: Optional[int] = None) -> Optional[int]:
    try:
        number = int(str(value).strip())
    except ValueError:
        number = None
    if number is None or number < low or (high is not None and number > high):
        bound = f"between {low} and {high}" if high is not None else f"at least {low}"
        errors.append({"field": field, "message": f"{field.capitalize()} must be an integer {bound}"})
        return None
    return number


def parse_game_query(
    search: Optional[str] = None,
    genre: Optional[str] = None,
    year_from: Optional[str] = None,
    year_to: Optional[str] = None,
    multiplayer: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    now: Optional[datetime] = None,
) -> GameQuery:
    """Validate raw parameters, collecting every problem into one ValidationError."""
    current_year = (now or utcnow()).year
    errors: List[Dict[str, Any]] = []
    query = GameQuery()

    if not _blank(search):
        query.search = search.strip()
    if not _blank(genre):
        query.genre = genre.strip()
    if not _blank(year_from):
        query.year_from = _parse_year(year_from, "yearFrom", errors, current_year)
    if not _blank(year_to):
        query.year_to = _parse_year(year_to, "yearTo", errors, current_year)
    if not _blank(multiplayer):
        flag = multiplayer.strip()
        if flag not in ("true", "false"):
            errors.append({"field": "multiplayer", "message": "Multiplayer must be true or false"})
        else:
            query.multiplayer = flag == "true"
    if not _blank(page):
        query.page = _parse_int(page, "page", errors, 1) or DEFAULT_PAGE
    if not _blank(limit):
        query.limit = _parse_int(limit, "limit", errors, 1, MAX_LIMIT) or DEFAULT_LIMIT
    if query.skip > MAX_SKIP:
        errors.append({"field": "page", "message": "Page is too large"})

    if errors:
        raise ValidationError(errors=errors)
    return query


def build_filter(query: GameQuery) -> Dict[str, Any]:
    """Conjunctive MongoDB filter over only the parameters that were given."""
    mongo_filter: Dict[str, Any] = {}
    if query.search:
        mongo_filter["name"] = {"$regex": re.escape(query.search), "$options": "i"}
    if query.genre:
        mongo_filter["genre"] = query.genre
    if query.year_from is not None or query.year_to is not None:
        date_range = {}
        if query.year_from is not None:
            date_range["$gte"] = datetime(query.year_from, 1, 1)
        if query.year_to is not None:
            date_range["$lt"] = datetime(query.year_to + 1, 1, 1)
        mongo_filter["release_date"] = date_range
    if query.multiplayer is not None:
        mongo_filter["has_multiplayer"] = query.multiplayer
    return mongo_filter


def pagination_meta(query: GameQuery, total: int, returned: int) -> Dict[str, Any]:
    return {
        "current_page": query.page,
        "total_pages": math.ceil(total / query.limit),
        "total_games": total,
        "has_next_page": query.skip + returned < total,
        "has_prev_page": query.page > 1,
    }


def find_games(database: Database, query: GameQuery):
    """Run ``query`` and return (documents on the page, pagination metadata)."""
    collection = database[GAMES]
    mongo_filter = build_filter(query)
    docs = list(collection.find(mongo_filter).sort(SORT).skip(query.skip).limit(query.limit))
    total = collection.count_documents(mongo_filter)
    return docs, pagination_meta(query, total, len(docs))
