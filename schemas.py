"""
Database Schemas and API models for the Retro Games Portal

The stored models (User, Game) map to MongoDB collections and use
snake_case keys. API models speak camelCase JSON through an alias generator
and accept either spelling on input.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

IMAGE_URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)
DESCRIPTION_MAX_LENGTH = 500
NAME_MIN_LENGTH = 2


class Role(str, Enum):
    """Account roles, declared from least to most privileged."""

    GUEST = "guest"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return list(Role).index(self)


class Genre(str, Enum):
    ACTION = "Action"
    ADVENTURE = "Adventure"
    RPG = "RPG"
    STRATEGY = "Strategy"
    SIMULATION = "Simulation"
    SPORTS = "Sports"
    RACING = "Racing"
    PUZZLE = "Puzzle"
    PLATFORMER = "Platformer"
    SHOOTER = "Shooter"
    FIGHTING = "Fighting"
    ARCADE = "Arcade"
    EDUCATIONAL = "Educational"
    OTHER = "Other"


class Platform(str, Enum):
    NES = "NES"
    SNES = "SNES"
    N64 = "N64"
    GAMECUBE = "GameCube"
    WII = "Wii"
    GAME_BOY = "Game Boy"
    GAME_BOY_COLOR = "Game Boy Color"
    GAME_BOY_ADVANCE = "Game Boy Advance"
    DS = "DS"
    THREE_DS = "3DS"
    SEGA_GENESIS = "Sega Genesis"
    SEGA_SATURN = "Sega Saturn"
    SEGA_DREAMCAST = "Sega Dreamcast"
    PLAYSTATION = "PlayStation"
    PLAYSTATION_2 = "PlayStation 2"
    PLAYSTATION_3 = "PlayStation 3"
    PSP = "PSP"
    XBOX = "Xbox"
    XBOX_360 = "Xbox 360"
    PC = "PC"
    ARCADE = "Arcade"
    ATARI_2600 = "Atari 2600"
    ATARI_7800 = "Atari 7800"
    COMMODORE_64 = "Commodore 64"
    AMIGA = "Amiga"
    OTHER = "Other"


GENRES = [g.value for g in Genre]
PLATFORMS = [p.value for p in Platform]


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# --- Stored documents ---

class User(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    email: NormalizedEmail = Field(..., description="Login email, stored lowercased")
    password_hash: str = Field(..., description="BCrypt hashed password")
    role: Role = Field(Role.GUEST, description="Role of the user")
    last_login: Optional[datetime] = Field(None, description="Last successful login")


class Game(BaseModel):
    model_config = ConfigDict(use_enum_values=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique game name")
    genre: Genre
    platforms: List[Platform]
    release_date: datetime
    has_multiplayer: bool
    description: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    created_by: ObjectId = Field(..., description="User who created the record")
    updated_by: Optional[ObjectId] = None


# --- Request bodies ---

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class GameFields(CamelModel):
    """Field rules shared by create and update payloads."""

    @field_validator("name", mode="before", check_fields=False)
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def strip_description(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("image_url", mode="before", check_fields=False)
    @classmethod
    def check_image_url(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            if not IMAGE_URL_PATTERN.match(value):
                raise ValueError("Invalid image URL")
        return value

    @field_validator("platforms", check_fields=False)
    @classmethod
    def unique_platforms(cls, value):
        # a set in meaning; keep first-seen order
        return list(dict.fromkeys(value)) if value is not None else value

    @field_validator("release_date", check_fields=False)
    @classmethod
    def naive_release_date(cls, value):
        return to_naive_utc(value) if isinstance(value, datetime) else value


class GameCreate(GameFields):
    name: str = Field(..., min_length=NAME_MIN_LENGTH)
    genre: Genre
    platforms: List[Platform] = Field(..., min_length=1)
    release_date: datetime
    has_multiplayer: bool
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    image_url: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=10)


class GameUpdate(GameFields):
    name: Optional[str] = Field(None, min_length=NAME_MIN_LENGTH)
    genre: Optional[Genre] = None
    platforms: Optional[List[Platform]] = Field(None, min_length=1)
    release_date: Optional[datetime] = None
    has_multiplayer: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    image_url: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=10)

    @model_validator(mode="after")
    def required_fields_not_null(self):
        for field in ("name", "genre", "platforms", "release_date", "has_multiplayer"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self


class LoginBody(CamelModel):
    email: Annotated[str, BeforeValidator(normalize_email)]
    password: str


class RegisterBody(CamelModel):
    email: NormalizedEmail
    password: str
    confirm_password: str


class AdminCreateBody(RegisterBody):
    pass


# --- Responses ---

class UserRef(CamelModel):
    id: str
    email: Optional[str] = None


class UserOut(CamelModel):
    id: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class GameOut(CamelModel):
    id: str
    name: str
    genre: str
    platforms: List[str]
    release_date: datetime
    release_year: int
    has_multiplayer: bool
    description: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    created_by: Optional[UserRef] = None
    updated_by: Optional[UserRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_games: int
    has_next_page: bool
    has_prev_page: bool


class GameListResponse(CamelModel):
    games: List[GameOut]
    pagination: Pagination


class GameResponse(CamelModel):
    message: Optional[str] = None
    game: GameOut


class YearRange(CamelModel):
    min: int
    max: int


class FilterOptions(CamelModel):
    genres: List[str]
    platforms: List[str]
    year_range: YearRange


class AuthResponse(CamelModel):
    message: Optional[str] = None
    token: str
    user: UserOut


class SessionOut(CamelModel):
    authenticated: bool
    role: Role
    user: Optional[UserOut] = None
    owner_exists: bool
