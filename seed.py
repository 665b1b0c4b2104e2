"""
Populate the catalog with sample retro games, or clear user accounts.

    python seed.py                 # insert sample games that are missing
    python seed.py --reset         # drop every game first, then seed
    python seed.py --clear-users   # delete all users, games are preserved
"""
import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

import database
from database import GAMES, USERS, create_document
from logging_config import setup_logging
from schemas import Game, Role

logger = logging.getLogger("seed")

SAMPLE_GAMES = [
    {
        "name": "Super Mario Bros.",
        "genre": "Platformer",
        "platforms": ["NES"],
        "release_date": datetime(1985, 9, 13),
        "has_multiplayer": True,
        "description": "Mario (or Luigi in 2-player mode) races through the Mushroom Kingdom to rescue Princess Peach from Bowser.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/0/03/Super_Mario_Bros._box.png",
        "rating": 9.5,
    },
    {
        "name": "The Legend of Zelda",
        "genre": "Adventure",
        "platforms": ["NES"],
        "release_date": datetime(1986, 2, 21),
        "has_multiplayer": False,
        "description": "Link explores Hyrule, collecting items and defeating enemies to rescue Princess Zelda from Ganon.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/4/41/Legend_of_zelda_cover_%28with_cartridge%29_gold.png",
        "rating": 9.2,
    },
    {
        "name": "Teenage Mutant Ninja Turtles",
        "genre": "Action",
        "platforms": ["NES"],
        "release_date": datetime(1989, 5, 12),
        "has_multiplayer": True,
        "description": "The four turtles fight the Foot Clan to rescue April O'Neil.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/5/5a/Teenage_Mutant_Ninja_Turtles_NES_cover.jpg",
        "rating": 7.8,
    },
    {
        "name": "Chip 'n Dale Rescue Rangers",
        "genre": "Platformer",
        "platforms": ["NES"],
        "release_date": datetime(1990, 6, 8),
        "has_multiplayer": False,
        "description": "Chip and Dale rescue Gadget from Fat Cat, throwing crates and collecting acorns along the way.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/8/8a/Chip_%27n_Dale_Rescue_Rangers_NES_cover.jpg",
        "rating": 8.5,
    },
    {
        "name": "Mega Man 2",
        "genre": "Action",
        "platforms": ["NES"],
        "release_date": datetime(1988, 12, 24),
        "has_multiplayer": False,
        "description": "Mega Man battles eight robot masters to stop Dr. Wily.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/2/27/Mega_Man_2_cover.jpg",
        "rating": 9.0,
    },
    {
        "name": "Contra",
        "genre": "Shooter",
        "platforms": ["NES", "Arcade"],
        "release_date": datetime(1987, 2, 20),
        "has_multiplayer": True,
        "description": "A run-and-gun shooter against alien forces, famous for the Konami Code.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/8/8a/Contra_cover.jpg",
        "rating": 8.8,
    },
    {
        "name": "Pac-Man",
        "genre": "Arcade",
        "platforms": ["Arcade", "NES", "Atari 2600"],
        "release_date": datetime(1980, 5, 22),
        "has_multiplayer": False,
        "description": "Guide Pac-Man through the maze while avoiding ghosts and eating dots.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/5/59/Pac-man.png",
        "rating": 9.0,
    },
    {
        "name": "Tetris",
        "genre": "Puzzle",
        "platforms": ["Game Boy", "NES", "Arcade"],
        "release_date": datetime(1984, 6, 6),
        "has_multiplayer": False,
        "description": "Arrange falling blocks to complete lines.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/5/5c/Tetris_NES_cover_art.jpg",
        "rating": 9.2,
    },
    {
        "name": "Street Fighter II",
        "genre": "Fighting",
        "platforms": ["Arcade", "SNES", "Sega Genesis"],
        "release_date": datetime(1991, 2, 6),
        "has_multiplayer": True,
        "description": "Choose from eight fighters and battle it out.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/1/1f/Street_Fighter_II_arcade.png",
        "rating": 9.3,
    },
    {
        "name": "Sonic the Hedgehog",
        "genre": "Platformer",
        "platforms": ["Sega Genesis"],
        "release_date": datetime(1991, 6, 23),
        "has_multiplayer": False,
        "description": "Run at high speed through colorful zones while collecting rings.",
        "image_url": "https://upload.wikimedia.org/wikipedia/en/b/ba/Sonic_the_Hedgehog_1_Genesis_box_art.jpg",
        "rating": 8.9,
    },
]


def seed_owner_id(db: Database) -> Optional[ObjectId]:
    """The owner, or the longest-standing admin when no owner is registered."""
    users = db[USERS]
    owner = users.find_one({"role": Role.OWNER.value}, {"_id": 1})
    if owner is None:
        owner = users.find_one({"role": Role.ADMIN.value}, {"_id": 1}, sort=[("created_at", ASCENDING)])
    return owner["_id"] if owner else None


def seed_games(db: Database, created_by: ObjectId, reset: bool = False) -> int:
    """Insert sample games whose names are not taken yet; returns how many were added."""
    games = db[GAMES]
    if reset:
        removed = games.delete_many({}).deleted_count
        logger.info("Removed %d existing games", removed)

    added = 0
    for sample in SAMPLE_GAMES:
        if games.find_one({"name": sample["name"]}) is not None:
            continue
        create_document(db, GAMES, Game(**sample, created_by=created_by))
        added += 1
    logger.info("Seeded %d games (%d already present)", added, len(SAMPLE_GAMES) - added)
    return added


def clear_users(db: Database) -> int:
    deleted = db[USERS].delete_many({}).deleted_count
    logger.info("Deleted %d users from the database (games are preserved)", deleted)
    return deleted


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the Retro Games Portal database.")
    parser.add_argument("--reset", action="store_true", help="delete all games before seeding")
    parser.add_argument("--clear-users", action="store_true", help="delete all users and exit")
    args = parser.parse_args(argv)

    setup_logging()
    db = database.db
    try:
        database.ensure_indexes(db)
        if args.clear_users:
            clear_users(db)
            return 0
        owner_id = seed_owner_id(db)
        if owner_id is None:
            logger.error("No owner or admin account found; register the owner before seeding games")
            return 1
        seed_games(db, owner_id, reset=args.reset)
    except PyMongoError as exc:
        logger.error("MongoDB error while seeding: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
