"""
Runtime configuration for the Retro Games Portal API.

Values come from the environment (a local .env file is loaded first).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Database
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "retro_games_portal")

# Auth settings
SECRET_KEY = os.getenv("JWT_SECRET", "super-secret-key-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))
MIN_PASSWORD_LENGTH = 6
OWNER_EMAIL = os.getenv("OWNER_EMAIL")

# HTTP
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "http://localhost:3000")
PORT = int(os.getenv("PORT", 5000))

# 100 requests per source address every 15 minutes
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", 100))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 15 * 60))
# set when running behind a reverse proxy that sets X-Forwarded-For
TRUST_PROXY = os.getenv("TRUST_PROXY", "false").strip().lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
