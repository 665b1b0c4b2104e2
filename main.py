import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

import admin
import auth
import config
import database
import games
from errors import register_exception_handlers
from logging_config import setup_logging
from rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)


def create_app(db: Optional[Database] = None, rate_limit: bool = True) -> FastAPI:
    """Build the API. ``db`` defaults to the configured MongoDB database."""
    app = FastAPI(
        title="Retro Games Portal API",
        description="Browse and manage a catalog of retro video games.",
        version="1.0.0",
    )
    app.state.db = db if db is not None else database.db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if rate_limit:
        # added last so it wraps CORS and runs ahead of routing
        app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)
    app.include_router(auth.router)
    app.include_router(games.router)
    app.include_router(admin.router)

    @app.get("/")
    def read_root():
        return {"message": "Retro Games Portal API running", "docs": "/docs", "health": "/api/health"}

    @app.get("/api/health")
    def health():
        return {"status": "OK", "message": "Retro Games Portal API is running!"}

    @app.on_event("startup")
    def prepare_database():
        try:
            database.ensure_indexes(app.state.db)
        except PyMongoError as exc:
            # requests will surface the connection problem; keep the process up
            logger.error("Could not ensure MongoDB indexes: %s", exc)

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Retro Games Portal server starting on port %s", config.PORT)
    if config.OWNER_EMAIL:
        logger.info("Owner email: %s", config.OWNER_EMAIL)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
