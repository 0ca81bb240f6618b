# dormfix/main.py
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from dormfix.config import Settings
from dormfix.db import create_client, ensure_indexes, get_database
from dormfix.errors import register_exception_handlers
from dormfix.logging_config import configure_logging
from dormfix.routers import auth, locations, tickets

logger = logging.getLogger(__name__)


# -------------------------
# Shared clients live for the whole process
# -------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    settings.check()

    mongo = create_client(settings)
    app.state.db = get_database(mongo, settings)
    app.state.http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.openai = (
        AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.http_timeout_seconds, max_retries=0)
        if settings.openai_api_key
        else None
    )

    await ensure_indexes(app.state.db)
    logger.info("DormFix API started (database %s)", settings.database_name)
    try:
        yield
    finally:
        await app.state.http.aclose()
        if app.state.openai is not None:
            await app.state.openai.close()
        mongo.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = FastAPI(title="DormFix API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # -------------------------
    # Root Route
    # -------------------------
    @app.get("/")
    def read_root():
        return {"message": "Welcome to the DormFix API!"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # -------------------------
    # Include Routers
    # -------------------------
    app.include_router(auth.router)
    app.include_router(locations.router)
    app.include_router(tickets.router)

    return app


app = create_app()
