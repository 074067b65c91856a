"""BlockEstate API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map BlockEstateError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup; provider HTTP clients and the engine closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers live in api/error_handlers.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blockestate.api.dependencies import close_clients
from blockestate.api.error_handlers import register_error_handlers
from blockestate.api.routes import art_generation, assets, health
from blockestate.config import get_settings
from blockestate.infrastructure.database import close_db, init_db
from blockestate.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("BlockEstate API started")
    yield
    await close_clients()
    await close_db()
    logger.info("BlockEstate API shutting down")


app = FastAPI(
    title="BlockEstate API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(art_generation.router)
app.include_router(assets.router)

register_error_handlers(app)
