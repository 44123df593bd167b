"""Entry Gate API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map EntryGateError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from entry_gate.api.error_handlers import register_error_handlers
from entry_gate.api.routes import health, reconciliation
from entry_gate.config import get_settings
from entry_gate.infrastructure.database import init_db
from entry_gate.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Entry Gate API started")
    yield
    await manager.dispose()
    logger.info("Entry Gate API shutting down")


app = FastAPI(
    title="Entry Gate API", version=health.SERVICE_VERSION, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(reconciliation.router)

register_error_handlers(app)
