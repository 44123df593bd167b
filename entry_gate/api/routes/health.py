"""Health & Readiness Probes - liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if database is unreachable (readiness)
    - Readiness reports the open reconciliation backlog; a backlog never fails the probe
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from entry_gate.config import get_settings
import entry_gate.infrastructure.database as db_module
from entry_gate.infrastructure.reconciliation_repository import SqlReconciliationLog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "entry-gate-api"
SERVICE_VERSION = "1.0.0"


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe, with the game this gate sells entries for."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "game_id": get_settings().game_id,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe - database connectivity plus unticketed payment backlog."""
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    open_entries = await SqlReconciliationLog(manager).count_open()
    if open_entries:
        logger.warning(f"{open_entries} paid entries awaiting reconciliation")
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "open_reconciliation_entries": open_entries,
    }
