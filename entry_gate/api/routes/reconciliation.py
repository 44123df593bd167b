"""Reconciliation Routes - inspect and resolve confirmed payments without a ticket.

Invariants:
    - Default listing shows open entries only (confirmed, unticketed)
    - Unknown transaction ids -> 404; resolving a closed entry -> 409
    - Routes hold no logic beyond request parsing; the repository enforces transitions
"""

import logging

from fastapi import APIRouter, Depends, Query

from entry_gate.core.domain_types import (
    OPEN_RECONCILIATION_STATUSES, ReconciliationStatus,
)
from entry_gate.infrastructure.database import DatabaseSessionManager, get_db_manager
from entry_gate.infrastructure.reconciliation_repository import SqlReconciliationLog
from entry_gate.schemas.reconciliation import (
    ReconciliationEntryResponse, ResolveRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/reconciliation", tags=["reconciliation"])


def get_reconciliation_log(
    manager: DatabaseSessionManager = Depends(get_db_manager),
) -> SqlReconciliationLog:
    return SqlReconciliationLog(manager)


@router.get("")
async def list_entries(
    status_filter: ReconciliationStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    log: SqlReconciliationLog = Depends(get_reconciliation_log),
):
    """List reconciliation entries, open ones by default."""
    statuses = (status_filter,) if status_filter else OPEN_RECONCILIATION_STATUSES
    entries = await log.list_entries(statuses, limit=limit, offset=offset)
    return {
        "entries": [
            ReconciliationEntryResponse.model_validate(e).model_dump(mode="json")
            for e in entries
        ],
        "pagination": {"limit": limit, "offset": offset},
    }


@router.get("/{transaction_id}", response_model=ReconciliationEntryResponse)
async def get_entry(
    transaction_id: str,
    log: SqlReconciliationLog = Depends(get_reconciliation_log),
):
    """Get one entry by ledger transaction id."""
    return await log.get(transaction_id)


@router.post("/{transaction_id}/resolve", response_model=ReconciliationEntryResponse)
async def resolve_entry(
    transaction_id: str,
    body: ResolveRequest,
    log: SqlReconciliationLog = Depends(get_reconciliation_log),
):
    """Close an open entry after manual follow-up."""
    return await log.resolve(
        transaction_id, body.note, entry_ticket_id=body.entry_ticket_id,
    )
