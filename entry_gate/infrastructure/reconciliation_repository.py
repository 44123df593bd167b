"""Reconciliation Repository - SQLAlchemy implementation of the ReconciliationLog protocol.

Invariants:
    - record_confirmed is idempotent per transaction_id (a second call leaves the entry as is)
    - mark_* on an unknown transaction creates nothing and logs a warning
    - resolve() only accepts open entries (confirmed or unticketed)
    - Every write commits in its own session; failures surface as DatabaseError
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select

from entry_gate.core.domain_types import (
    MinorUnits, OPEN_RECONCILIATION_STATUSES, ReconciliationStatus, TransactionId,
)
from entry_gate.core.errors import InvalidTransitionError, ResourceNotFoundError
from entry_gate.infrastructure.database import DatabaseSessionManager
from entry_gate.models.reconciliation_entry import ReconciliationEntry

logger = logging.getLogger(__name__)


class SqlReconciliationLog:
    """Persists confirmed payments so a restart cannot lose an unticketed one."""

    def __init__(self, manager: DatabaseSessionManager):
        self.manager = manager

    async def record_confirmed(
        self,
        transaction_id: TransactionId,
        attempt_id: str,
        game_id: str,
        amount_minor_units: MinorUnits,
        destination_address: str,
    ) -> None:
        async with self.manager.session() as db:
            existing = await self._find(db, transaction_id)
            if existing is not None:
                logger.warning(
                    "Payment already recorded",
                    extra={"transaction_id": transaction_id},
                )
                return
            db.add(ReconciliationEntry(
                transaction_id=transaction_id,
                attempt_id=attempt_id,
                game_id=game_id,
                amount_minor_units=amount_minor_units,
                destination_address=destination_address,
                status=ReconciliationStatus.CONFIRMED.value,
            ))
            await db.commit()

    async def mark_ticketed(
        self, transaction_id: TransactionId, entry_ticket_id: str,
    ) -> None:
        await self._update(
            transaction_id,
            status=ReconciliationStatus.TICKETED.value,
            entry_ticket_id=entry_ticket_id,
        )

    async def mark_unticketed(
        self, transaction_id: TransactionId, error_message: str,
    ) -> None:
        await self._update(
            transaction_id,
            status=ReconciliationStatus.UNTICKETED.value,
            error_message=error_message,
        )

    async def list_entries(
        self,
        statuses: tuple[ReconciliationStatus, ...] = OPEN_RECONCILIATION_STATUSES,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ReconciliationEntry]:
        async with self.manager.session() as db:
            result = await db.execute(
                select(ReconciliationEntry)
                .where(ReconciliationEntry.status.in_([s.value for s in statuses]))
                .order_by(ReconciliationEntry.created_at.desc())
                .limit(limit)
                .offset(offset),
            )
            return list(result.scalars().all())

    async def count_open(self) -> int:
        """Confirmed payments still waiting on a ticket or on manual follow-up."""
        async with self.manager.session() as db:
            result = await db.execute(
                select(func.count()).select_from(ReconciliationEntry).where(
                    ReconciliationEntry.status.in_(
                        [s.value for s in OPEN_RECONCILIATION_STATUSES],
                    ),
                ),
            )
            return int(result.scalar_one())

    async def get(self, transaction_id: str) -> ReconciliationEntry:
        async with self.manager.session() as db:
            entry = await self._find(db, transaction_id)
        if entry is None:
            raise ResourceNotFoundError("Reconciliation entry", transaction_id)
        return entry

    async def resolve(
        self, transaction_id: str, note: str, entry_ticket_id: str | None = None,
    ) -> ReconciliationEntry:
        """Close an open entry after manual follow-up."""
        async with self.manager.session() as db:
            entry = await self._find(db, transaction_id)
            if entry is None:
                raise ResourceNotFoundError("Reconciliation entry", transaction_id)
            if entry.status not in {s.value for s in OPEN_RECONCILIATION_STATUSES}:
                raise InvalidTransitionError("resolve", entry.status)
            entry.status = ReconciliationStatus.RESOLVED.value
            entry.resolution_note = note
            entry.resolved_at = datetime.now(timezone.utc)
            if entry_ticket_id:
                entry.entry_ticket_id = entry_ticket_id
            await db.commit()
            await db.refresh(entry)
        logger.info("Reconciliation entry resolved", extra={"transaction_id": transaction_id})
        return entry

    async def _update(self, transaction_id: str, **fields: object) -> None:
        async with self.manager.session() as db:
            entry = await self._find(db, transaction_id)
            if entry is None:
                logger.warning(
                    f"No reconciliation entry to mark {fields.get('status')}",
                    extra={"transaction_id": transaction_id},
                )
                return
            for name, value in fields.items():
                setattr(entry, name, value)
            await db.commit()

    @staticmethod
    async def _find(db, transaction_id: str) -> ReconciliationEntry | None:
        result = await db.execute(
            select(ReconciliationEntry).where(
                ReconciliationEntry.transaction_id == transaction_id,
            ),
        )
        return result.scalar_one_or_none()
