"""Reconciliation Entry ORM - durable record of a confirmed payment until it is ticketed.

Invariants:
    - transaction_id is unique: one entry per ledger payment
    - status transitions: confirmed -> ticketed | unticketed; unticketed | confirmed -> resolved
    - amount_minor_units is the exact integer amount submitted to the ledger
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import Uuid

from entry_gate.core.domain_types import ReconciliationStatus
from entry_gate.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationEntry(Base):
    """One confirmed ledger payment and what became of its entry ticket."""
    __tablename__ = "reconciliation_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    transaction_id: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True, index=True,
    )
    attempt_id: Mapped[str] = mapped_column(String(64), nullable=False)
    game_id: Mapped[str] = mapped_column(String(100), nullable=False)
    amount_minor_units: Mapped[int] = mapped_column(BigInteger, nullable=False)
    destination_address: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReconciliationStatus.CONFIRMED.value,
        index=True,
    )
    entry_ticket_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolution_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
