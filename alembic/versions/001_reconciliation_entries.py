"""Reconciliation entries - confirmed payments awaiting or missing an entry ticket.

Revision ID: 001_reconciliation_entries
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_reconciliation_entries"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reconciliation_entries",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("transaction_id", sa.String(128), nullable=False),
        sa.Column("attempt_id", sa.String(64), nullable=False),
        sa.Column("game_id", sa.String(100), nullable=False),
        sa.Column("amount_minor_units", sa.BigInteger, nullable=False),
        sa.Column("destination_address", sa.String(128), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("entry_ticket_id", sa.String(128), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("resolution_note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_reconciliation_entries_transaction_id",
        "reconciliation_entries", ["transaction_id"], unique=True,
    )
    op.create_index(
        "ix_reconciliation_entries_status",
        "reconciliation_entries", ["status"],
    )


def downgrade() -> None:
    op.drop_index("ix_reconciliation_entries_status", table_name="reconciliation_entries")
    op.drop_index("ix_reconciliation_entries_transaction_id", table_name="reconciliation_entries")
    op.drop_table("reconciliation_entries")
