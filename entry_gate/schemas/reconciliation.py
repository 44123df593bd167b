"""Reconciliation Schemas - REST contracts for the paid-but-unticketed log.

Invariants:
    - ResolveRequest.note: 3-500 chars, stripped, non-empty
    - Responses never include credentials
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReconciliationEntryResponse(BaseModel):
    """Public view of a reconciliation entry."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_id: str
    attempt_id: str
    game_id: str
    amount_minor_units: int
    destination_address: str
    status: str
    entry_ticket_id: str | None = None
    error_message: str | None = None
    resolution_note: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None


class ResolveRequest(BaseModel):
    """Manual resolution of an open entry."""
    note: str = Field(min_length=3, max_length=500)
    entry_ticket_id: str | None = Field(None, max_length=128)

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("note cannot be empty or whitespace")
        return v
