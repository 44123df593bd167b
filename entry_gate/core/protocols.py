"""Boundary Protocols - contracts between the orchestrator and its collaborators.

Invariants:
    - The orchestrator depends only on these Protocols; implementations are injected
    - Every method that does IO is async
    - Collaborators raise the typed errors from core/errors.py

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Ledger and profile methods may return raw mappings; the orchestrator validates
      them through schemas/boundary.py
"""

from collections.abc import Callable, Mapping
from typing import Protocol

from entry_gate.core.credential import Credential
from entry_gate.core.domain_types import MinorUnits, TransactionId
from entry_gate.schemas.payment import (
    EntryTicket, FinalityReport, IssueRequest, ProfileSnapshot,
)

CredentialListener = Callable[[Credential | None], None]


class CredentialProvider(Protocol):
    """Supplies the current credential and pushes identity changes."""
    async def current(self) -> Credential | None: ...
    def subscribe(self, listener: CredentialListener) -> Callable[[], None]: ...


class LedgerClient(Protocol):
    """Submits value transfers and reports their finality.

    submit_transfer raises SubmissionRejectedError or LedgerNetworkError.
    await_finality raises FinalityTimeoutError.
    """
    async def submit_transfer(
        self, destination: str, amount_minor_units: MinorUnits,
    ) -> TransactionId: ...
    async def await_finality(
        self, transaction_id: TransactionId,
    ) -> FinalityReport | Mapping: ...


class EntryIssuer(Protocol):
    """Exchanges (credential, payment descriptor) for a single-use ticket.

    Raises UnauthorizedError, InsufficientCreditError or IssuanceFailedError.
    Must be idempotent per idempotency key.
    """
    async def issue(
        self, credential: Credential, request: IssueRequest, idempotency_key: str,
    ) -> EntryTicket | Mapping: ...


class ProfileSource(Protocol):
    """Read access to the user's profile blob (free-credit balance)."""
    async def snapshot(self) -> ProfileSnapshot | Mapping: ...
    async def refresh(self) -> None: ...


class ReconciliationLog(Protocol):
    """Durable record of confirmed payments until a ticket exists."""
    async def record_confirmed(
        self,
        transaction_id: TransactionId,
        attempt_id: str,
        game_id: str,
        amount_minor_units: MinorUnits,
        destination_address: str,
    ) -> None: ...
    async def mark_ticketed(
        self, transaction_id: TransactionId, entry_ticket_id: str,
    ) -> None: ...
    async def mark_unticketed(
        self, transaction_id: TransactionId, error_message: str,
    ) -> None: ...
