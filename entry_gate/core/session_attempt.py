"""Session Attempt - the mutable aggregate for one payment-to-onboarding run.

Invariants:
    - Phase moves forward only: pay -> paying -> onboarding -> done, paying -> error
    - error -> pay is the single backward edge and clears method, proof, ticket, last_error
    - An idempotency key is sent to the issuer at most once per attempt
    - A ticket belongs to exactly one attempt (new attempts start empty)

Design Decisions:
    - Dataclass with computed properties: pure, deterministic, testable without mocks
    - in_flight is the explicit single-flight flag; it is owned by the orchestrator
"""

from dataclasses import dataclass, field
from uuid import uuid4

from entry_gate.core.domain_types import (
    AttemptId, PaymentMethod, Phase, TransactionId,
)
from entry_gate.core.errors import EntryGateError, InvalidTransitionError
from entry_gate.schemas.payment import EntryTicket

ALLOWED_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.PAY: frozenset({Phase.PAYING}),
    Phase.PAYING: frozenset({Phase.ONBOARDING, Phase.ERROR}),
    Phase.ONBOARDING: frozenset({Phase.DONE}),
    Phase.ERROR: frozenset({Phase.PAY}),
    Phase.DONE: frozenset(),
}


def _new_attempt_id() -> AttemptId:
    return AttemptId(uuid4())


@dataclass
class SessionAttempt:
    """Per-attempt flow state - pure dataclass, no IO."""

    attempt_id: AttemptId = field(default_factory=_new_attempt_id)
    phase: Phase = Phase.PAY
    method: PaymentMethod | None = None
    proof: TransactionId | None = None
    ticket: EntryTicket | None = None
    last_error: EntryGateError | None = None

    # Idempotency keys already sent to the issuer
    issued_keys: set[str] = field(default_factory=set)

    # Number of method selections (free-credit one-shot keys are per selection)
    selections: int = 0

    # Single-flight flag: a ledger or issuer call is outstanding
    in_flight: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.phase == Phase.DONE

    @property
    def paid(self) -> bool:
        return self.proof is not None

    def advance(self, target: Phase) -> None:
        """Move to `target` if the edge exists. Raises InvalidTransitionError."""
        if target not in ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidTransitionError(
                f"move to {target.value}", self.phase.value,
            )
        self.phase = target

    def begin_payment(self, method: PaymentMethod) -> None:
        self.advance(Phase.PAYING)
        self.method = method
        self.ticket = None
        self.selections += 1

    def fail(self, error: EntryGateError) -> None:
        self.advance(Phase.ERROR)
        self.last_error = error

    def reset_for_retry(self) -> None:
        """error -> pay. Stale proof and ticket are dropped, never resubmitted."""
        self.advance(Phase.PAY)
        self.last_error = None
        self.method = None
        self.proof = None
        self.ticket = None

    def idempotency_key(self) -> str:
        """Proof for paid entries; a one-shot key per selection for free credit."""
        if self.proof:
            return self.proof
        return f"free-credit:{self.attempt_id}:{self.selections}"
