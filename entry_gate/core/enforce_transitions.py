"""Transition Enforcement - validates the conditions for each attempt operation.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - Return the typed error on violation, None on success
    - Onboarding messages are user-facing and stable (callers display them verbatim)

Design Decisions:
    - Pure functions over method dispatch: testable without mocks
    - Return errors (not raise): the orchestrator decides whether a violation is raised
      as a refusal or recorded on the attempt
"""

from datetime import datetime

from entry_gate.core.credential import Credential
from entry_gate.core.domain_types import Phase
from entry_gate.core.errors import (
    AttemptInFlightError,
    AuthMissingError,
    CancelRefusedError,
    EntryGateError,
    InsufficientCreditError,
    InvalidTransitionError,
    OnboardingValidationError,
    ErrorSeverity,
)
from entry_gate.core.session_attempt import SessionAttempt
from entry_gate.schemas.onboarding import OnboardingResult
from entry_gate.schemas.payment import EntryTicket


# --- pay -> paying ------------------------------------------------------------

def check_can_select(attempt: SessionAttempt | None) -> EntryGateError | None:
    """A method may be chosen only from `pay`, with nothing in flight."""
    if attempt is None:
        return InvalidTransitionError("choose a payment method", None)
    if attempt.in_flight:
        return AttemptInFlightError()
    if attempt.phase != Phase.PAY:
        return InvalidTransitionError("choose a payment method", attempt.phase.value)
    return None


def check_credential(
    credential: Credential | None, now: datetime | None = None,
) -> EntryGateError | None:
    """Missing and expired credentials are both AuthMissing."""
    if credential is None or credential.is_expired(now):
        return AuthMissingError()
    return None


def check_free_credit(balance: int) -> EntryGateError | None:
    """Local UX guard only; the issuer stays authoritative."""
    if balance <= 0:
        return InsufficientCreditError(
            "No free entry credits available.",
            severity=ErrorSeverity.WARNING,
        )
    return None


# --- onboarding -> done -------------------------------------------------------

def check_onboarding_result(
    result: OnboardingResult,
    credential: Credential | None,
    ticket: EntryTicket | None,
    now: datetime | None = None,
) -> EntryGateError | None:
    """Validate a completed onboarding before the handoff is built."""
    if not result.players:
        return OnboardingValidationError("No players selected", "players")

    if result.duration_minutes <= 0:
        return OnboardingValidationError("Invalid race duration", "duration_minutes")

    if result.human_player is None:
        return OnboardingValidationError("No player choice selected", "human_player")

    if result.human_player.key not in {p.key for p in result.players}:
        return OnboardingValidationError(
            "Chosen player is not in the race", "human_player",
        )

    if credential is None or credential.is_expired(now):
        return OnboardingValidationError("Authentication token missing", "credential")

    if ticket is None:
        return OnboardingValidationError("Game entry token missing", "ticket")

    return None


def check_in_onboarding(attempt: SessionAttempt | None) -> EntryGateError | None:
    if attempt is None or attempt.phase != Phase.ONBOARDING:
        return InvalidTransitionError(
            "complete onboarding", attempt.phase.value if attempt else None,
        )
    return None


# --- error -> pay / cancel ----------------------------------------------------

def check_can_retry(attempt: SessionAttempt | None) -> EntryGateError | None:
    if attempt is not None and attempt.in_flight:
        return AttemptInFlightError()
    if attempt is None or attempt.phase != Phase.ERROR:
        return InvalidTransitionError(
            "retry", attempt.phase.value if attempt else None,
        )
    return None


def check_can_cancel(attempt: SessionAttempt | None) -> EntryGateError | None:
    """Cancellation is refused only while a payment call is dispatched."""
    if attempt is not None and (attempt.in_flight or attempt.phase == Phase.PAYING):
        return CancelRefusedError()
    return None
