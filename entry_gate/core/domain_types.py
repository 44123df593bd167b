"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - AttemptId wraps UUID; TransactionId and EntryTicketId wrap str - never bare strings in domain logic
    - MinorUnits is a non-negative integer amount in the ledger's minimal unit
    - All valid states encoded as Enums - no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (issuer payloads and REST envelopes)
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

AttemptId = NewType("AttemptId", UUID)
TransactionId = NewType("TransactionId", str)
EntryTicketId = NewType("EntryTicketId", str)


# ─── Value Types ─────────────────────────────────────────────────

MinorUnits = NewType("MinorUnits", int)   # lamports for the default multiplier


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_AVATAR_URL = "/WegenRaceAssets/G1small.png"
GUEST_KEY_PREFIX = "guest_"
RACE_DURATION_OPTIONS: tuple[int, ...] = (1, 2, 3, 4, 5, 8, 15, 30)
MAX_SEARCH_SUGGESTIONS = 8


# ─── Enums ───────────────────────────────────────────────────────

class Phase(str, Enum):
    """SessionAttempt lifecycle. Only ERROR -> PAY moves backwards."""
    PAY = "pay"
    PAYING = "paying"
    ONBOARDING = "onboarding"
    DONE = "done"
    ERROR = "error"


class PaymentMethod(str, Enum):
    """How an attempt pays for entry. Chosen once per attempt."""
    ON_CHAIN = "ON_CHAIN"
    FREE_CREDIT = "FREE_CREDIT"


class ErrorKind(str, Enum):
    """Machine-readable failure kinds surfaced on every error path."""
    AUTH_MISSING = "AuthMissing"
    SUBMISSION_REJECTED = "SubmissionRejected"
    NETWORK_ERROR = "NetworkError"
    FINALITY_TIMEOUT = "FinalityTimeout"
    EXECUTION_FAILED = "ExecutionFailed"
    UNAUTHORIZED = "Unauthorized"
    INSUFFICIENT_CREDIT = "InsufficientCredit"
    ISSUANCE_FAILED = "IssuanceFailed"
    PAID_BUT_UNTICKETED = "PaidButUnticketed"
    VALIDATION_FAILED = "ValidationFailed"
    MALFORMED_INPUT = "MalformedInput"
    INVALID_TRANSITION = "InvalidTransition"
    ATTEMPT_IN_FLIGHT = "AttemptInFlight"
    CANCEL_REFUSED = "CancelRefused"
    RESOURCE_NOT_FOUND = "ResourceNotFound"
    DATABASE = "Database"


class ReconciliationStatus(str, Enum):
    """Reconciliation log entry states - maps to DB `status` column."""
    CONFIRMED = "confirmed"
    TICKETED = "ticketed"
    UNTICKETED = "unticketed"
    RESOLVED = "resolved"


OPEN_RECONCILIATION_STATUSES: tuple[ReconciliationStatus, ...] = (
    ReconciliationStatus.CONFIRMED,
    ReconciliationStatus.UNTICKETED,
)
