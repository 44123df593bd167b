"""Error Hierarchy - typed, categorized exceptions for every entry-gate failure mode.

Invariants:
    - Every error has a code (str), kind (ErrorKind), category (ErrorCategory), severity (ErrorSeverity)
    - Local refusals (no phase change) are WARNING severity and recoverable
    - Ledger/issuer failures are ERROR severity and move the attempt to `error`
    - PaidButUnticketedError always carries the transaction id in its message
    - to_response() produces the REST envelope

Design Decisions:
    - Single hierarchy with EntryGateError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from entry_gate.core.domain_types import ErrorKind


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    LEDGER = "ledger"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attempt_id: str | None = None
    phase: str | None = None
    transaction_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class EntryGateError(Exception):
    """Base exception for all entry-gate errors."""

    kind: ErrorKind = ErrorKind.ISSUANCE_FAILED

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "attempt_id": self.context.attempt_id,
                    "phase": self.context.phase,
                    "transaction_id": self.context.transaction_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Local Refusals (no phase change) ───────────────────────────

class AuthMissingError(EntryGateError):
    """No valid credential when a payment method was chosen."""
    kind = ErrorKind.AUTH_MISSING

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required. Please log in to proceed.",
            "AUTH_MISSING", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class OnboardingValidationError(EntryGateError):
    """Onboarding result rejected locally; the attempt stays in onboarding."""
    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_FAILED", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class MalformedInputError(EntryGateError):
    """External record failed boundary validation."""
    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, record: str, detail: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed {record}: {detail}",
            "MALFORMED_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 422,
        )
        self.record = record


class InvalidTransitionError(EntryGateError):
    """Operation not allowed from the attempt's current phase."""
    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, operation: str, phase: str | None, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot {operation} from phase '{phase or 'none'}'",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.operation = operation


class AttemptInFlightError(EntryGateError):
    """A ledger or issuer call is already in flight for this attempt."""
    kind = ErrorKind.ATTEMPT_IN_FLIGHT

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A payment is already in progress.",
            "ATTEMPT_IN_FLIGHT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class CancelRefusedError(EntryGateError):
    """Cancellation requested while a payment call is dispatched."""
    kind = ErrorKind.CANCEL_REFUSED

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot cancel while a payment is in progress.",
            "CANCEL_REFUSED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Ledger Errors ──────────────────────────────────────────────

class SubmissionRejectedError(EntryGateError):
    """Ledger (or the signing wallet) refused the transfer."""
    kind = ErrorKind.SUBMISSION_REJECTED

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "SUBMISSION_REJECTED", ErrorCategory.LEDGER,
            ErrorSeverity.ERROR, context, 402,
        )
        self.reason = reason


class LedgerNetworkError(EntryGateError):
    """Ledger could not be reached while submitting."""
    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "LEDGER_NETWORK_ERROR", ErrorCategory.LEDGER,
            ErrorSeverity.ERROR, context, 503,
        )
        self.reason = reason


class FinalityTimeoutError(EntryGateError):
    """Transaction did not reach finality in time."""
    kind = ErrorKind.FINALITY_TIMEOUT

    def __init__(self, transaction_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} was not confirmed in time.",
            "FINALITY_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, ctx, 504,
        )
        self.transaction_id = transaction_id


class TransactionExecutionError(EntryGateError):
    """Transaction was included but failed to execute."""
    kind = ErrorKind.EXECUTION_FAILED

    def __init__(
        self, transaction_id: str, execution_error: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.transaction_id = transaction_id
        super().__init__(
            f"Transaction failed: {execution_error}",
            "TRANSACTION_FAILED", ErrorCategory.LEDGER,
            ErrorSeverity.ERROR, ctx, 402,
        )
        self.transaction_id = transaction_id
        self.execution_error = execution_error


# ─── Issuer Errors ──────────────────────────────────────────────

class UnauthorizedError(EntryGateError):
    """Issuer rejected the credential."""
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )


class InsufficientCreditError(EntryGateError):
    """No free entry credit left (locally or per the issuer)."""
    kind = ErrorKind.INSUFFICIENT_CREDIT

    def __init__(
        self,
        message: str = "No free entry credits available.",
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ):
        super().__init__(
            message, "INSUFFICIENT_CREDIT", ErrorCategory.BUSINESS_RULE,
            severity, context, 402,
        )


class IssuanceFailedError(EntryGateError):
    """Issuer failed to produce a ticket; reason is human-readable."""
    kind = ErrorKind.ISSUANCE_FAILED

    def __init__(
        self, reason: str, proof: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        if proof:
            ctx.transaction_id = proof
        super().__init__(
            reason, "ISSUANCE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.reason = reason
        self.proof = proof


class PaidButUnticketedError(EntryGateError):
    """Ledger payment is final but no ticket was issued. Escalation only."""
    kind = ErrorKind.PAID_BUT_UNTICKETED

    def __init__(
        self, transaction_id: str, reason: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.transaction_id = transaction_id
        lead = reason.rstrip()
        if lead and not lead.endswith((".", "!", "?")):
            lead += "."
        super().__init__(
            f"{lead} Payment was confirmed but no game entry token was "
            f"issued. Contact support with transaction ID: {transaction_id}",
            "PAID_BUT_UNTICKETED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.transaction_id = transaction_id
        self.reason = reason


# ─── Infrastructure Errors ──────────────────────────────────────

class ResourceNotFoundError(EntryGateError):
    """Requested resource does not exist."""
    kind = ErrorKind.RESOURCE_NOT_FOUND

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class DatabaseError(EntryGateError):
    """Database operation failed."""
    kind = ErrorKind.DATABASE

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
