"""Error hierarchy - kinds, severities and the REST envelope."""

from entry_gate.core.domain_types import ErrorKind
from entry_gate.core.errors import (
    AuthMissingError,
    ErrorSeverity,
    PaidButUnticketedError,
    TransactionExecutionError,
)


def test_paid_but_unticketed_punctuates_bare_reason():
    error = PaidButUnticketedError("tx-1", "Unauthorized")
    assert error.message.startswith("Unauthorized. Payment was confirmed")
    assert error.message.endswith("Contact support with transaction ID: tx-1")


def test_paid_but_unticketed_keeps_existing_period():
    error = PaidButUnticketedError("tx-1", "Failed to generate game entry token.")
    assert error.message.startswith(
        "Failed to generate game entry token. Payment was confirmed",
    )
    assert ".." not in error.message


def test_paid_but_unticketed_is_critical_and_carries_proof():
    error = PaidButUnticketedError("tx-9", "boom")
    assert error.kind == ErrorKind.PAID_BUT_UNTICKETED
    assert error.severity == ErrorSeverity.CRITICAL
    assert not error.recoverable
    assert error.context.transaction_id == "tx-9"


def test_refusals_are_recoverable_warnings():
    error = AuthMissingError()
    assert error.recoverable
    assert error.http_status == 401


def test_to_response_envelope():
    body = TransactionExecutionError("tx-1", "custom program error").to_response()
    assert body["error"]["kind"] == "ExecutionFailed"
    assert body["error"]["code"] == "TRANSACTION_FAILED"
    assert body["error"]["message"] == "Transaction failed: custom program error"
    assert body["error"]["context"]["transaction_id"] == "tx-1"
