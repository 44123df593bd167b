"""Domain Types - verifies rich type definitions and enum values.

Tests:
    - NewType wrappers exist and are callable
    - Enums serialize to their wire strings
    - Only confirmed and unticketed reconciliation entries are open
"""

import json
from uuid import uuid4

from entry_gate.core.domain_types import (
    AttemptId, TransactionId, MinorUnits,
    Phase, PaymentMethod, ErrorKind, ReconciliationStatus,
    OPEN_RECONCILIATION_STATUSES, RACE_DURATION_OPTIONS,
)


def test_identity_types_wrap_values():
    uid = uuid4()
    assert AttemptId(uid) == uid
    assert TransactionId("sig") == "sig"
    assert MinorUnits(10) == 10


def test_phase_has_five_states():
    assert [p.value for p in Phase] == ["pay", "paying", "onboarding", "done", "error"]


def test_payment_method_serializes_as_wire_value():
    assert json.dumps({"currency": PaymentMethod.FREE_CREDIT}) == '{"currency": "FREE_CREDIT"}'


def test_error_kinds_cover_failure_paths():
    for name in ("AuthMissing", "PaidButUnticketed", "InsufficientCredit", "ValidationFailed"):
        assert ErrorKind(name)


def test_open_reconciliation_statuses():
    assert set(OPEN_RECONCILIATION_STATUSES) == {
        ReconciliationStatus.CONFIRMED, ReconciliationStatus.UNTICKETED,
    }


def test_duration_options_are_sorted_positive():
    assert list(RACE_DURATION_OPTIONS) == sorted(RACE_DURATION_OPTIONS)
    assert min(RACE_DURATION_OPTIONS) > 0
