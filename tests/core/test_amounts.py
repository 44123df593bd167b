"""Entry Amounts - ceiling conversion to ledger minor units."""

from decimal import Decimal

import pytest

from entry_gate.core.amounts import to_minor_units
from entry_gate.core.errors import MalformedInputError

LAMPORTS = 1_000_000_000


def test_default_entry_fee():
    assert to_minor_units(Decimal("0.01"), LAMPORTS) == 10_000_000


def test_fractional_minor_units_round_up():
    assert to_minor_units(Decimal("0.0000000001"), LAMPORTS) == 1
    assert to_minor_units(Decimal("0.0100000001"), LAMPORTS) == 10_000_001


def test_string_and_int_amounts():
    assert to_minor_units("0.5", LAMPORTS) == 500_000_000
    assert to_minor_units(2, 100) == 200


@pytest.mark.parametrize("amount", [0, Decimal("-1"), "abc", "NaN", 0.01])
def test_rejects_bad_amounts(amount):
    with pytest.raises(MalformedInputError):
        to_minor_units(amount, LAMPORTS)


def test_rejects_non_positive_multiplier():
    with pytest.raises(MalformedInputError):
        to_minor_units(Decimal("1"), 0)
