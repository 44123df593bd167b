"""Entry Amounts - conversion of the fixed entry fee to ledger minor units.

Invariants:
    - PURE: no IO
    - Conversion rounds UP (ceiling); a fee is never truncated into underfunding
    - Amounts and multipliers must be positive
"""

from decimal import Decimal, ROUND_CEILING, InvalidOperation

from entry_gate.core.domain_types import MinorUnits
from entry_gate.core.errors import MalformedInputError


def to_minor_units(amount: Decimal | str | int, multiplier: int) -> MinorUnits:
    """Convert a major-unit amount to the ledger's minimal integer unit.

    >>> to_minor_units(Decimal("0.01"), 1_000_000_000)
    10000000
    >>> to_minor_units(Decimal("0.0000000001"), 1_000_000_000)
    1
    """
    if isinstance(amount, float):
        raise MalformedInputError("entry amount", "floats are not accepted, use Decimal")
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedInputError("entry amount", f"not a number: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise MalformedInputError("entry amount", f"must be positive, got {amount}")
    if multiplier <= 0:
        raise MalformedInputError("minor unit multiplier", f"must be positive, got {multiplier}")

    minor = (value * multiplier).to_integral_value(rounding=ROUND_CEILING)
    return MinorUnits(int(minor))
