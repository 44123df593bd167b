"""Error Message Normalization - maps raw ledger/wallet text to user-facing messages.

Invariants:
    - PURE: no IO, no side effects
    - Matching is case-insensitive substring matching
    - Unknown messages pass through verbatim (stripped); empty input gets a generic fallback
"""

GENERIC_PAYMENT_FAILURE = (
    "Transaction failed. Please check your balance and try again."
)

_KNOWN_SUBSTRINGS: tuple[tuple[str, str], ...] = (
    ("insufficient funds", "Insufficient funds. Please check your wallet balance."),
    ("user rejected", "Transaction cancelled by user"),
)


def normalize_payment_message(raw: str | None) -> str:
    """Return the friendly form of a known ledger failure, else the raw text."""
    if not raw or not raw.strip():
        return GENERIC_PAYMENT_FAILURE
    lowered = raw.lower()
    for needle, friendly in _KNOWN_SUBSTRINGS:
        if needle in lowered:
            return friendly
    return raw.strip()
