"""Credential - short-lived bearer proof of identity, read-only outside its provider.

Invariants:
    - token is opaque and non-empty
    - expiry is implicit: issued_at + ttl
    - Frozen: rotation produces a new Credential, never mutates one
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

DEFAULT_CREDENTIAL_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class Credential:
    """Opaque bearer token with issue time."""
    token: str
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ttl: timedelta = DEFAULT_CREDENTIAL_TTL

    def __post_init__(self):
        if not self.token:
            raise ValueError("credential token cannot be empty")

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.ttl

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def __repr__(self) -> str:
        # never print the bearer token
        return f"Credential(issued_at={self.issued_at.isoformat()}, ttl={self.ttl})"
