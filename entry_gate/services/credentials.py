"""Bearer Credential Provider - in-process credential holder fed by the invoking layer.

Invariants:
    - current() never returns an expired credential
    - Listeners fire on login, logout and rotation; never when the token is unchanged
    - A failing listener is logged and does not stop the others

Design Decisions:
    - No module-level state: one provider per user context, passed to the orchestrator
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from entry_gate.core.credential import Credential, DEFAULT_CREDENTIAL_TTL
from entry_gate.core.protocols import CredentialListener

logger = logging.getLogger(__name__)


class BearerCredentialProvider:
    """Holds the latest bearer token and notifies subscribers of changes."""

    def __init__(self, ttl: timedelta = DEFAULT_CREDENTIAL_TTL):
        self.ttl = ttl
        self._credential: Credential | None = None
        self._listeners: list[CredentialListener] = []

    async def current(self) -> Credential | None:
        credential = self._credential
        if credential is not None and credential.is_expired():
            return None
        return credential

    def update(self, token: str, issued_at: datetime | None = None) -> Credential:
        """Login or rotation."""
        if self._credential is not None and self._credential.token == token:
            return self._credential
        credential = Credential(
            token=token,
            issued_at=issued_at or datetime.now(timezone.utc),
            ttl=self.ttl,
        )
        self._credential = credential
        self._notify(credential)
        return credential

    def clear(self) -> None:
        """Logout."""
        if self._credential is None:
            return
        self._credential = None
        self._notify(None)

    def subscribe(self, listener: CredentialListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, credential: Credential | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(credential)
            except Exception as e:
                logger.error(f"Credential listener failed: {e}", exc_info=True)
