"""Profile Client - reads the user's free-entry balances from the backend.

Invariants:
    - Authenticated with the provider's current credential; no credential means zero balance
    - The raw body is returned for boundary validation (ProfileSnapshot) by the caller
    - refresh() drops the cached body so the next snapshot() refetches
"""

import logging

import httpx

from entry_gate.core.protocols import CredentialProvider

logger = logging.getLogger(__name__)


class HttpProfileSource:
    """ProfileSource backed by GET /user/free-entry-tokens."""

    TOKENS_PATH = "/user/free-entry-tokens"

    def __init__(self, client: httpx.AsyncClient, credentials: CredentialProvider):
        self.client = client
        self.credentials = credentials
        self._cached: dict | None = None

    async def snapshot(self) -> dict:
        if self._cached is not None:
            return self._cached
        credential = await self.credentials.current()
        if credential is None:
            return {}
        response = await self.client.get(
            self.TOKENS_PATH,
            headers={"Authorization": f"Bearer {credential.token}"},
        )
        response.raise_for_status()
        self._cached = {"freeEntryTokens": response.json()}
        return self._cached

    async def refresh(self) -> None:
        self._cached = None
        logger.debug("Profile cache cleared")
