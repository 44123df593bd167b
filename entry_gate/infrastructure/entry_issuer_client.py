"""Resilient Entry Issuer Client - httpx adapter for the entry-issuance backend.

Invariants:
    - Every request carries `Authorization: Bearer <credential>` and `Idempotency-Key`
    - Transient errors (connect, timeout, 5xx): max N retries with exponential backoff,
      always re-sending the SAME idempotency key and body
    - Client errors (4xx): immediate failure, no retry
    - 401/403 -> UnauthorizedError; 402 or a no-credit message -> InsufficientCreditError;
      anything else, or a body without gameEntryTokenId -> IssuanceFailedError
    - IssuanceFailedError for a paid request always keeps the payment proof

Design Decisions:
    - Wrapper over raw httpx client: isolates retry logic from the orchestrator
    - ±25% jitter on backoff: prevents synchronized retries against one backend
"""

import asyncio
import logging
import random

import httpx

from entry_gate.core.credential import Credential
from entry_gate.core.domain_types import PaymentMethod
from entry_gate.core.errors import (
    EntryGateError,
    InsufficientCreditError,
    IssuanceFailedError,
    UnauthorizedError,
)
from entry_gate.schemas.boundary import parse_record
from entry_gate.schemas.payment import EntryTicket, IssueRequest

logger = logging.getLogger(__name__)

_NO_CREDIT_MARKERS = ("insufficient", "no free", "free entry tokens available")


class HttpEntryIssuer:
    """Exchanges (credential, payment descriptor) for an entry ticket over HTTP."""

    ISSUE_PATH = "/api/game-sessions/generate-entry-token"
    DEFAULT_FAILURE = "Failed to generate game entry token."

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 10_000,
        client: httpx.AsyncClient | None = None,
    ):
        self.client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def issue(
        self, credential: Credential, request: IssueRequest, idempotency_key: str,
    ) -> EntryTicket:
        """POST the descriptor; retries transient failures with the same key."""
        headers = {
            "Authorization": f"Bearer {credential.token}",
            "Idempotency-Key": idempotency_key,
        }
        payload = request.to_payload()

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(
                    self.ISSUE_PATH, json=payload, headers=headers,
                )
            except (httpx.TimeoutException, httpx.TransportError) as e:
                await self._handle_transient(e, attempt, request)
                continue

            if response.status_code >= 500:
                await self._handle_transient(
                    _message_from(response) or f"HTTP {response.status_code}",
                    attempt, request,
                )
                continue

            ticket = self._parse(response, request)
            logger.info(
                "Entry ticket issued",
                extra={"attempt": attempt + 1, "transaction_id": request.proof},
            )
            return ticket

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "HttpEntryIssuer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _parse(self, response: httpx.Response, request: IssueRequest) -> EntryTicket:
        """Map a non-transient response to a ticket or a typed issuer error."""
        message = _message_from(response)
        status_code = response.status_code

        if status_code in (401, 403):
            raise UnauthorizedError(message or "Unauthorized")
        if status_code == 402 or (
            request.currency == PaymentMethod.FREE_CREDIT
            and status_code >= 400
            and any(m in (message or "").lower() for m in _NO_CREDIT_MARKERS)
        ):
            raise InsufficientCreditError(message or "No free entry credits available.")
        if status_code >= 400:
            raise IssuanceFailedError(
                message or f"{self.DEFAULT_FAILURE} (HTTP {status_code})",
                proof=request.proof,
            )

        body = _json_or_empty(response)
        if not body.get("gameEntryTokenId"):
            raise IssuanceFailedError(
                message or self.DEFAULT_FAILURE, proof=request.proof,
            )
        try:
            return parse_record(EntryTicket, body, "entry ticket")
        except EntryGateError as e:
            raise IssuanceFailedError(e.message, proof=request.proof) from e

    async def _handle_transient(
        self, error: Exception | str, attempt: int, request: IssueRequest,
    ) -> None:
        """Sleep before the next try, or raise once retries are exhausted."""
        if attempt >= self.max_retries:
            raise IssuanceFailedError(
                f"Entry issuer unavailable after {self.max_retries} retries: {error}",
                proof=request.proof,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Transient issuer error, retry after {delay}ms: {error}",
            extra={"attempt": attempt + 1, "transaction_id": request.proof},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _message_from(response: httpx.Response) -> str | None:
    message = _json_or_empty(response).get("message")
    return message if isinstance(message, str) and message.strip() else None
