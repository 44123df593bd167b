"""HTTP Entry Issuer - request shape, error mapping and transient retries.

Uses httpx.MockTransport so no network is touched; backoff delay is zero.
"""

from decimal import Decimal

import httpx
import pytest

from entry_gate.core.credential import Credential
from entry_gate.core.domain_types import PaymentMethod
from entry_gate.core.errors import (
    InsufficientCreditError, IssuanceFailedError, UnauthorizedError,
)
from entry_gate.infrastructure.entry_issuer_client import HttpEntryIssuer
from entry_gate.infrastructure.profile_client import HttpProfileSource
from entry_gate.schemas.payment import IssueRequest
from entry_gate.services.credentials import BearerCredentialProvider

PAID = IssueRequest(
    game_type="picker", game_id="wegen-race", bet_amount=Decimal("0.01"),
    currency=PaymentMethod.ON_CHAIN, proof="tx-1",
)
FREE = IssueRequest(
    game_type="picker", game_id="wegen-race", bet_amount=Decimal(0),
    currency=PaymentMethod.FREE_CREDIT,
)


def _issuer(handler, max_retries: int = 2) -> HttpEntryIssuer:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://issuer.test",
    )
    return HttpEntryIssuer(
        "http://issuer.test", max_retries=max_retries, base_delay_ms=0, client=client,
    )


async def test_issue_sends_bearer_idempotency_and_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["key"] = request.headers["Idempotency-Key"]
        seen["body"] = request.read()
        return httpx.Response(200, json={"gameEntryTokenId": "ticket-9"})

    async with _issuer(handler) as issuer:
        ticket = await issuer.issue(Credential("tok"), PAID, "tx-1")

    assert ticket.ticket_id == "ticket-9"
    assert seen["path"] == "/api/game-sessions/generate-entry-token"
    assert seen["auth"] == "Bearer tok"
    assert seen["key"] == "tx-1"
    assert b'"gameType":"picker"' in seen["body"].replace(b" ", b"")
    assert b'"proof":"tx-1"' in seen["body"].replace(b" ", b"")


async def test_free_payload_omits_proof():
    assert "proof" not in FREE.to_payload()
    assert FREE.to_payload()["currency"] == "FREE_CREDIT"


async def test_unauthorized_maps_to_typed_error():
    async with _issuer(lambda r: httpx.Response(401, json={"message": "Token expired"})) as issuer:
        with pytest.raises(UnauthorizedError, match="Token expired"):
            await issuer.issue(Credential("tok"), PAID, "tx-1")


async def test_no_free_tokens_maps_to_insufficient_credit():
    def handler(request):
        return httpx.Response(400, json={"message": "No free entry tokens available"})

    async with _issuer(handler) as issuer:
        with pytest.raises(InsufficientCreditError):
            await issuer.issue(Credential("tok"), FREE, "free-credit:a:1")


async def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"message": "Invalid signature"})

    async with _issuer(handler) as issuer:
        with pytest.raises(IssuanceFailedError) as exc:
            await issuer.issue(Credential("tok"), PAID, "tx-1")

    assert len(calls) == 1
    assert exc.value.message == "Invalid signature"
    assert exc.value.proof == "tx-1"


async def test_missing_ticket_id_is_issuance_failure():
    async with _issuer(lambda r: httpx.Response(200, json={"success": True})) as issuer:
        with pytest.raises(IssuanceFailedError):
            await issuer.issue(Credential("tok"), PAID, "tx-1")


async def test_server_errors_retry_with_same_key():
    keys = []

    def handler(request):
        keys.append(request.headers["Idempotency-Key"])
        if len(keys) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"gameEntryTokenId": "ticket-1"})

    async with _issuer(handler) as issuer:
        ticket = await issuer.issue(Credential("tok"), PAID, "tx-1")

    assert ticket.ticket_id == "ticket-1"
    assert keys == ["tx-1", "tx-1", "tx-1"]


async def test_transport_errors_exhaust_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    async with _issuer(handler, max_retries=1) as issuer:
        with pytest.raises(IssuanceFailedError, match="unavailable after 1 retries"):
            await issuer.issue(Credential("tok"), PAID, "tx-1")

    assert len(calls) == 2


# --- Profile source -----------------------------------------------------------

async def test_profile_snapshot_is_cached_until_refresh():
    calls = []

    def handler(request):
        calls.append(request.headers["Authorization"])
        return httpx.Response(200, json={"pickerTokens": 3})

    credentials = BearerCredentialProvider()
    credentials.update("tok")
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://issuer.test",
    )
    source = HttpProfileSource(client, credentials)

    assert await source.snapshot() == {"freeEntryTokens": {"pickerTokens": 3}}
    await source.snapshot()
    await source.refresh()
    await source.snapshot()
    await client.aclose()

    assert calls == ["Bearer tok", "Bearer tok"]


async def test_profile_without_credential_is_empty():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        base_url="http://issuer.test",
    )
    source = HttpProfileSource(client, BearerCredentialProvider())
    assert await source.snapshot() == {}
    await client.aclose()
