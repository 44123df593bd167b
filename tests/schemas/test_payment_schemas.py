"""Boundary schemas - wire aliases and MalformedInput mapping."""

from decimal import Decimal

import pytest

from entry_gate.core.domain_types import DEFAULT_AVATAR_URL, PaymentMethod
from entry_gate.core.errors import MalformedInputError
from entry_gate.schemas.boundary import parse_record
from entry_gate.schemas.onboarding import Player
from entry_gate.schemas.payment import (
    EntryTicket, FinalityReport, IssueRequest, ProfileSnapshot,
)


def test_entry_ticket_from_wire():
    ticket = parse_record(EntryTicket, {"gameEntryTokenId": "t-1", "message": "ok"}, "entry ticket")
    assert ticket.ticket_id == "t-1"


def test_empty_ticket_id_is_malformed():
    with pytest.raises(MalformedInputError, match="entry ticket"):
        parse_record(EntryTicket, {"gameEntryTokenId": ""}, "entry ticket")


def test_parse_record_passes_instances_through():
    report = FinalityReport(finalized=True)
    assert parse_record(FinalityReport, report, "finality report") is report


def test_finality_report_with_execution_error():
    report = parse_record(
        FinalityReport, {"finalized": False, "executionError": "custom program error"}, "r",
    )
    assert report.execution_error == "custom program error"


def test_on_chain_request_requires_proof():
    with pytest.raises(ValueError):
        IssueRequest(
            game_type="picker", game_id="g", bet_amount=Decimal("0.01"),
            currency=PaymentMethod.ON_CHAIN,
        )


def test_free_request_rejects_proof():
    with pytest.raises(ValueError):
        IssueRequest(
            game_type="picker", game_id="g", bet_amount=Decimal(0),
            currency=PaymentMethod.FREE_CREDIT, proof="tx-1",
        )


def test_profile_free_credits_per_category():
    snapshot = ProfileSnapshot.model_validate(
        {"freeEntryTokens": {"pickerTokens": 2, "arcade": 1}, "username": "x"},
    )
    assert snapshot.free_credits_for("Picker") == 2
    assert snapshot.free_credits_for("arcade") == 1
    assert snapshot.free_credits_for("racing") == 0


def test_profile_without_tokens_has_none():
    assert ProfileSnapshot.model_validate({}).free_credits_for("picker") == 0


def test_negative_balance_is_malformed():
    with pytest.raises(MalformedInputError):
        parse_record(ProfileSnapshot, {"freeEntryTokens": {"picker": -1}}, "profile")


def test_player_avatar_defaults():
    assert Player(key="k", name="n", avatarUrl="").avatar_url == DEFAULT_AVATAR_URL
    assert Player(key="k", name="n").avatar_url == DEFAULT_AVATAR_URL
