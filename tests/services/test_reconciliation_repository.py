"""Reconciliation Repository - persistence of confirmed payments against SQLite."""

import pytest

from entry_gate.core.domain_types import ReconciliationStatus
from entry_gate.core.errors import InvalidTransitionError, ResourceNotFoundError


async def _confirm(log, tx: str = "tx-1"):
    await log.record_confirmed(tx, "attempt-1", "wegen-race", 10_000_000, "treasury")


async def test_record_confirmed_creates_open_entry(reconciliation_log):
    await _confirm(reconciliation_log)

    entry = await reconciliation_log.get("tx-1")
    assert entry.status == ReconciliationStatus.CONFIRMED.value
    assert entry.amount_minor_units == 10_000_000
    assert entry.destination_address == "treasury"


async def test_record_confirmed_is_idempotent(reconciliation_log):
    await _confirm(reconciliation_log)
    await _confirm(reconciliation_log)

    entries = await reconciliation_log.list_entries()
    assert len(entries) == 1


async def test_mark_ticketed_closes_entry(reconciliation_log):
    await _confirm(reconciliation_log)
    await reconciliation_log.mark_ticketed("tx-1", "ticket-1")

    entry = await reconciliation_log.get("tx-1")
    assert entry.status == ReconciliationStatus.TICKETED.value
    assert entry.entry_ticket_id == "ticket-1"
    assert await reconciliation_log.list_entries() == []


async def test_mark_unticketed_keeps_entry_open(reconciliation_log):
    await _confirm(reconciliation_log)
    await reconciliation_log.mark_unticketed("tx-1", "Contact support with transaction ID: tx-1")

    [entry] = await reconciliation_log.list_entries()
    assert entry.status == ReconciliationStatus.UNTICKETED.value
    assert "tx-1" in entry.error_message


async def test_mark_unknown_transaction_creates_nothing(reconciliation_log):
    await reconciliation_log.mark_unticketed("tx-missing", "boom")
    with pytest.raises(ResourceNotFoundError):
        await reconciliation_log.get("tx-missing")


async def test_list_filters_by_status(reconciliation_log):
    await _confirm(reconciliation_log, "tx-1")
    await _confirm(reconciliation_log, "tx-2")
    await reconciliation_log.mark_ticketed("tx-2", "ticket-2")

    ticketed = await reconciliation_log.list_entries((ReconciliationStatus.TICKETED,))
    assert [e.transaction_id for e in ticketed] == ["tx-2"]


async def test_resolve_open_entry(reconciliation_log):
    await _confirm(reconciliation_log)
    await reconciliation_log.mark_unticketed("tx-1", "boom")

    entry = await reconciliation_log.resolve("tx-1", "Ticket issued by hand", "ticket-7")

    assert entry.status == ReconciliationStatus.RESOLVED.value
    assert entry.entry_ticket_id == "ticket-7"
    assert entry.resolution_note == "Ticket issued by hand"
    assert entry.resolved_at is not None


async def test_resolve_ticketed_entry_is_refused(reconciliation_log):
    await _confirm(reconciliation_log)
    await reconciliation_log.mark_ticketed("tx-1", "ticket-1")

    with pytest.raises(InvalidTransitionError):
        await reconciliation_log.resolve("tx-1", "not needed")


async def test_resolve_unknown_entry(reconciliation_log):
    with pytest.raises(ResourceNotFoundError):
        await reconciliation_log.resolve("tx-missing", "nothing")


async def test_count_open_ignores_closed_entries(reconciliation_log):
    await _confirm(reconciliation_log, "tx-1")
    await _confirm(reconciliation_log, "tx-2")
    await reconciliation_log.mark_ticketed("tx-2", "ticket-2")

    assert await reconciliation_log.count_open() == 1
