"""Bearer Credential Provider - expiry and change notification."""

from datetime import datetime, timedelta, timezone

from entry_gate.services.credentials import BearerCredentialProvider


async def test_current_is_none_before_login():
    assert await BearerCredentialProvider().current() is None


async def test_update_then_current():
    provider = BearerCredentialProvider()
    provider.update("tok")
    credential = await provider.current()
    assert credential.token == "tok"


async def test_expired_credential_is_hidden():
    provider = BearerCredentialProvider(ttl=timedelta(minutes=5))
    provider.update("tok", issued_at=datetime.now(timezone.utc) - timedelta(minutes=6))
    assert await provider.current() is None


def test_listeners_fire_on_change_only():
    provider = BearerCredentialProvider()
    seen = []
    provider.subscribe(seen.append)

    provider.update("a")
    provider.update("a")
    provider.update("b")
    provider.clear()
    provider.clear()

    assert [c.token if c else None for c in seen] == ["a", "b", None]


def test_unsubscribe_stops_notifications():
    provider = BearerCredentialProvider()
    seen = []
    unsubscribe = provider.subscribe(seen.append)
    unsubscribe()
    provider.update("a")
    assert seen == []


def test_failing_listener_does_not_block_others():
    provider = BearerCredentialProvider()
    seen = []

    def broken(_):
        raise RuntimeError("listener bug")

    provider.subscribe(broken)
    provider.subscribe(seen.append)
    provider.update("a")
    assert len(seen) == 1


def test_repr_hides_token():
    provider = BearerCredentialProvider()
    credential = provider.update("secret-token")
    assert "secret-token" not in repr(credential)
