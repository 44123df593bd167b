"""Onboarding Collector - roster assembly, duration and human player choice."""

import pytest

from entry_gate.core.domain_types import DEFAULT_AVATAR_URL
from entry_gate.core.errors import MalformedInputError, OnboardingValidationError
from entry_gate.services.onboarding_collector import OnboardingCollector, new_guest_key

USERS = [
    {"key": "u1", "username": "alice", "wallet": "AliceWallet111", "avatarUrl": "/a.png"},
    {"key": "u2", "username": "albert", "wallet": "AlbertWallet222"},
    {"key": "u3", "username": "bob", "wallet": "BobWallet333"},
]

ME = {"key": "me", "name": "carol", "username": "carol"}


def _collector(**kwargs) -> OnboardingCollector:
    return OnboardingCollector(USERS, min_players=2, **kwargs)


def test_current_user_is_added_first_and_human():
    c = _collector(current_user=ME)
    assert [p.key for p in c.selected] == ["me"]
    assert c.human_player.key == "me"
    assert c.selected[0].is_human_player is True


def test_search_matches_username_and_wallet():
    c = _collector()
    assert [u.key for u in c.search("alb")] == ["u2"]
    assert [u.key for u in c.search("bobwallet")] == ["u3"]
    assert [u.key for u in c.search("wallet")] == ["u1", "u2", "u3"]
    assert c.search("   ") == []


def test_search_excludes_selected_users():
    c = _collector()
    c.add("alice")
    assert [u.key for u in c.search("wallet")] == ["u2", "u3"]


def test_search_is_capped():
    users = [{"key": f"k{i}", "username": f"racer{i}"} for i in range(20)]
    c = OnboardingCollector(users, min_players=2)
    assert len(c.search("racer")) == 8


def test_add_registered_user_by_username():
    c = _collector()
    player = c.add("ALICE")
    assert player.key == "u1"
    assert player.avatar_url == "/a.png"
    assert player.is_guest is False


def test_add_unknown_name_creates_guest():
    c = _collector()
    player = c.add("Dave")
    assert player.is_guest
    assert player.key.startswith("guest_")
    assert player.name == "Dave"
    assert player.avatar_url == DEFAULT_AVATAR_URL


def test_add_duplicate_is_rejected():
    c = _collector()
    c.add("bob")
    with pytest.raises(OnboardingValidationError, match="already in the race"):
        c.add("BobWallet333")


def test_add_empty_name_is_rejected():
    with pytest.raises(OnboardingValidationError, match="cannot be empty"):
        _collector().add("  ")


def test_removing_human_reassigns_choice():
    c = _collector(current_user=ME)
    c.add("bob")
    c.remove(0)
    assert c.human_player.key == "u3"


def test_removing_last_player_clears_choice():
    c = _collector()
    c.add("bob")
    c.remove(0)
    assert c.human_player is None


def test_remove_out_of_range():
    with pytest.raises(OnboardingValidationError):
        _collector().remove(3)


def test_choose_human_must_be_in_race():
    c = _collector(current_user=ME)
    with pytest.raises(OnboardingValidationError, match="not in the race"):
        c.choose_human("u1")


def test_duration_must_be_an_offered_option():
    c = _collector()
    c.set_duration(15)
    assert c.duration_minutes == 15
    with pytest.raises(OnboardingValidationError, match="Invalid race duration"):
        c.set_duration(7)


def test_blocking_reason_until_ready():
    c = _collector(current_user=ME)
    assert not c.can_start
    assert c.blocking_reason == "Need 1 more player"
    c.add("bob")
    assert c.can_start
    assert c.blocking_reason is None


def test_result_snapshot():
    c = _collector(current_user=ME, duration_minutes=5)
    c.add("Guesty")
    result = c.result()
    assert len(result.players) == 2
    assert result.duration_minutes == 5
    assert result.human_player.key == "me"


def test_malformed_registered_user_is_rejected():
    with pytest.raises(MalformedInputError):
        OnboardingCollector([{"username": "no-key"}], min_players=2)


def test_guest_keys_are_unique():
    assert new_guest_key() != new_guest_key()
