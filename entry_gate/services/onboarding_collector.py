"""Onboarding Collector - assembles the race roster, duration and human player.

Invariants:
    - Registered users are validated at construction (MalformedInputError on bad entries)
    - A player appears at most once (by key, case-insensitive username or wallet)
    - The current user, when known, is added first and chosen as the human player
    - Removing the chosen player re-assigns the choice to the first remaining player
    - duration is one of RACE_DURATION_OPTIONS
"""

import logging
import secrets
import time
from collections.abc import Iterable, Mapping

from entry_gate.core.domain_types import (
    GUEST_KEY_PREFIX, MAX_SEARCH_SUGGESTIONS, RACE_DURATION_OPTIONS,
)
from entry_gate.core.errors import OnboardingValidationError
from entry_gate.schemas.boundary import parse_record
from entry_gate.schemas.onboarding import OnboardingResult, Player, RegisteredUser

logger = logging.getLogger(__name__)


def new_guest_key() -> str:
    return f"{GUEST_KEY_PREFIX}{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def player_from_user(user: RegisteredUser) -> Player:
    return Player(
        key=user.key,
        name=user.username or "Guest Player",
        username=user.username or None,
        avatar_url=user.avatar_url,
        wallet=user.wallet or None,
    )


class OnboardingCollector:
    """Collects the onboarding result consumed by PaymentOrchestrator."""

    def __init__(
        self,
        registered_users: Iterable[RegisteredUser | Mapping],
        min_players: int,
        current_user: Player | Mapping | None = None,
        duration_minutes: int = 1,
    ):
        self.registered = [
            parse_record(RegisteredUser, raw, "registered user")
            for raw in registered_users
        ]
        self.min_players = min_players
        self.selected: list[Player] = []
        self.human_key: str | None = None
        self.duration_minutes = 0
        self.set_duration(duration_minutes)

        if current_user is not None:
            me = parse_record(Player, current_user, "current user")
            self.selected.append(me.model_copy(update={"is_human_player": True}))
            self.human_key = me.key

    # --- roster ---------------------------------------------------------------

    def search(self, query: str) -> list[RegisteredUser]:
        """Registered users matching `query` on username or wallet, not yet selected."""
        q = query.strip().lower()
        if not q:
            return []
        matches = [
            u for u in self.registered
            if (q in u.username.lower() or q in u.wallet.lower())
            and not self._is_selected(u.key, u.username, u.wallet)
        ]
        return matches[:MAX_SEARCH_SUGGESTIONS]

    def add(self, value: str) -> Player:
        """Add a registered user by username/wallet, or a guest named `value`."""
        value = value.strip()
        if not value:
            raise OnboardingValidationError("Player name cannot be empty", "players")
        if self._is_selected(None, value, value):
            raise OnboardingValidationError(
                "This player is already in the race.", "players",
            )

        lowered = value.lower()
        found = next(
            (
                u for u in self.registered
                if u.username.lower() == lowered or (u.wallet and u.wallet.lower() == lowered)
            ),
            None,
        )
        if found is not None:
            player = player_from_user(found)
        else:
            player = Player(key=new_guest_key(), name=value, username=value)
        return self._append(player)

    def add_registered(self, user: RegisteredUser | Mapping) -> Player:
        """Add a user picked from search suggestions."""
        user = parse_record(RegisteredUser, user, "registered user")
        if self._is_selected(user.key, user.username, user.wallet):
            raise OnboardingValidationError(
                "This player is already in the race.", "players",
            )
        return self._append(player_from_user(user))

    def remove(self, index: int) -> Player:
        if not 0 <= index < len(self.selected):
            raise OnboardingValidationError(f"No player at position {index}", "players")
        removed = self.selected.pop(index)
        if removed.key == self.human_key:
            self.human_key = self.selected[0].key if self.selected else None
        return removed

    def choose_human(self, key: str) -> None:
        if key not in {p.key for p in self.selected}:
            raise OnboardingValidationError("Chosen player is not in the race", "human_player")
        self.human_key = key

    def set_duration(self, minutes: int) -> None:
        if minutes not in RACE_DURATION_OPTIONS:
            raise OnboardingValidationError("Invalid race duration", "duration_minutes")
        self.duration_minutes = minutes

    # --- readiness ------------------------------------------------------------

    @property
    def human_player(self) -> Player | None:
        return next((p for p in self.selected if p.key == self.human_key), None)

    @property
    def can_start(self) -> bool:
        return (
            len(self.selected) >= self.min_players
            and self.duration_minutes > 0
            and self.human_player is not None
        )

    @property
    def blocking_reason(self) -> str | None:
        if self.can_start:
            return None
        missing = self.min_players - len(self.selected)
        if missing > 0:
            return f"Need {missing} more player{'s' if missing != 1 else ''}"
        if self.human_player is None:
            return "Select your player"
        return "Setup incomplete"

    def result(self) -> OnboardingResult:
        """Snapshot for PaymentOrchestrator.complete_onboarding."""
        if not self.can_start:
            logger.info(f"Onboarding result requested early: {self.blocking_reason}")
        return OnboardingResult(
            players=list(self.selected),
            duration_minutes=self.duration_minutes,
            human_player=self.human_player,
        )

    # --- helpers --------------------------------------------------------------

    def _append(self, player: Player) -> Player:
        self.selected.append(player)
        if self.human_key is None:
            self.human_key = player.key
        return player

    def _is_selected(self, key: str | None, username: str | None, wallet: str | None) -> bool:
        name = (username or "").lower()
        wal = (wallet or "").lower()
        for p in self.selected:
            if key and p.key == key:
                return True
            if name and (p.username or p.name).lower() == name:
                return True
            if wal and p.wallet and p.wallet.lower() == wal:
                return True
        return False
