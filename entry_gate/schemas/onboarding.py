"""Onboarding Schemas - roster records and the handoff produced after onboarding.

Invariants:
    - Player.key and Player.name are non-empty; avatar falls back to the default asset
    - Exactly one player in SessionHandoff.players has is_human_player=True
    - SessionHandoff.duration is a positive number of minutes

Design Decisions:
    - OnboardingResult is unconstrained: the orchestrator validates it and
      reports user-facing messages instead of MalformedInputError
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from entry_gate.core.domain_types import (
    DEFAULT_AVATAR_URL, GUEST_KEY_PREFIX, PaymentMethod,
)


class RegisteredUser(BaseModel):
    """A registered user as listed by the user directory."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    key: str = Field(min_length=1)
    username: str = ""
    avatar_url: str = Field("", alias="avatarUrl")
    wallet: str = ""


class Player(BaseModel):
    """A race participant."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str = Field(min_length=1)
    name: str = Field(min_length=1)
    username: str | None = None
    avatar_url: str = Field(DEFAULT_AVATAR_URL, alias="avatarUrl")
    wallet: str | None = None
    is_human_player: bool = Field(False, alias="isHumanPlayer")

    @field_validator("avatar_url", mode="before")
    @classmethod
    def default_avatar(cls, v: str | None) -> str:
        return v or DEFAULT_AVATAR_URL

    @property
    def is_guest(self) -> bool:
        return self.wallet is None and self.key.startswith(GUEST_KEY_PREFIX)


class OnboardingResult(BaseModel):
    """What the onboarding step hands back: roster, duration, chosen player."""
    players: list[Player] = Field(default_factory=list)
    duration_minutes: int = 0
    human_player: Player | None = None


class SessionHandoff(BaseModel):
    """Final session configuration passed to the game."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    players: list[Player] = Field(min_length=1)
    duration: int = Field(gt=0)
    human_player_key: str = Field(alias="humanPlayerKey", min_length=1)
    bet_amount: Decimal = Field(alias="betAmount", ge=0)
    currency: PaymentMethod
    payment_signature: str | None = Field(None, alias="paymentSignature")
    game_entry_token_id: str = Field(alias="gameEntryTokenId", min_length=1)
    auth_token: str = Field(alias="authToken", min_length=1)
    game_id: str = Field(alias="gameId")
    game_title: str = Field(alias="gameTitle")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
