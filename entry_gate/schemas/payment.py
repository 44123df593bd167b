"""Payment Schemas - validated records exchanged with the ledger, issuer and profile store.

Invariants:
    - EntryTicket.ticket_id is non-empty (a body without gameEntryTokenId is malformed)
    - FinalityReport with finalized=False carries the execution error when the ledger gave one
    - IssueRequest.proof is present iff currency is ON_CHAIN
    - Free-credit counters are non-negative integers, default 0

Design Decisions:
    - camelCase aliases mirror the wire format; populate_by_name keeps Python call sites snake_case
"""

from decimal import Decimal

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, model_validator,
)

from entry_gate.core.domain_types import PaymentMethod


class TransferReceipt(BaseModel):
    """Ledger acknowledgement of a submitted transfer."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    transaction_id: str = Field(alias="transactionId", min_length=1)


class FinalityReport(BaseModel):
    """Outcome of waiting for a transaction to become irreversible."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    finalized: bool
    execution_error: str | None = Field(None, alias="executionError")


class EntryTicket(BaseModel):
    """Single-use entry token returned by the issuer."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ticket_id: str = Field(alias="gameEntryTokenId", min_length=1)
    message: str | None = None


class IssueRequest(BaseModel):
    """Payment descriptor sent to the issuer (credential travels separately)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    game_type: str = Field(alias="gameType", min_length=1)
    game_id: str = Field(alias="gameId", min_length=1)
    bet_amount: Decimal = Field(alias="betAmount", ge=0)
    currency: PaymentMethod
    proof: str | None = None

    @model_validator(mode="after")
    def proof_matches_currency(self) -> "IssueRequest":
        if self.currency == PaymentMethod.ON_CHAIN and not self.proof:
            raise ValueError("ON_CHAIN issuance requires a transaction proof")
        if self.currency == PaymentMethod.FREE_CREDIT and self.proof:
            raise ValueError("FREE_CREDIT issuance carries no proof")
        return self

    def to_payload(self) -> dict:
        """Wire body for the issuer; `proof` omitted when absent."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class FreeEntryTokens(BaseModel):
    """Per-category free entry allowance from the user's profile."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    arcade: int = Field(0, ge=0, validation_alias=AliasChoices("arcade", "arcadeTokens"))
    picker: int = Field(0, ge=0, validation_alias=AliasChoices("picker", "pickerTokens"))
    casino: int = Field(0, ge=0, validation_alias=AliasChoices("casino", "casinoTokens"))
    pvp: int = Field(0, ge=0, validation_alias=AliasChoices("pvp", "pvpTokens"))


class ProfileSnapshot(BaseModel):
    """The slice of a profile blob the entry gate reads."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    free_entry_tokens: FreeEntryTokens = Field(
        default_factory=FreeEntryTokens, alias="freeEntryTokens",
    )

    def free_credits_for(self, game_type: str) -> int:
        """Balance for a game category; unknown categories have none."""
        return getattr(self.free_entry_tokens, game_type.lower(), 0)
