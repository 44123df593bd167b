"""Payment Orchestrator - drives one SessionAttempt from payment to onboarding handoff.

Invariants:
    - One live SessionAttempt per orchestrator; a new start() replaces only settled attempts
    - The attempt is released on cancel and on a successful handoff
    - The credential is re-fetched from the provider on every operation, never cached
    - Paid branch order: submit -> await finality (finalized=True) -> issue, strictly sequential
    - EntryIssuer.issue is never called twice with the same idempotency key in one attempt
    - Ledger submission is never retried; a paid-but-unticketed failure is never auto-resolved
    - Local refusals raise and leave the phase untouched; ledger/issuer failures move to `error`
    - Every failure carries a kind and a human-readable message

Design Decisions:
    - Collaborators injected at construction; identity changes arrive via on_credential_changed
    - in_flight flag on the attempt is the single-flight guard (checked, not conventional)
    - Pure guards live in core/enforce_transitions.py; this module only sequences IO around them
"""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

import httpx

from entry_gate.config import Settings, get_settings
from entry_gate.core.amounts import to_minor_units
from entry_gate.core.credential import Credential
from entry_gate.core.domain_types import (
    MinorUnits, PaymentMethod, Phase, TransactionId,
)
from entry_gate.core.enforce_transitions import (
    check_can_cancel,
    check_can_retry,
    check_can_select,
    check_credential,
    check_free_credit,
    check_in_onboarding,
    check_onboarding_result,
)
from entry_gate.core.error_messages import normalize_payment_message
from entry_gate.core.errors import (
    AttemptInFlightError,
    EntryGateError,
    ErrorContext,
    ErrorSeverity,
    InsufficientCreditError,
    IssuanceFailedError,
    LedgerNetworkError,
    MalformedInputError,
    PaidButUnticketedError,
    TransactionExecutionError,
)
from entry_gate.core.protocols import (
    CredentialProvider, EntryIssuer, LedgerClient, ProfileSource, ReconciliationLog,
)
from entry_gate.core.session_attempt import SessionAttempt
from entry_gate.infrastructure.entry_issuer_client import HttpEntryIssuer
from entry_gate.infrastructure.profile_client import HttpProfileSource
from entry_gate.schemas.boundary import parse_record
from entry_gate.schemas.onboarding import OnboardingResult, SessionHandoff
from entry_gate.schemas.payment import (
    EntryTicket, FinalityReport, IssueRequest, ProfileSnapshot, TransferReceipt,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateConfig:
    """Read-only configuration inputs for one game's entry gate."""
    entry_amount: Decimal
    destination_address: str
    game_id: str
    game_title: str
    game_category: str
    min_players: int = 2
    minor_unit_multiplier: int = 1_000_000_000

    @classmethod
    def from_settings(cls, settings: Settings) -> "GateConfig":
        return cls(
            entry_amount=settings.entry_amount,
            destination_address=settings.destination_address,
            game_id=settings.game_id,
            game_title=settings.game_title,
            game_category=settings.game_category,
            min_players=settings.min_players,
            minor_unit_multiplier=settings.minor_unit_multiplier,
        )


class PaymentOrchestrator:
    """State machine: pay -> paying -> onboarding -> done, with error -> pay retry."""

    def __init__(
        self,
        credentials: CredentialProvider,
        ledger: LedgerClient,
        issuer: EntryIssuer,
        config: GateConfig,
        profile: ProfileSource | None = None,
        reconciliation: ReconciliationLog | None = None,
    ):
        self.credentials = credentials
        self.ledger = ledger
        self.issuer = issuer
        self.config = config
        self.profile = profile
        self.reconciliation = reconciliation
        self.attempt: SessionAttempt | None = None
        self.credential_present = False
        self._unsubscribe = credentials.subscribe(self.on_credential_changed)

    @property
    def phase(self) -> Phase | None:
        return self.attempt.phase if self.attempt else None

    # ─── Lifecycle ───────────────────────────────────────────────

    def start(self) -> SessionAttempt:
        """Create the live attempt in `pay`."""
        if self.attempt is not None and self.attempt.in_flight:
            raise AttemptInFlightError(self._context(self.attempt))
        self.attempt = SessionAttempt()
        logger.info("Attempt started", extra=self._log_extra(self.attempt))
        return self.attempt

    def cancel(self) -> None:
        """Discard the attempt. Refused while a payment call is in flight."""
        self._raise_if(check_can_cancel(self.attempt), self.attempt)
        if self.attempt is not None:
            logger.info("Attempt cancelled", extra=self._log_extra(self.attempt))
        self.attempt = None

    def retry(self) -> SessionAttempt:
        """error -> pay. The method must be chosen again; no proof is carried over."""
        self._raise_if(check_can_retry(self.attempt), self.attempt)
        self.attempt.reset_for_retry()
        logger.info("Attempt reset for retry", extra=self._log_extra(self.attempt))
        return self.attempt

    def close(self) -> None:
        """Stop listening for identity changes."""
        self._unsubscribe()

    async def aclose(self) -> None:
        """close() plus release of the issuer's HTTP client, when it has one."""
        self.close()
        aclose = getattr(self.issuer, "aclose", None)
        if aclose is not None:
            await aclose()

    def on_credential_changed(self, credential: Credential | None) -> None:
        """Identity change callback registered with the credential provider."""
        self.credential_present = credential is not None
        extra = self._log_extra(self.attempt) if self.attempt else {}
        if credential is None:
            logger.info("Credential cleared", extra=extra)
        else:
            logger.info("Credential changed", extra=extra)

    # ─── pay -> paying -> onboarding | error ─────────────────────

    async def select_method(self, method: PaymentMethod) -> Phase:
        """Pay with `method`. Returns the phase the attempt lands in."""
        attempt = self.attempt
        self._raise_if(check_can_select(attempt), attempt)

        with self._single_flight(attempt):
            credential = await self.credentials.current()
            self._raise_if(check_credential(credential), attempt)

            if method == PaymentMethod.FREE_CREDIT:
                balance = await self._free_credit_balance()
                self._raise_if(check_free_credit(balance), attempt)

            attempt.begin_payment(method)
            logger.info(
                f"Payment started ({method.value})",
                extra=self._log_extra(attempt),
            )
            if method == PaymentMethod.FREE_CREDIT:
                await self._pay_with_free_credit(attempt, credential)
            else:
                await self._pay_on_chain(attempt, credential)

        return attempt.phase

    async def _pay_with_free_credit(
        self, attempt: SessionAttempt, credential: Credential,
    ) -> None:
        request = IssueRequest(
            game_type=self.config.game_category.lower(),
            game_id=self.config.game_id,
            bet_amount=Decimal(0),
            currency=PaymentMethod.FREE_CREDIT,
        )
        try:
            ticket = await self._issue(attempt, credential, request)
        except EntryGateError as e:
            self._fail(attempt, self._normalized(e))
            return

        attempt.ticket = ticket
        attempt.advance(Phase.ONBOARDING)
        logger.info("Free entry ticket issued", extra=self._log_extra(attempt))
        await self._refresh_profile()

    async def _pay_on_chain(
        self, attempt: SessionAttempt, credential: Credential,
    ) -> None:
        try:
            amount = to_minor_units(
                self.config.entry_amount, self.config.minor_unit_multiplier,
            )
            transaction_id = await self._submit(amount)
            await self._confirm(transaction_id)
        except EntryGateError as e:
            self._fail(attempt, self._normalized(e))
            return

        attempt.proof = transaction_id
        logger.info("Payment finalized", extra=self._log_extra(attempt))
        await self._record_confirmed(attempt, transaction_id, amount)

        request = IssueRequest(
            game_type=self.config.game_category.lower(),
            game_id=self.config.game_id,
            bet_amount=self.config.entry_amount,
            currency=PaymentMethod.ON_CHAIN,
            proof=transaction_id,
        )
        try:
            ticket = await self._issue(attempt, credential, request)
        except EntryGateError as e:
            reason = self._normalized(e).message
            unticketed = PaidButUnticketedError(
                transaction_id, reason, self._context(attempt),
            )
            await self._record_unticketed(transaction_id, unticketed.message)
            self._fail(attempt, unticketed)
            return

        attempt.ticket = ticket
        attempt.advance(Phase.ONBOARDING)
        logger.info("Paid entry ticket issued", extra=self._log_extra(attempt))
        await self._record_ticketed(transaction_id, ticket.ticket_id)

    # ─── onboarding -> done ──────────────────────────────────────

    async def complete_onboarding(
        self, result: OnboardingResult | Mapping,
    ) -> SessionHandoff:
        """Validate the onboarding result and produce the session handoff.

        Validation failures raise OnboardingValidationError and leave the
        attempt in `onboarding`. On success the attempt is released.
        """
        attempt = self.attempt
        self._raise_if(check_in_onboarding(attempt), attempt)
        result = parse_record(OnboardingResult, result, "onboarding result")

        with self._single_flight(attempt):
            credential = await self.credentials.current()

        violation = check_onboarding_result(result, credential, attempt.ticket)
        if violation is not None:
            logger.info(
                f"Onboarding rejected: {violation.message}",
                extra=self._log_extra(attempt, violation),
            )
            self._raise_if(violation, attempt)

        handoff = build_handoff(result, attempt, credential, self.config)
        attempt.advance(Phase.DONE)
        logger.info("Handoff ready", extra=self._log_extra(attempt))
        self.attempt = None
        return handoff

    # ─── Collaborator calls ──────────────────────────────────────

    async def _submit(self, amount: MinorUnits) -> TransactionId:
        try:
            raw = await self.ledger.submit_transfer(
                self.config.destination_address, amount,
            )
        except EntryGateError:
            raise
        except Exception as e:
            logger.error(f"Unexpected ledger submit error: {e}", exc_info=True)
            raise LedgerNetworkError(str(e) or "Ledger submission failed") from e

        if isinstance(raw, Mapping):
            return TransactionId(
                parse_record(TransferReceipt, raw, "transfer receipt").transaction_id,
            )
        if not isinstance(raw, str) or not raw:
            raise MalformedInputError("transfer receipt", f"expected transaction id, got {raw!r}")
        return TransactionId(raw)

    async def _confirm(self, transaction_id: TransactionId) -> None:
        try:
            raw = await self.ledger.await_finality(transaction_id)
        except EntryGateError:
            raise
        except Exception as e:
            logger.error(f"Unexpected ledger finality error: {e}", exc_info=True)
            raise TransactionExecutionError(transaction_id, str(e) or "unknown error") from e

        report = parse_record(FinalityReport, raw, "finality report")
        if not report.finalized:
            raise TransactionExecutionError(
                transaction_id, report.execution_error or "transaction not finalized",
            )

    async def _issue(
        self, attempt: SessionAttempt, credential: Credential, request: IssueRequest,
    ) -> EntryTicket:
        key = attempt.idempotency_key()
        if key in attempt.issued_keys:
            raise IssuanceFailedError(
                "Entry token was already requested for this payment.", proof=attempt.proof,
            )
        attempt.issued_keys.add(key)

        try:
            raw = await self.issuer.issue(credential, request, key)
        except EntryGateError:
            raise
        except Exception as e:
            logger.error(f"Unexpected issuer error: {e}", exc_info=True)
            raise IssuanceFailedError(
                str(e) or "Failed to generate game entry token.", proof=attempt.proof,
            ) from e
        return parse_record(EntryTicket, raw, "entry ticket")

    async def _free_credit_balance(self) -> int:
        if self.profile is None:
            return 0
        try:
            raw = await self.profile.snapshot()
        except EntryGateError:
            raise
        except Exception as e:
            logger.warning(f"Free entry balance unavailable: {e}")
            raise InsufficientCreditError(
                "Could not load your free entry credits. Please try again.",
                severity=ErrorSeverity.WARNING,
            ) from e
        snapshot = parse_record(ProfileSnapshot, raw, "profile")
        return snapshot.free_credits_for(self.config.game_category)

    async def _refresh_profile(self) -> None:
        if self.profile is None:
            return
        try:
            await self.profile.refresh()
        except Exception as e:
            logger.warning(f"Profile refresh failed after free entry: {e}")

    # ─── Reconciliation log ──────────────────────────────────────

    async def _record_confirmed(
        self, attempt: SessionAttempt, transaction_id: TransactionId, amount: MinorUnits,
    ) -> None:
        if self.reconciliation is None:
            return
        try:
            await self.reconciliation.record_confirmed(
                transaction_id, str(attempt.attempt_id), self.config.game_id,
                amount, self.config.destination_address,
            )
        except Exception as e:
            logger.error(
                f"Reconciliation log write failed (confirmed): {e}",
                extra={"transaction_id": transaction_id}, exc_info=True,
            )

    async def _record_ticketed(
        self, transaction_id: TransactionId, entry_ticket_id: str,
    ) -> None:
        if self.reconciliation is None:
            return
        try:
            await self.reconciliation.mark_ticketed(transaction_id, entry_ticket_id)
        except Exception as e:
            logger.error(
                f"Reconciliation log write failed (ticketed): {e}",
                extra={"transaction_id": transaction_id}, exc_info=True,
            )

    async def _record_unticketed(
        self, transaction_id: TransactionId, message: str,
    ) -> None:
        if self.reconciliation is None:
            return
        try:
            await self.reconciliation.mark_unticketed(transaction_id, message)
        except Exception as e:
            logger.error(
                f"Reconciliation log write failed (unticketed): {e}",
                extra={"transaction_id": transaction_id}, exc_info=True,
            )

    # ─── Helpers ─────────────────────────────────────────────────

    @contextmanager
    def _single_flight(self, attempt: SessionAttempt) -> Iterator[None]:
        if attempt.in_flight:
            raise AttemptInFlightError(self._context(attempt))
        attempt.in_flight = True
        try:
            yield
        finally:
            attempt.in_flight = False

    def _fail(self, attempt: SessionAttempt, error: EntryGateError) -> None:
        error.context.attempt_id = str(attempt.attempt_id)
        error.context.phase = Phase.ERROR.value
        attempt.fail(error)
        logger.warning(
            f"Attempt failed: {error.message}",
            extra=self._log_extra(attempt, error),
        )

    def _raise_if(
        self, error: EntryGateError | None, attempt: SessionAttempt | None,
    ) -> None:
        if error is None:
            return
        if attempt is not None:
            error.context.attempt_id = str(attempt.attempt_id)
            error.context.phase = attempt.phase.value
        raise error

    @staticmethod
    def _normalized(error: EntryGateError) -> EntryGateError:
        error.message = normalize_payment_message(error.message)
        error.args = (error.message,)
        return error

    @staticmethod
    def _context(attempt: SessionAttempt) -> ErrorContext:
        return ErrorContext(
            attempt_id=str(attempt.attempt_id), phase=attempt.phase.value,
            transaction_id=attempt.proof,
        )

    @staticmethod
    def _log_extra(
        attempt: SessionAttempt, error: EntryGateError | None = None,
    ) -> dict:
        extra = {
            "attempt_id": str(attempt.attempt_id),
            "phase": attempt.phase.value,
        }
        if attempt.proof:
            extra["transaction_id"] = attempt.proof
        if error is not None:
            extra["error_code"] = error.code
        return extra


def build_handoff(
    result: OnboardingResult,
    attempt: SessionAttempt,
    credential: Credential,
    config: GateConfig,
) -> SessionHandoff:
    """Compose the game configuration. Only the chosen player is marked human."""
    human_key = result.human_player.key
    players = [
        p.model_copy(update={
            "is_human_player": p.key == human_key,
            "name": p.username or p.name,
        })
        for p in result.players
    ]
    paid = attempt.method == PaymentMethod.ON_CHAIN
    return SessionHandoff(
        players=players,
        duration=result.duration_minutes,
        human_player_key=human_key,
        bet_amount=config.entry_amount if paid else Decimal(0),
        currency=attempt.method,
        payment_signature=attempt.proof,
        game_entry_token_id=attempt.ticket.ticket_id,
        auth_token=credential.token,
        game_id=config.game_id,
        game_title=config.game_title,
    )


def build_orchestrator(
    credentials: CredentialProvider,
    ledger: LedgerClient,
    settings: Settings | None = None,
    reconciliation: ReconciliationLog | None = None,
) -> PaymentOrchestrator:
    """Wire the HTTP issuer and profile source from settings."""
    settings = settings or get_settings()
    client = httpx.AsyncClient(
        base_url=settings.issuer_base_url, timeout=settings.issuer_timeout_seconds,
    )
    issuer = HttpEntryIssuer(
        settings.issuer_base_url,
        timeout_seconds=settings.issuer_timeout_seconds,
        max_retries=settings.issuer_max_retries,
        base_delay_ms=settings.issuer_base_delay_ms,
        max_delay_ms=settings.issuer_max_delay_ms,
        client=client,
    )
    return PaymentOrchestrator(
        credentials,
        ledger,
        issuer,
        GateConfig.from_settings(settings),
        profile=HttpProfileSource(client, credentials),
        reconciliation=reconciliation,
    )
