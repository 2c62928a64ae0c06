from collections.abc import Callable

from quizreward.config import RewardConfig
from quizreward.fsm import MintAction, MintState, MintStateMachine
from quizreward.reward.domain.access_guard import AccessGuard
from quizreward.reward.domain.artwork import ArtworkGenerator
from quizreward.reward.domain.errors import (
    EligibilityError,
    EligibilityReason,
    LedgerInconsistencyError,
    RewardError,
    ValidationError,
    ValidationReason,
)
from quizreward.reward.domain.models import (
    ArtworkSource,
    AuthorizationContext,
    Collection,
    Derive,
    Explicit,
    RewardClaimed,
)
from quizreward.reward.domain.ports import ISupplyLedger
from quizreward.shared.telemetry import Telemetry, measure_time


class RewardIssuer:
    """
    Orchestrates minting:
    AccessGuard -> ArtworkGenerator -> SupplyLedger -> RewardClaimed event.

    Every mutating call runs inside a single ledger transaction, so a mint
    either fully commits or leaves no trace.
    """

    def __init__(
        self,
        ledger: ISupplyLedger,
        context: AuthorizationContext,
        name: str = RewardConfig.COLLECTION_NAME,
        symbol: str = RewardConfig.COLLECTION_SYMBOL,
        artwork: ArtworkGenerator | None = None,
        guard: AccessGuard | None = None,
    ) -> None:
        self.ledger = ledger
        self.artwork = artwork or ArtworkGenerator()
        self.guard = guard or AccessGuard()
        self.telemetry = Telemetry("RewardIssuer")
        self._last_state = MintState.IDLE

        with self.ledger.transaction():
            if self.ledger.registered_owner() is None:
                self.ledger.set_collection(Collection(name=name, symbol=symbol))
                self.ledger.register_owner(context.originator)
                self.telemetry.log_info(
                    "🪙 Collection initialized",
                    name=name,
                    symbol=symbol,
                    owner=context.originator,
                )

    # --- Queries ---

    @property
    def last_state(self) -> MintState:
        """Terminal state of the most recent mint attempt."""
        return self._last_state

    @property
    def name(self) -> str | None:
        collection = self.ledger.collection()
        return collection.name if collection else None

    @property
    def symbol(self) -> str | None:
        collection = self.ledger.collection()
        return collection.symbol if collection else None

    @property
    def registered_owner(self) -> str | None:
        return self.ledger.registered_owner()

    def total_supply(self) -> int:
        return self.ledger.total_supply()

    def owner_of(self, token_id: int) -> str | None:
        return self.ledger.owner_of(token_id)

    def balance_of(self, owner: str) -> int:
        return self.ledger.balance_of(owner)

    def token_uri(self, token_id: int) -> str | None:
        """The artwork stored at mint time, which may differ from the preview."""
        return self.ledger.artwork_of(token_id)

    def events(self) -> list[RewardClaimed]:
        return self.ledger.events()

    def has_claimed(self, participant: str) -> bool:
        return self.ledger.has_claimed(participant)

    def generate_preview(self, token_id: int) -> str:
        return self.artwork.render(token_id)

    # Name kept for callers written against the contract ABI
    generate_complex_svg = generate_preview

    # --- Commands ---

    @measure_time("mint")
    def mint(
        self,
        recipient: str,
        context: AuthorizationContext,
        artwork: ArtworkSource | str | None = None,
    ) -> int:
        Telemetry.start_trace()
        # A bare string is an explicit payload, as in the contract ABI
        if isinstance(artwork, str):
            artwork = Explicit(payload=artwork)
        return self._issue(recipient, context, artwork or Derive())

    @measure_time("claim_reward")
    def claim_reward(
        self, participant: str, context: AuthorizationContext, eligible: bool
    ) -> int:
        """
        Mints a derived badge for a participant the quiz has declared eligible.
        At most one claim per participant is ever accepted.
        """

        def eligibility_gate() -> None:
            if not eligible:
                raise EligibilityError(EligibilityReason.NOT_ELIGIBLE, participant)
            if self.ledger.has_claimed(participant):
                raise EligibilityError(EligibilityReason.ALREADY_CLAIMED, participant)

        Telemetry.start_trace()
        return self._issue(
            participant,
            context,
            Derive(),
            extra_gate=eligibility_gate,
            on_commit=lambda: self.ledger.mark_claimed(participant),
        )

    @measure_time("transfer_ownership")
    def transfer_ownership(self, new_owner: str, context: AuthorizationContext) -> None:
        Telemetry.start_trace()
        with self.ledger.transaction():
            self.guard.check(context, self.ledger.registered_owner())
            self._check_address(new_owner, "new owner")
            self.ledger.register_owner(new_owner)
        self.telemetry.log_info(
            "👑 Ownership transferred", previous=context.originator, owner=new_owner
        )

    # --- Internals ---

    def _issue(
        self,
        recipient: str,
        context: AuthorizationContext,
        source: ArtworkSource,
        extra_gate: Callable[[], None] | None = None,
        on_commit: Callable[[], None] | None = None,
    ) -> int:
        fsm = MintStateMachine()
        fsm.transition(MintAction.BEGIN)

        try:
            with self.ledger.transaction():
                # 1. Authorizing
                self.guard.check(context, self.ledger.registered_owner())
                self._check_address(recipient, "recipient")
                if extra_gate:
                    extra_gate()
                fsm.transition(MintAction.AUTHORIZED)

                # 2. Rendering
                token_id = self.ledger.next_identifier()
                payload = self._resolve_artwork(token_id, source)
                fsm.transition(MintAction.RENDERED)

                # 3. Committing
                self.ledger.record(token_id, recipient, payload)
                self.ledger.append_event(RewardClaimed(recipient=recipient, id=token_id))
                if on_commit:
                    on_commit()
            fsm.transition(MintAction.COMMITTED)
        except LedgerInconsistencyError as e:
            fsm.transition(MintAction.REJECT)
            self._finish(fsm)
            self.telemetry.log_error("Ledger invariant violated", e, recipient=recipient)
            raise
        except RewardError as e:
            fsm.transition(MintAction.REJECT)
            self._finish(fsm)
            self.telemetry.log_warning(
                "Mint rejected",
                reason=str(e),
                recipient=recipient,
                originator=context.originator,
            )
            raise
        except Exception as e:
            fsm.transition(MintAction.REJECT)
            self._finish(fsm)
            self.telemetry.log_error("Mint aborted", e, recipient=recipient)
            raise

        self._finish(fsm)
        self.telemetry.log_info("🎖️ RewardClaimed", recipient=recipient, id=token_id)
        return token_id

    @staticmethod
    def _check_address(address: object, role: str) -> None:
        if not isinstance(address, str):
            raise ValidationError(
                ValidationReason.INVALID_RECIPIENT,
                f"{role} must be an address string, got {type(address).__name__}",
            )
        if RewardConfig.is_unset_address(address):
            raise ValidationError(ValidationReason.INVALID_RECIPIENT, f"{role} is unset")

    def _resolve_artwork(self, token_id: int, source: ArtworkSource) -> str:
        match source:
            case Explicit(payload=payload):
                return self.artwork.validate(payload)
            case Derive():
                return self.artwork.render(token_id)
            case _:
                raise ValidationError(
                    ValidationReason.INVALID_ARTWORK, f"unknown artwork source {source!r}"
                )

    def _finish(self, fsm: MintStateMachine) -> None:
        self._last_state = fsm.current_state
        Telemetry.count_mint(fsm.current_state.name)
