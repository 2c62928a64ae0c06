import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from quizreward.config import RewardConfig
from quizreward.reward.domain.errors import LedgerInconsistencyError, LedgerReason
from quizreward.reward.domain.models import Collection, RewardClaimed, RewardUnit
from quizreward.reward.domain.ports import ISupplyLedger
from quizreward.shared.telemetry import Telemetry


@dataclass
class LedgerState:
    """The whole mutable ledger in one struct."""

    registered_owner: str | None = None
    collection: Collection | None = None
    supply: int = 0
    units: dict[int, RewardUnit] = field(default_factory=dict)
    claimed: set[str] = field(default_factory=set)
    events: list[RewardClaimed] = field(default_factory=list)


class InMemorySupplyLedger(ISupplyLedger):
    """
    Mutations are applied in place and each one pushes its inverse onto an
    undo log. Aborting the outermost transaction replays the log backwards.
    Readers take the same lock as writers, so no thread observes a
    half-applied transaction.
    """

    def __init__(self, state: LedgerState | None = None) -> None:
        self.state = state or LedgerState()
        self.telemetry = Telemetry("InMemorySupplyLedger")
        self._lock = threading.RLock()
        self._depth = 0
        self._undo: list[Callable[[], None]] = []

    # --- Pickle Safety (locks and closures cannot be pickled) ---
    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        del state["_lock"]
        del state["_undo"]
        return state

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._lock = threading.RLock()
        self._depth = 0
        self._undo = []

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._undo.clear()

    def _rollback(self) -> None:
        steps = len(self._undo)
        while self._undo:
            self._undo.pop()()
        self.telemetry.log_info("↩️ Transaction rolled back", steps=steps)

    def _require_transaction(self) -> None:
        if self._depth == 0:
            raise RuntimeError("Ledger mutation outside of a transaction")

    # --- Issuance ---

    def next_identifier(self) -> int:
        with self._lock:
            return self.state.supply + RewardConfig.FIRST_IDENTIFIER

    def record(self, token_id: int, owner: str, artwork: str) -> RewardUnit:
        self._require_transaction()
        state = self.state
        if token_id in state.units:
            raise LedgerInconsistencyError(
                LedgerReason.DUPLICATE_IDENTIFIER,
                f"identifier {token_id} already recorded",
            )
        unit = RewardUnit(id=token_id, owner=owner, artwork=artwork)
        state.units[token_id] = unit
        state.supply += 1

        def undo() -> None:
            del state.units[token_id]
            state.supply -= 1

        self._undo.append(undo)

        if state.supply != len(state.units):
            raise LedgerInconsistencyError(
                LedgerReason.COUNTER_DIVERGENCE,
                f"supply={state.supply} units={len(state.units)}",
            )
        return unit

    def total_supply(self) -> int:
        with self._lock:
            return self.state.supply

    def owner_of(self, token_id: int) -> str | None:
        with self._lock:
            unit = self.state.units.get(token_id)
        return unit.owner if unit else None

    def artwork_of(self, token_id: int) -> str | None:
        with self._lock:
            unit = self.state.units.get(token_id)
        return unit.artwork if unit else None

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return sum(1 for u in self.state.units.values() if u.owner == owner)

    # --- Ownership & Identity ---

    def registered_owner(self) -> str | None:
        with self._lock:
            return self.state.registered_owner

    def register_owner(self, address: str) -> None:
        self._require_transaction()
        state, previous = self.state, self.state.registered_owner
        state.registered_owner = address
        self._undo.append(lambda: setattr(state, "registered_owner", previous))

    def collection(self) -> Collection | None:
        with self._lock:
            return self.state.collection

    def set_collection(self, collection: Collection) -> None:
        self._require_transaction()
        state, previous = self.state, self.state.collection
        state.collection = collection
        self._undo.append(lambda: setattr(state, "collection", previous))

    # --- Claims & Events ---

    def has_claimed(self, participant: str) -> bool:
        with self._lock:
            return participant in self.state.claimed

    def mark_claimed(self, participant: str) -> None:
        self._require_transaction()
        claimed = self.state.claimed
        if participant not in claimed:
            claimed.add(participant)
            self._undo.append(lambda: claimed.discard(participant))

    def append_event(self, event: RewardClaimed) -> None:
        self._require_transaction()
        events = self.state.events
        events.append(event)
        self._undo.append(events.pop)

    def events(self) -> list[RewardClaimed]:
        with self._lock:
            return list(self.state.events)
