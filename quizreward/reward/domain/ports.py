from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from quizreward.reward.domain.models import Collection, RewardClaimed, RewardUnit


class ISupplyLedger(ABC):
    """
    Authoritative record of issued units, the supply counter, the registered
    owner and the claim event log.

    Identifiers are 1-based: next_identifier() peeks total_supply() + 1 and
    never reserves anything. Mutations are only valid inside transaction().
    """

    # --- Transaction Boundary ---

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """
        Serializes writers and makes every mutation inside the block atomic:
        all of it becomes visible on exit, none of it on exception.
        """
        pass

    # --- Issuance ---

    @abstractmethod
    def next_identifier(self) -> int:
        pass

    @abstractmethod
    def record(self, token_id: int, owner: str, artwork: str) -> RewardUnit:
        """Raises LedgerInconsistencyError when token_id is already recorded."""
        pass

    @abstractmethod
    def total_supply(self) -> int:
        pass

    @abstractmethod
    def owner_of(self, token_id: int) -> str | None:
        pass

    @abstractmethod
    def artwork_of(self, token_id: int) -> str | None:
        pass

    @abstractmethod
    def balance_of(self, owner: str) -> int:
        pass

    # --- Ownership & Identity ---

    @abstractmethod
    def registered_owner(self) -> str | None:
        pass

    @abstractmethod
    def register_owner(self, address: str) -> None:
        pass

    @abstractmethod
    def collection(self) -> Collection | None:
        pass

    @abstractmethod
    def set_collection(self, collection: Collection) -> None:
        pass

    # --- Claims & Events ---

    @abstractmethod
    def has_claimed(self, participant: str) -> bool:
        pass

    @abstractmethod
    def mark_claimed(self, participant: str) -> None:
        pass

    @abstractmethod
    def append_event(self, event: RewardClaimed) -> None:
        pass

    @abstractmethod
    def events(self) -> list[RewardClaimed]:
        pass
