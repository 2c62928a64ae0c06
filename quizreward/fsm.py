from enum import Enum, auto
import logging

logger = logging.getLogger(__name__)


class MintState(Enum):
    IDLE = auto()  # No mint in progress
    AUTHORIZING = auto()  # Checking the originator against the owner
    RENDERING = auto()  # Producing or validating the artwork payload
    COMMITTING = auto()  # Writing the unit and event to the ledger
    ISSUED = auto()  # Terminal success
    REJECTED = auto()  # Terminal failure at any gate


class MintAction(Enum):
    BEGIN = auto()
    AUTHORIZED = auto()
    RENDERED = auto()
    COMMITTED = auto()
    REJECT = auto()


class MintStateMachine:
    """
    Pure FSM Logic.
    Only cares about State Transitions, not ledgers or artwork.
    """

    def __init__(self, initial_state=MintState.IDLE):
        self._state = initial_state

    @property
    def current_state(self) -> MintState:
        return self._state

    def transition(self, action: MintAction) -> bool:
        """
        The Transition Table.
        Returns False (and leaves the state untouched) for a disallowed move.
        """
        previous = self._state

        match (self._state, action):
            case (MintState.IDLE, MintAction.BEGIN):
                self._state = MintState.AUTHORIZING

            case (MintState.AUTHORIZING, MintAction.AUTHORIZED):
                self._state = MintState.RENDERING

            case (MintState.RENDERING, MintAction.RENDERED):
                self._state = MintState.COMMITTING

            case (MintState.COMMITTING, MintAction.COMMITTED):
                self._state = MintState.ISSUED

            # Any gate may reject
            case (
                MintState.AUTHORIZING | MintState.RENDERING | MintState.COMMITTING,
                MintAction.REJECT,
            ):
                self._state = MintState.REJECTED

            case _:
                logger.error(f"⛔ INVALID TRANSITION: {self._state.name} + {action.name}")
                return False

        logger.info(f"🔄 FSM: {previous.name} --[{action.name}]--> {self._state.name}")
        return True
