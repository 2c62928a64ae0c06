import os
from enum import Enum
from typing import Final


class Palette(Enum):
    # Enum Member = "SVG fill", in badge order
    RED = "red"
    ORANGE = "orange"
    GOLD = "gold"
    GREEN = "green"
    TEAL = "teal"
    BLUE = "blue"
    PURPLE = "purple"

    @classmethod
    def all_fills(cls) -> list[str]:
        """Returns the fill colours in palette order (index 0 is the base badge)."""
        return [p.value for p in cls]


class RewardConfig:
    # --- Collection Identity ---
    COLLECTION_NAME = "Oasis Reward"
    COLLECTION_SYMBOL = "OASIS"

    # --- Addresses ---
    ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

    # --- Artwork ---
    CANVAS_WIDTH: Final[int] = 200
    CANVAS_HEIGHT: Final[int] = 200
    CIRCLE_CX: Final[int] = 100
    CIRCLE_CY: Final[int] = 100
    CIRCLE_RADIUS: Final[int] = 50
    SVG_NAMESPACE: Final[str] = "http://www.w3.org/2000/svg"
    DATA_URI_PREFIX: Final[str] = "data:image/svg+xml;base64,"
    PALETTE = Palette.all_fills()

    # --- Ledger Rules ---
    FIRST_IDENTIFIER: Final[int] = 1
    MAX_IDENTIFIER: Final[int] = 2**256 - 1

    # --- Revert Messages (observable contract surface) ---
    ORIGIN_MISMATCH_MESSAGE: Final[str] = "Owner address not tx.origin"
    NOT_CONFIGURED_MESSAGE: Final[str] = "Owner address not configured"

    # --- Infrastructure ---
    REWARD_DB_PATH = os.getenv("QUIZREWARD_DB_PATH", "data/rewards.db")
    METRICS_PORT = int(os.getenv("QUIZREWARD_METRICS_PORT", "8000"))
    SERVICE_NAME = "quiz-reward-ledger"

    @staticmethod
    def is_unset_address(address: str | None) -> bool:
        """True for a missing, blank or zero address, or anything that is not a string."""
        if not isinstance(address, str):
            return True
        stripped = address.strip()
        return not stripped or stripped.lower() == RewardConfig.ZERO_ADDRESS
