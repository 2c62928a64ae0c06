"""
Error taxonomy for reward issuance.

Every failure surfaces synchronously to the caller of the issuer. None of
them is retried by the core.

    AuthorizationError        originator mismatch or unconfigured owner
    ValidationError           malformed identifier, recipient or artwork
    LedgerInconsistencyError  internal invariant violation, aborts the transaction
    EligibilityError          participant not eligible or already claimed
"""

from enum import Enum

from quizreward.config import RewardConfig


class AuthReason(str, Enum):
    ORIGIN_MISMATCH = "origin_mismatch"
    NOT_CONFIGURED = "not_configured"


class ValidationReason(str, Enum):
    INVALID_IDENTIFIER = "invalid_identifier"
    INVALID_ARTWORK = "invalid_artwork"
    INVALID_RECIPIENT = "invalid_recipient"


class LedgerReason(str, Enum):
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    COUNTER_DIVERGENCE = "counter_divergence"


class EligibilityReason(str, Enum):
    NOT_ELIGIBLE = "not_eligible"
    ALREADY_CLAIMED = "already_claimed"


class RewardError(Exception):
    """Base class for every reward issuance failure."""


class AuthorizationError(RewardError):
    """Raised when a mutating call does not originate from the registered owner."""

    _MESSAGES = {
        AuthReason.ORIGIN_MISMATCH: RewardConfig.ORIGIN_MISMATCH_MESSAGE,
        AuthReason.NOT_CONFIGURED: RewardConfig.NOT_CONFIGURED_MESSAGE,
    }

    def __init__(self, reason: AuthReason, originator: str | None = None):
        self.reason = reason
        self.originator = originator
        super().__init__(self._MESSAGES[reason])


class ValidationError(RewardError):
    def __init__(self, reason: ValidationReason, detail: str):
        self.reason = reason
        self.detail = detail
        super().__init__(f"[{reason.value}] {detail}")


class LedgerInconsistencyError(RewardError):
    """Fatal: the enclosing transaction must be rolled back."""

    def __init__(self, reason: LedgerReason, detail: str):
        self.reason = reason
        self.detail = detail
        super().__init__(f"[{reason.value}] {detail}")


class EligibilityError(RewardError):
    def __init__(self, reason: EligibilityReason, participant: str):
        self.reason = reason
        self.participant = participant
        super().__init__(f"[{reason.value}] {participant}")
