from quizreward.config import RewardConfig
from quizreward.reward.domain.errors import AuthorizationError, AuthReason
from quizreward.reward.domain.models import AuthorizationContext


class AccessGuard:
    """
    Origin-based authorization.

    Only the originator of the call chain is compared to the registered
    owner. The immediate caller is ignored, so a relaying contract invoked by
    an outsider cannot mint on the owner's behalf.
    """

    @staticmethod
    def authorize(caller: str, originator: str, registered_owner: str | None) -> None:
        if RewardConfig.is_unset_address(registered_owner):
            raise AuthorizationError(AuthReason.NOT_CONFIGURED, originator)
        if originator != registered_owner:
            raise AuthorizationError(AuthReason.ORIGIN_MISMATCH, originator)

    def check(self, context: AuthorizationContext, registered_owner: str | None) -> None:
        self.authorize(context.caller, context.originator, registered_owner)
