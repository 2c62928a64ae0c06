from quizreward.quiz.application.service import QuizBook
from quizreward.reward.application.issuer import RewardIssuer
from quizreward.reward.domain.models import AuthorizationContext
from quizreward.shared.telemetry import Telemetry


class CouponRewardDesk:
    """
    Bridges the quiz and the reward ledger.

    The issuer only sees a boolean eligibility signal; the coupon is spent
    after the badge is committed, so a failed mint leaves it usable.
    """

    def __init__(self, quiz: QuizBook, issuer: RewardIssuer) -> None:
        self.quiz = quiz
        self.issuer = issuer
        self.telemetry = Telemetry("CouponRewardDesk")

    def claim(self, code: str, participant: str, context: AuthorizationContext) -> int:
        eligible = self.quiz.is_eligible(code)
        token_id = self.issuer.claim_reward(participant, context, eligible)
        self.quiz.spend_coupon(code)
        self.telemetry.log_info(
            "Reward claimed with coupon", coupon=code, participant=participant, id=token_id
        )
        return token_id
