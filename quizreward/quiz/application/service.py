from quizreward.quiz.domain.models import (
    Coupon,
    CouponStatus,
    InvalidCouponError,
    Question,
    QuestionView,
    QuizError,
)
from quizreward.quiz.domain.ports import IQuizRepository
from quizreward.reward.domain.access_guard import AccessGuard
from quizreward.reward.domain.models import AuthorizationContext
from quizreward.shared.telemetry import Telemetry, measure_time


class QuizBook:
    """
    Question bank with coupon-gated access.
    Produces the eligibility signal consumed by the reward issuer.
    """

    def __init__(
        self,
        repo: IQuizRepository,
        owner: str,
        guard: AccessGuard | None = None,
    ) -> None:
        self.repo = repo
        self.owner = owner
        self.guard = guard or AccessGuard()
        self.telemetry = Telemetry("QuizBook")

    # --- Owner operations ---

    def add_question(
        self,
        text: str,
        choices: list[str],
        context: AuthorizationContext,
        correct_choice: int = 0,
    ) -> Question:
        self.guard.check(context, self.owner)
        question = Question(
            id=len(self.repo.list_questions()),
            text=text,
            choices=choices,
            correct_choice=correct_choice,
        )
        self.repo.add_question(question)
        self.telemetry.log_info("Question added", q_id=question.id)
        return question

    def add_coupons(self, codes: list[str], context: AuthorizationContext) -> int:
        """Registers new coupon codes. Known codes are left untouched."""
        self.guard.check(context, self.owner)
        added = 0
        for code in codes:
            if self.repo.get_coupon(code) is None:
                self.repo.save_coupon(Coupon(code=code))
                added += 1
        self.telemetry.log_info("Coupons added", added=added, requested=len(codes))
        return added

    def remove_coupon(self, code: str, context: AuthorizationContext) -> None:
        self.guard.check(context, self.owner)
        coupon = self.repo.get_coupon(code)
        if coupon is None:
            raise InvalidCouponError(code)
        coupon.status = CouponStatus.REMOVED
        self.repo.save_coupon(coupon)

    def count_coupons(self) -> tuple[int, int]:
        """Returns (usable, total)."""
        coupons = self.repo.list_coupons()
        return sum(1 for c in coupons if c.is_usable()), len(coupons)

    # --- Participant operations ---

    def get_questions(self, code: str) -> list[QuestionView]:
        self._usable_coupon(code)
        return [
            QuestionView(id=q.id, text=q.text, choices=q.choices)
            for q in self.repo.list_questions()
        ]

    @measure_time("check_answers")
    def check_answers(self, code: str, answers: list[int]) -> list[bool]:
        coupon = self._usable_coupon(code)
        questions = self.repo.list_questions()
        if len(answers) != len(questions):
            raise QuizError(
                f"Expected {len(questions)} answers, got {len(answers)}"
            )

        result = [a == q.correct_choice for q, a in zip(questions, answers)]
        coupon.last_result = result
        self.repo.save_coupon(coupon)

        self.telemetry.log_info(
            "Answers checked", coupon=code, correct=sum(result), total=len(result)
        )
        return result

    def is_eligible(self, code: str) -> bool:
        coupon = self.repo.get_coupon(code)
        return coupon is not None and coupon.is_usable() and coupon.passed()

    def spend_coupon(self, code: str) -> None:
        coupon = self._usable_coupon(code)
        coupon.status = CouponStatus.SPENT
        self.repo.save_coupon(coupon)
        self.telemetry.log_info("Coupon spent", coupon=code)

    def _usable_coupon(self, code: str) -> Coupon:
        coupon = self.repo.get_coupon(code)
        if coupon is None:
            raise InvalidCouponError(code)
        if not coupon.is_usable():
            raise InvalidCouponError(code, coupon.status)
        return coupon
