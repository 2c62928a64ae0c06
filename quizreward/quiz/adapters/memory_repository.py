from quizreward.quiz.domain.models import Coupon, Question
from quizreward.quiz.domain.ports import IQuizRepository


class InMemoryQuizRepository(IQuizRepository):
    def __init__(self) -> None:
        self._questions: list[Question] = []
        self._coupons: dict[str, Coupon] = {}

    def add_question(self, question: Question) -> None:
        self._questions.append(question)

    def list_questions(self) -> list[Question]:
        return list(self._questions)

    def get_coupon(self, code: str) -> Coupon | None:
        coupon = self._coupons.get(code)
        return coupon.model_copy(deep=True) if coupon else None

    def save_coupon(self, coupon: Coupon) -> None:
        self._coupons[coupon.code] = coupon.model_copy(deep=True)

    def list_coupons(self) -> list[Coupon]:
        return [c.model_copy(deep=True) for c in self._coupons.values()]
