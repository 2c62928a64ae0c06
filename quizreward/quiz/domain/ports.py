from abc import ABC, abstractmethod

from quizreward.quiz.domain.models import Coupon, Question


class IQuizRepository(ABC):
    @abstractmethod
    def add_question(self, question: Question) -> None:
        pass

    @abstractmethod
    def list_questions(self) -> list[Question]:
        pass

    @abstractmethod
    def get_coupon(self, code: str) -> Coupon | None:
        pass

    @abstractmethod
    def save_coupon(self, coupon: Coupon) -> None:
        pass

    @abstractmethod
    def list_coupons(self) -> list[Coupon]:
        pass
