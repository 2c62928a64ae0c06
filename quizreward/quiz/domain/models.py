from enum import Enum

from pydantic import BaseModel, Field, model_validator


# --- Enums ---
class CouponStatus(str, Enum):
    VALID = "valid"
    SPENT = "spent"
    REMOVED = "removed"


# --- Errors ---
class QuizError(Exception):
    """Raised for malformed quiz input (questions or answer sheets)."""


class InvalidCouponError(QuizError):
    def __init__(self, code: str, status: CouponStatus | None = None):
        self.code = code
        self.status = status
        state = status.value if status else "unknown"
        super().__init__(f"Invalid coupon '{code}' ({state})")


# --- Entities ---
class Question(BaseModel):
    id: int
    text: str = Field(min_length=1)
    choices: list[str] = Field(min_length=2)
    # The seeded quizzes list the right answer first
    correct_choice: int = 0

    @model_validator(mode="after")
    def _correct_choice_in_range(self) -> "Question":
        if not 0 <= self.correct_choice < len(self.choices):
            raise ValueError(
                f"correct_choice {self.correct_choice} outside 0..{len(self.choices) - 1}"
            )
        return self


class QuestionView(BaseModel):
    """What a participant sees: no hint of the right answer."""

    id: int
    text: str
    choices: list[str]


class Coupon(BaseModel):
    code: str
    status: CouponStatus = CouponStatus.VALID
    last_result: list[bool] | None = None

    def is_usable(self) -> bool:
        return self.status == CouponStatus.VALID

    def passed(self) -> bool:
        return bool(self.last_result) and all(self.last_result)
