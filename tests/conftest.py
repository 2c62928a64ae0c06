import pytest

from quizreward.quiz.adapters.memory_repository import InMemoryQuizRepository
from quizreward.quiz.application.service import QuizBook
from quizreward.reward.adapters.db_manager import DatabaseManager
from quizreward.reward.adapters.memory_ledger import InMemorySupplyLedger
from quizreward.reward.adapters.sqlite_ledger import SQLiteSupplyLedger
from quizreward.reward.application.issuer import RewardIssuer
from quizreward.reward.domain.models import AuthorizationContext
from tests.drivers.reward_driver import ADDR1, OWNER, RewardDriver


@pytest.fixture
def owner_ctx():
    return AuthorizationContext.direct(OWNER)


@pytest.fixture
def stranger_ctx():
    return AuthorizationContext.direct(ADDR1)


@pytest.fixture
def memory_ledger():
    """Returns a clean, empty in-memory ledger."""
    return InMemorySupplyLedger()


@pytest.fixture
def issuer(memory_ledger, owner_ctx):
    """A freshly deployed 'Oasis Reward' collection owned by OWNER."""
    return RewardIssuer(memory_ledger, owner_ctx, name="Oasis Reward", symbol="OASIS")


@pytest.fixture
def driver(issuer):
    return RewardDriver(issuer)


@pytest.fixture
def sqlite_ledger():
    """Returns a clean SQLite ledger backed by an in-memory database."""
    db_manager = DatabaseManager(db_path=":memory:")
    yield SQLiteSupplyLedger(db_manager)
    db_manager.close()


@pytest.fixture
def quiz_book(owner_ctx):
    """A quiz with the two demo questions and two coupons."""
    book = QuizBook(InMemoryQuizRepository(), owner=OWNER)
    book.add_question(
        "What's the European highest peak?",
        ["Mont Blanc", "Triglav", "Mount Everest", "Saint Moritz", "Sv. Jošt nad Kranjem"],
        owner_ctx,
    )
    book.add_question(
        "When was the Bitcoin whitepaper published?",
        ["2009", "2000", "2006", "2012", "2014", "2023"],
        owner_ctx,
    )
    book.add_coupons(["testCoupon1", "testCoupon2"], owner_ctx)
    return book
