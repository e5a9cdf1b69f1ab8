"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings
from assessment.lifecycle import AttemptController
from assessment.models import Question, QuestionOption, QuestionType, Quiz, QuizStatus
from assessment.store import FrozenClock, MemoryStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (sqlite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class RecordingNotifier:
    """Collects review assignments instead of delivering them."""

    def __init__(self):
        self.calls = []

    def review_assigned(self, session, attempt, quiz):
        self.calls.append((session, attempt, quiz))


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(_env_file=None, review_webhook_url=None)


@pytest.fixture
def sample_questions():
    """One question of every type, spread over three topics."""
    return [
        Question(
            id="q1",
            type=QuestionType.MULTIPLE_CHOICE,
            prompt="Which layer routes packets?",
            points=2,
            correct_answer="b",
            options=(
                QuestionOption("a", "Data link"),
                QuestionOption("b", "Network"),
                QuestionOption("c", "Transport"),
                QuestionOption("d", "Session"),
            ),
            topic="Networking",
            explanation="Routers operate at layer 3.",
        ),
        Question(
            id="q2",
            type=QuestionType.TRUE_FALSE,
            prompt="TCP is connectionless.",
            points=1,
            correct_answer="false",
            options=(QuestionOption("true", "True"), QuestionOption("false", "False")),
            topic="Networking",
        ),
        Question(
            id="q3",
            type=QuestionType.SHORT_ANSWER,
            prompt="Capital of France?",
            points=1,
            correct_answer=["Paris", "paris"],
            topic="Geography",
            explanation="Paris has been the capital since 987.",
        ),
        Question(
            id="q4",
            type=QuestionType.MATCHING,
            prompt="Match countries to capitals",
            points=3,
            correct_answer={"France": "Paris", "Germany": "Berlin"},
            topic="Geography",
        ),
        Question(
            id="q5",
            type=QuestionType.ORDERING,
            prompt="Order the steps",
            points=2,
            correct_answer=["a", "b", "c"],
            topic="Process",
        ),
        Question(
            id="q6",
            type=QuestionType.FILL_BLANK,
            prompt="The ___ protocol resolves names.",
            points=1,
            correct_answer="DNS",
        ),
    ]


@pytest.fixture
def perfect_answers():
    return {
        "q1": "b",
        "q2": "false",
        "q3": "Paris",
        "q4": {"France": "Paris", "Germany": "Berlin"},
        "q5": ["a", "b", "c"],
        "q6": "dns",
    }


@pytest.fixture
def sample_quiz(sample_questions):
    """A published quiz with the sample questions."""
    return Quiz(
        id="quiz-1",
        title="Fundamentals",
        questions=tuple(sample_questions),
        status=QuizStatus.PUBLISHED,
    )


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def store(sample_quiz):
    return MemoryStore([sample_quiz])


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def controller(store, clock, notifier, settings):
    return AttemptController(store, store, clock=clock, notifier=notifier, settings=settings)
