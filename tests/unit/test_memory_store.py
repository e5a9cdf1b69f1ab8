"""
Unit tests for the in-memory store and clocks.

Run: pytest tests/unit/test_memory_store.py -v
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from assessment.errors import AttemptNotActive, AttemptNotFound, DuplicateInProgressAttempt, QuizNotFound
from assessment.models import Attempt, AttemptStatus
from assessment.store import FrozenClock, MemoryStore, SystemClock

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def _attempt(attempt_id="a1", student_id="s1", **kwargs):
    return Attempt(id=attempt_id, quiz_id="quiz-1", student_id=student_id, attempt_number=1, started_at=T0, **kwargs)


class TestMemoryStore:
    def test_missing_records(self):
        store = MemoryStore()
        with pytest.raises(QuizNotFound):
            store.get_quiz("quiz-1")
        with pytest.raises(AttemptNotFound):
            store.get("a1")

    def test_one_in_progress_per_student(self):
        store = MemoryStore()
        store.insert(_attempt())
        with pytest.raises(DuplicateInProgressAttempt):
            store.insert(_attempt("a2"))
        store.insert(_attempt("a3", student_id="s2"))
        assert len(store.list_in_progress("quiz-1")) == 2

    def test_answers_copied(self):
        store = MemoryStore()
        answers = {"q1": "a"}
        store.insert(_attempt(answers=answers))
        answers["q1"] = "b"
        assert store.get("a1").answers == {"q1": "a"}

    def test_returned_attempts_are_copies(self):
        store = MemoryStore()
        store.insert(_attempt(answers={"q1": "a"})).answers["q1"] = "x"
        store.get("a1").answers["q1"] = "y"
        store.find_in_progress("quiz-1", "s1").answers["q2"] = "z"
        store.list_in_progress("quiz-1")[0].answers.clear()

        graded = store.update(
            replace(store.get("a1"), status=AttemptStatus.GRADED),
            expected_status=AttemptStatus.IN_PROGRESS,
        )
        graded.answers["q1"] = "changed"
        assert store.get("a1").answers == {"q1": "a"}
        assert store.get("a1").status is AttemptStatus.GRADED

    def test_update_checks_status(self):
        store = MemoryStore()
        attempt = store.insert(_attempt())
        graded = replace(attempt, status=AttemptStatus.GRADED)
        store.update(graded, expected_status=AttemptStatus.IN_PROGRESS)

        with pytest.raises(AttemptNotActive):
            store.update(graded, expected_status=AttemptStatus.IN_PROGRESS)
        assert store.count_completed("quiz-1", "s1") == 1
        assert store.find_in_progress("quiz-1", "s1") is None

    def test_update_missing(self):
        with pytest.raises(AttemptNotFound):
            MemoryStore().update(_attempt(), expected_status=AttemptStatus.IN_PROGRESS)


class TestClocks:
    def test_frozen_clock(self):
        clock = FrozenClock(datetime(2026, 1, 1, 12, 0))
        assert clock.now().tzinfo is UTC
        assert clock.advance(minutes=5) == datetime(2026, 1, 1, 12, 5, tzinfo=UTC)
        clock.set(T0)
        assert clock.now() == T0

    def test_system_clock_is_utc(self):
        now = SystemClock().now()
        assert now.utcoffset() == timedelta(0)
