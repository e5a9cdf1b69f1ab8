"""
Storage and clock ports for the attempt lifecycle.

The controller depends on these protocols, never on a concrete store, so
persistence can be swapped without touching lifecycle rules.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

from ..models import Attempt, AttemptStatus, Quiz


class Clock(Protocol):
    """Supplies ``now`` for availability and deadline checks."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self._now = now if now.tzinfo else now.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now if now.tzinfo else now.replace(tzinfo=UTC)

    def advance(self, **delta: float) -> datetime:
        """Move forward, e.g. ``clock.advance(minutes=5)``."""
        self._now += timedelta(**delta)
        return self._now


class QuizStore(Protocol):
    """Read access to published quiz content."""

    def get_quiz(self, quiz_id: str) -> Quiz:
        """Return the quiz or raise QuizNotFound."""
        ...


class AttemptStore(Protocol):
    """
    Attempt persistence.

    ``insert`` must refuse a second in-progress attempt for the same
    (student, quiz) pair atomically, and ``update`` must only apply when the
    stored status still equals ``expected_status``.
    """

    def get(self, attempt_id: str) -> Attempt:
        """Return the attempt or raise AttemptNotFound."""
        ...

    def find_in_progress(self, quiz_id: str, student_id: str) -> Attempt | None:
        ...

    def count_completed(self, quiz_id: str, student_id: str) -> int:
        """Attempts of this student that have left in_progress."""
        ...

    def list_for_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        ...

    def list_in_progress(self, quiz_id: str) -> list[Attempt]:
        ...

    def insert(self, attempt: Attempt) -> Attempt:
        """Store a new attempt or raise DuplicateInProgressAttempt."""
        ...

    def update(self, attempt: Attempt, expected_status: AttemptStatus) -> Attempt:
        """Compare-and-swap on status; raise AttemptNotActive when it moved."""
        ...
