"""
In-memory quiz and attempt store.

Keeps everything in process dictionaries behind a single lock, which is
enough to make start-and-create atomic for one process. Used by the CLI,
by tests, and by callers that persist attempts themselves.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from ..errors import AttemptNotActive, AttemptNotFound, DuplicateInProgressAttempt, QuizNotFound
from ..models import Attempt, AttemptStatus, Quiz


class MemoryStore:
    """
    Dictionary-backed implementation of both QuizStore and AttemptStore.

    Answer maps are copied on the way in and on the way out, so a caller
    mutating a dict it passed in or got back cannot change stored state.
    """

    def __init__(self, quizzes: list[Quiz] | None = None):
        self._lock = threading.RLock()
        self._quizzes: dict[str, Quiz] = {}
        self._attempts: dict[str, Attempt] = {}
        for quiz in quizzes or []:
            self.save_quiz(quiz)

    # ========================================
    # Quizzes
    # ========================================

    def save_quiz(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)
        return quiz

    # ========================================
    # Attempts
    # ========================================

    def get(self, attempt_id: str) -> Attempt:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        return _copy(attempt)

    def find_in_progress(self, quiz_id: str, student_id: str) -> Attempt | None:
        with self._lock:
            attempt = self._find_active(quiz_id, student_id)
        return _copy(attempt) if attempt is not None else None

    def count_completed(self, quiz_id: str, student_id: str) -> int:
        with self._lock:
            return sum(
                1 for a in self._attempts.values()
                if a.quiz_id == quiz_id and a.student_id == student_id and not a.is_active
            )

    def list_for_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        with self._lock:
            attempts = [
                _copy(a) for a in self._attempts.values()
                if a.quiz_id == quiz_id and a.student_id == student_id
            ]
        return sorted(attempts, key=lambda a: (a.attempt_number, a.started_at))

    def list_in_progress(self, quiz_id: str) -> list[Attempt]:
        with self._lock:
            attempts = [_copy(a) for a in self._attempts.values() if a.quiz_id == quiz_id and a.is_active]
        return sorted(attempts, key=lambda a: a.started_at)

    def insert(self, attempt: Attempt) -> Attempt:
        with self._lock:
            if attempt.is_active and self._find_active(attempt.quiz_id, attempt.student_id):
                raise DuplicateInProgressAttempt(attempt.quiz_id, attempt.student_id)
            self._attempts[attempt.id] = _copy(attempt)
        return _copy(attempt)

    def update(self, attempt: Attempt, expected_status: AttemptStatus) -> Attempt:
        with self._lock:
            current = self._attempts.get(attempt.id)
            if current is None:
                raise AttemptNotFound(attempt.id)
            if current.status != expected_status:
                raise AttemptNotActive(attempt.id, current.status.value)
            self._attempts[attempt.id] = _copy(attempt)
        return _copy(attempt)

    def _find_active(self, quiz_id: str, student_id: str) -> Attempt | None:
        return next(
            (a for a in self._attempts.values()
             if a.quiz_id == quiz_id and a.student_id == student_id and a.is_active),
            None,
        )


def _copy(attempt: Attempt) -> Attempt:
    return replace(attempt, answers=dict(attempt.answers))
