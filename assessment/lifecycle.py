"""
Attempt Lifecycle Controller.

Owns the state machine of a quiz attempt:

    in_progress --submit--> submitted --grade--> graded
    in_progress --expire--> (auto-submit, timed_out=True) --> graded

Start is idempotent per (student, quiz): an existing in-progress attempt is
returned instead of creating a second one. The storage port is responsible
for making start-and-create atomic; the controller treats a
DuplicateInProgressAttempt from the store as "someone else won the race"
and returns the winner's attempt.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Any

from loguru import logger

from config import Settings, get_settings

from .errors import (
    AttemptExpired,
    AttemptLimitExceeded,
    AttemptNotActive,
    DuplicateInProgressAttempt,
    NotAvailable,
)
from .grading import grade
from .models import Attempt, AttemptStatus, GradeResult, Quiz, validate_answers
from .notify import LoggingNotifier, Notifier, WebhookNotifier
from .review import build_review_session
from .store.base import AttemptStore, Clock, QuizStore, SystemClock


@dataclass(frozen=True)
class AttemptEligibility:
    """Whether a student may start (or resume) a quiz right now."""

    completed_count: int
    can_attempt: bool
    in_progress: Attempt | None = None
    max_attempts: int | None = None
    reason: str | None = None


def build_feedback(result: GradeResult, passed: bool) -> str:
    """Student-facing summary line for a graded attempt."""
    if passed:
        message = f"Great job! You passed with a score of {result.score:.1f}%."
    else:
        message = f"You scored {result.score:.1f}%. Keep practicing to improve!"
    if result.weak_areas:
        message += f" Focus on: {', '.join(result.weak_areas)}."
    return message


def default_notifier(settings: Settings) -> Notifier:
    if settings.review_webhook_url:
        return WebhookNotifier(settings.review_webhook_url, timeout=settings.review_webhook_timeout)
    return LoggingNotifier()


class AttemptController:
    """
    Drives attempts through start, autosave, submit and expiry.

    Args:
        quizzes: Source of quiz definitions
        attempts: Attempt persistence with atomic in-progress uniqueness
        clock: Time source (defaults to the UTC wall clock)
        notifier: Receives review sessions for failed attempts
        settings: Thresholds and deadline policy (defaults to get_settings())
    """

    def __init__(
        self,
        quizzes: QuizStore,
        attempts: AttemptStore,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.quizzes = quizzes
        self.attempts = attempts
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self._owns_notifier = notifier is None
        self.notifier = notifier or default_notifier(self.settings)

    def close(self) -> None:
        """Release the notifier if this controller created it."""
        if self._owns_notifier:
            close = getattr(self.notifier, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> AttemptController:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ========================================
    # Queries
    # ========================================

    def get(self, attempt_id: str) -> Attempt:
        return self.attempts.get(attempt_id)

    def eligibility(self, quiz_id: str, student_id: str) -> AttemptEligibility:
        quiz = self.quizzes.get_quiz(quiz_id)
        completed = self.attempts.count_completed(quiz_id, student_id)
        in_progress = self.attempts.find_in_progress(quiz_id, student_id)

        reason = quiz.availability_problem(self.clock.now())
        if reason is None and in_progress is None and self._limit_reached(quiz, completed):
            reason = "maximum attempts reached"

        return AttemptEligibility(
            completed_count=completed,
            can_attempt=reason is None,
            in_progress=in_progress,
            max_attempts=quiz.max_attempts,
            reason=reason,
        )

    # ========================================
    # Transitions
    # ========================================

    def start(self, quiz_id: str, student_id: str) -> Attempt:
        """
        Start or resume an attempt.

        Raises:
            NotAvailable: quiz unpublished or outside its window
            AttemptLimitExceeded: completed attempts already reach max_attempts
        """
        quiz = self.quizzes.get_quiz(quiz_id)
        now = self.clock.now()

        problem = quiz.availability_problem(now)
        if problem is not None:
            raise NotAvailable(quiz_id, problem)

        existing = self.attempts.find_in_progress(quiz_id, student_id)
        if existing is not None:
            if not (self.settings.enforce_time_limit and self._is_overdue(existing, quiz)):
                logger.info(f"Resuming attempt {existing.id} for {student_id} on quiz {quiz_id}")
                return existing
            try:
                self._finalize(existing, quiz, existing.answers, None, timed_out=True)
            except AttemptNotActive:
                logger.debug(f"Attempt {existing.id} closed concurrently before restart")

        completed = self.attempts.count_completed(quiz_id, student_id)
        if self._limit_reached(quiz, completed):
            raise AttemptLimitExceeded(quiz_id, student_id, quiz.max_attempts)

        attempt = Attempt(
            id=str(uuid.uuid4()),
            quiz_id=quiz_id,
            student_id=student_id,
            attempt_number=completed + 1,
            started_at=now,
            updated_at=now,
        )
        try:
            stored = self.attempts.insert(attempt)
        except DuplicateInProgressAttempt:
            winner = self.attempts.find_in_progress(quiz_id, student_id)
            if winner is None:
                raise
            logger.info(f"Concurrent start for {student_id} on quiz {quiz_id}, resuming {winner.id}")
            return winner

        logger.info(
            f"Started attempt {stored.id} (#{stored.attempt_number}) for {student_id} on quiz {quiz_id}"
        )
        return stored

    def autosave(
        self,
        attempt_id: str,
        answers: dict[str, Any] | None = None,
        time_spent: int | None = None,
    ) -> Attempt:
        """Replace the saved answer map without grading."""
        attempt = self.attempts.get(attempt_id)
        self._require_active(attempt)
        quiz = self.quizzes.get_quiz(attempt.quiz_id)
        self._enforce_deadline(attempt, quiz)

        if answers is not None:
            validate_answers(quiz.questions, answers)

        updated = replace(
            attempt,
            answers=dict(answers) if answers is not None else attempt.answers,
            time_spent=time_spent if time_spent is not None else attempt.time_spent,
            updated_at=self.clock.now(),
        )
        stored = self.attempts.update(updated, expected_status=AttemptStatus.IN_PROGRESS)
        logger.debug(f"Autosaved attempt {attempt_id} ({len(stored.answers)} answers)")
        return stored

    def submit(
        self,
        attempt_id: str,
        answers: dict[str, Any] | None = None,
        time_spent: int | None = None,
    ) -> Attempt:
        """
        Grade and close an attempt. Irreversible.

        Falls back to the last autosaved answers when ``answers`` is None.

        Raises:
            AttemptNotActive: the attempt is already submitted or graded
            AttemptExpired: the deadline passed; the attempt was auto-submitted
            MalformedAnswer / QuestionNotFound: answers do not fit the quiz
        """
        attempt = self.attempts.get(attempt_id)
        self._require_active(attempt)
        quiz = self.quizzes.get_quiz(attempt.quiz_id)
        self._enforce_deadline(attempt, quiz)

        final = attempt.answers if answers is None else answers
        return self._finalize(attempt, quiz, final, time_spent, timed_out=False)

    def expire(self, attempt_id: str) -> Attempt:
        """Auto-submit an in-progress attempt with its last autosaved answers."""
        attempt = self.attempts.get(attempt_id)
        self._require_active(attempt)
        quiz = self.quizzes.get_quiz(attempt.quiz_id)
        return self._finalize(attempt, quiz, attempt.answers, None, timed_out=True)

    def sweep_overdue(self, quiz_id: str) -> list[Attempt]:
        """Expire every in-progress attempt of a quiz whose deadline has passed."""
        quiz = self.quizzes.get_quiz(quiz_id)
        expired = []
        for attempt in self.attempts.list_in_progress(quiz_id):
            if not self._is_overdue(attempt, quiz):
                continue
            try:
                expired.append(self._finalize(attempt, quiz, attempt.answers, None, timed_out=True))
            except AttemptNotActive:
                logger.debug(f"Attempt {attempt.id} closed concurrently during sweep")
        if expired:
            logger.info(f"Expired {len(expired)} overdue attempts on quiz {quiz_id}")
        return expired

    # ========================================
    # Internals
    # ========================================

    def _finalize(
        self,
        attempt: Attempt,
        quiz: Quiz,
        answers: dict[str, Any],
        time_spent: int | None,
        timed_out: bool,
    ) -> Attempt:
        now = self.clock.now()
        result = grade(
            quiz.questions,
            answers,
            weak_threshold=self.settings.weak_topic_threshold,
            strong_threshold=self.settings.strong_topic_threshold,
        )
        passed = result.passed_for(quiz.passing_score)

        if time_spent is None:
            time_spent = attempt.time_spent
        if time_spent is None and timed_out:
            time_spent = int((now - attempt.started_at).total_seconds())

        submitted = attempt.transition(
            AttemptStatus.SUBMITTED,
            answers=dict(answers),
            submitted_at=now,
            time_spent=time_spent,
            timed_out=timed_out,
            updated_at=now,
        )
        graded = submitted.transition(
            AttemptStatus.GRADED,
            result=result,
            passed=passed,
            feedback=build_feedback(result, passed),
        )
        stored = self.attempts.update(graded, expected_status=AttemptStatus.IN_PROGRESS)

        verb = "Expired" if timed_out else "Submitted"
        logger.info(
            f"{verb} attempt {stored.id}: {result.score:.1f}% "
            f"({'passed' if passed else 'failed'}, passing {quiz.passing_score}%)"
        )

        if not passed:
            session = build_review_session(stored, quiz, now, self.settings)
            if session is not None:
                try:
                    self.notifier.review_assigned(session, stored, quiz)
                except Exception:  # Intentionally broad - the grade is already stored
                    logger.exception(f"Review notification failed for attempt {stored.id}")
        return stored

    def _require_active(self, attempt: Attempt) -> None:
        if not attempt.is_active:
            raise AttemptNotActive(attempt.id, attempt.status.value)

    def _is_overdue(self, attempt: Attempt, quiz: Quiz) -> bool:
        return attempt.is_overdue(quiz, self.clock.now(), self.settings.time_limit_grace_seconds)

    def _enforce_deadline(self, attempt: Attempt, quiz: Quiz) -> None:
        if self.settings.enforce_time_limit and self._is_overdue(attempt, quiz):
            self._finalize(attempt, quiz, attempt.answers, None, timed_out=True)
            raise AttemptExpired(attempt.id)

    @staticmethod
    def _limit_reached(quiz: Quiz, completed: int) -> bool:
        return quiz.max_attempts is not None and completed >= quiz.max_attempts
