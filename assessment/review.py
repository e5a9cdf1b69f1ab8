"""
Review Session Deriver.

Turns the weak topics of a graded attempt into a prioritized remediation
skeleton. Study content itself is produced elsewhere; this module only
decides which topics, in which order, and drafts the session record that
a notifier hands on.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from config import Settings, get_settings

from .errors import InvalidReviewTransition
from .models import Attempt, Quiz, ReviewSessionStatus, ReviewSessionType, ReviewTopic


def derive_review_topics(attempt: Attempt, quiz: Quiz) -> list[ReviewTopic] | None:
    """
    Map weak areas to review topics, most urgent first.

    Returns:
        None when the attempt has no weak areas, else one ReviewTopic per weak
        area with priority = 1-based position in the weak-area list
    """
    weak_areas = attempt.weak_areas
    if not weak_areas:
        return None

    missed: dict[str, list[str]] = {topic: [] for topic in weak_areas}
    for question in quiz.questions:
        ids = missed.get(question.topic_label)
        if ids is None:
            continue
        graded = attempt.result.answer_for(question.id) if attempt.result else None
        if graded is None or not graded.is_correct:
            ids.append(question.id)

    return [
        ReviewTopic(
            topic=topic,
            description=f"Review material for {topic}",
            mastery_level=0,
            priority=position,
            related_question_ids=tuple(missed[topic]),
        )
        for position, topic in enumerate(weak_areas, start=1)
    ]


# =============================================================================
# Review Sessions
# =============================================================================


@dataclass(frozen=True)
class ReviewSession:
    """A remediation plan assigned to a student after a failed attempt."""

    id: str
    student_id: str
    quiz_id: str
    attempt_id: str
    title: str
    description: str
    topics: tuple[ReviewTopic, ...]
    lesson_id: str | None = None
    session_type: ReviewSessionType = ReviewSessionType.REMEDIATION
    status: ReviewSessionStatus = ReviewSessionStatus.PENDING
    priority: int = 2
    progress: int = 0
    time_spent: int = 0  # seconds
    due_at: datetime | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def focus_areas(self) -> list[str]:
        return [t.topic for t in self.topics]

    def begin(self, now: datetime) -> ReviewSession:
        self._require(ReviewSessionStatus.PENDING)
        return replace(self, status=ReviewSessionStatus.IN_PROGRESS, started_at=now)

    def record_progress(self, progress: int, time_spent: int | None = None) -> ReviewSession:
        self._require(ReviewSessionStatus.IN_PROGRESS)
        if not 0 <= progress <= 100:
            raise ValueError("progress must be within 0-100")
        if time_spent is None:
            return replace(self, progress=progress)
        if time_spent < 0:
            raise ValueError("time spent must be non-negative")
        return replace(self, progress=progress, time_spent=time_spent)

    def complete(self, now: datetime) -> ReviewSession:
        self._require(ReviewSessionStatus.PENDING, ReviewSessionStatus.IN_PROGRESS)
        return replace(
            self,
            status=ReviewSessionStatus.COMPLETED,
            progress=100,
            completed_at=now,
            started_at=self.started_at or now,
        )

    def skip(self) -> ReviewSession:
        self._require(ReviewSessionStatus.PENDING, ReviewSessionStatus.IN_PROGRESS)
        return replace(self, status=ReviewSessionStatus.SKIPPED)

    def _require(self, *allowed: ReviewSessionStatus) -> None:
        if self.status not in allowed:
            raise InvalidReviewTransition(
                f"Review session {self.id} cannot change from {self.status.value}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "quiz_id": self.quiz_id,
            "attempt_id": self.attempt_id,
            "lesson_id": self.lesson_id,
            "title": self.title,
            "description": self.description,
            "session_type": self.session_type.value,
            "status": self.status.value,
            "priority": self.priority,
            "progress": self.progress,
            "time_spent": self.time_spent,
            "topics": [t.to_dict() for t in self.topics],
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def build_review_session(
    attempt: Attempt,
    quiz: Quiz,
    now: datetime,
    settings: Settings | None = None,
) -> ReviewSession | None:
    """Draft a remediation session for a graded attempt, or None if nothing is weak."""
    topics = derive_review_topics(attempt, quiz)
    if topics is None:
        return None

    settings = settings or get_settings()
    focus = ", ".join(t.topic for t in topics)
    session = ReviewSession(
        id=str(uuid.uuid4()),
        student_id=attempt.student_id,
        quiz_id=quiz.id,
        attempt_id=attempt.id,
        title=f"Review: {quiz.title}",
        description=f"Review session based on your quiz attempt. Focus areas: {focus}",
        topics=tuple(topics),
        lesson_id=quiz.lesson_id,
        priority=settings.review_session_priority,
        due_at=now + timedelta(days=settings.review_due_days),
        created_at=now,
    )
    logger.info(f"Review plan for attempt {attempt.id}: {focus}")
    return session
