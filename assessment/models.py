"""
Assessment Data Models.

Value types for quizzes, questions, attempts and grading results.

The correct answer of a question is a tagged variant keyed by the question
type and is normalized when the question is constructed:

    multiple_choice / true_false   -> str (an option id)
    short_answer / fill_blank      -> tuple[str, ...] (acceptable answers)
    matching                       -> dict[str, str] (left -> right)
    ordering                       -> tuple[str, ...] (items in order)

Grading never has to guess the shape of content it was handed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from .errors import (
    AttemptNotActive,
    InvalidQuestion,
    InvalidQuiz,
    MalformedAnswer,
    QuestionNotFound,
    QuizNotEditable,
)

DEFAULT_TOPIC = "General"

# question id -> submitted value (str, list[str] or dict[str, str])
AnswerMap = dict[str, Any]


# =============================================================================
# Enums
# =============================================================================


class QuestionType(str, Enum):
    """Supported question types."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"
    FILL_BLANK = "fill_blank"
    MATCHING = "matching"
    ORDERING = "ordering"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)

    @property
    def is_text(self) -> bool:
        return self in (QuestionType.SHORT_ANSWER, QuestionType.FILL_BLANK)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuizStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class QuizType(str, Enum):
    PRACTICE = "practice"
    GRADED = "graded"
    DIAGNOSTIC = "diagnostic"
    MASTERY_CHECK = "mastery_check"
    REVIEW = "review"


class AttemptStatus(str, Enum):
    """
    Attempt lifecycle states.

    in_progress -> submitted -> graded. A timed-out attempt follows the same
    path and is flagged with ``Attempt.timed_out``; EXPIRED is kept for rows
    closed without grading by an external sweep.
    """

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"
    EXPIRED = "expired"


class ReviewSessionType(str, Enum):
    SPACED_REPETITION = "spaced_repetition"
    REMEDIATION = "remediation"
    PRACTICE = "practice"
    MASTERY_CHECK = "mastery_check"


class ReviewSessionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


ATTEMPT_TRANSITIONS: dict[AttemptStatus, frozenset[AttemptStatus]] = {
    AttemptStatus.IN_PROGRESS: frozenset({AttemptStatus.SUBMITTED, AttemptStatus.EXPIRED}),
    AttemptStatus.SUBMITTED: frozenset({AttemptStatus.GRADED}),
    AttemptStatus.GRADED: frozenset(),
    AttemptStatus.EXPIRED: frozenset(),
}


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# =============================================================================
# Questions
# =============================================================================


@dataclass(frozen=True)
class QuestionOption:
    """A selectable option; answers reference it by id, never by position."""

    id: str
    text: str
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {"id": self.id, "text": self.text}
        if self.image_url:
            result["image_url"] = self.image_url
        return result


@dataclass(frozen=True)
class Question:
    """One assessable item. Immutable once its quiz is published."""

    id: str
    type: QuestionType
    prompt: str
    points: int
    correct_answer: Any
    options: tuple[QuestionOption, ...] = ()
    topic: str | None = None
    explanation: str | None = None
    difficulty: Difficulty | None = None
    hints: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidQuestion("Question id is required")
        object.__setattr__(self, "type", QuestionType(self.type))
        if self.difficulty is not None:
            object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        if isinstance(self.points, bool) or not isinstance(self.points, int) or self.points < 0:
            raise InvalidQuestion(
                f"Question {self.id}: points must be a non-negative integer, got {self.points!r}"
            )
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "hints", tuple(self.hints))

        option_ids = [opt.id for opt in self.options]
        if len(set(option_ids)) != len(option_ids):
            raise InvalidQuestion(f"Question {self.id}: duplicate option ids")

        object.__setattr__(self, "correct_answer", self._normalize_correct_answer(option_ids))

    def _normalize_correct_answer(self, option_ids: list[str]) -> Any:
        value = self.correct_answer

        if self.type.is_choice:
            if not isinstance(value, str) or not value:
                raise InvalidQuestion(
                    f"Question {self.id}: {self.type.value} needs a single option id"
                )
            if option_ids and value not in option_ids:
                raise InvalidQuestion(
                    f"Question {self.id}: correct answer '{value}' is not an option id"
                )
            return value

        if self.type.is_text:
            accepted = (value,) if isinstance(value, str) else value
            if not _is_string_sequence(accepted) or not accepted:
                raise InvalidQuestion(
                    f"Question {self.id}: {self.type.value} needs one or more acceptable strings"
                )
            return tuple(accepted)

        if self.type == QuestionType.MATCHING:
            if not isinstance(value, Mapping) or not value:
                raise InvalidQuestion(f"Question {self.id}: matching needs a key -> value mapping")
            if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
                raise InvalidQuestion(f"Question {self.id}: matching pairs must be strings")
            return dict(value)

        # Ordering
        if not _is_string_sequence(value) or not value:
            raise InvalidQuestion(f"Question {self.id}: ordering needs an ordered list of items")
        return tuple(value)

    @property
    def topic_label(self) -> str:
        return self.topic or DEFAULT_TOPIC

    def to_dict(self) -> dict[str, Any]:
        correct = self.correct_answer
        if isinstance(correct, tuple):
            correct = list(correct)
        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "points": self.points,
            "correct_answer": correct,
            "options": [opt.to_dict() for opt in self.options],
            "topic": self.topic,
            "explanation": self.explanation,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "hints": list(self.hints),
        }


def _is_string_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


# =============================================================================
# Answer Validation
# =============================================================================


def is_blank(value: Any) -> bool:
    """Missing, null or empty-string submissions count as skipped."""
    return value is None or (isinstance(value, str) and value == "")


def check_answer_shape(question: Question, value: Any) -> None:
    """Raise MalformedAnswer if a non-blank value cannot be graded for this type."""
    if is_blank(value):
        return
    if question.type.is_choice or question.type.is_text:
        if not isinstance(value, str):
            raise MalformedAnswer(question.id, "a string", value)
    elif question.type == QuestionType.MATCHING:
        if not isinstance(value, Mapping):
            raise MalformedAnswer(question.id, "a key -> value mapping", value)
    elif question.type == QuestionType.ORDERING:
        if not isinstance(value, (list, tuple)):
            raise MalformedAnswer(question.id, "an ordered list", value)


def validate_answers(questions: Iterable[Question], answers: Mapping[str, Any]) -> None:
    """Check every submitted answer references a known question with a valid shape."""
    by_id = {q.id: q for q in questions}
    for question_id, value in answers.items():
        question = by_id.get(question_id)
        if question is None:
            raise QuestionNotFound(question_id)
        check_answer_shape(question, value)


# =============================================================================
# Quiz
# =============================================================================


@dataclass(frozen=True)
class Quiz:
    """An ordered set of questions with scoring, timing and visibility policy."""

    id: str
    title: str
    questions: tuple[Question, ...]
    passing_score: int = 70
    time_limit: int | None = None  # minutes, None = unlimited
    max_attempts: int | None = None  # None = unlimited
    shuffle_questions: bool = False
    shuffle_answers: bool = True
    show_correct_answers: bool = True
    show_explanations: bool = True
    available_from: datetime | None = None
    available_until: datetime | None = None
    status: QuizStatus = QuizStatus.DRAFT
    quiz_type: QuizType = QuizType.PRACTICE
    description: str | None = None
    lesson_id: str | None = None
    owner_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))
        object.__setattr__(self, "status", QuizStatus(self.status))
        object.__setattr__(self, "quiz_type", QuizType(self.quiz_type))
        object.__setattr__(self, "available_from", ensure_utc(self.available_from))
        object.__setattr__(self, "available_until", ensure_utc(self.available_until))

        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise InvalidQuiz(f"Quiz {self.id}: question ids must be unique")
        if not 0 <= self.passing_score <= 100:
            raise InvalidQuiz(f"Quiz {self.id}: passing score must be within 0-100")
        if self.time_limit is not None and self.time_limit <= 0:
            raise InvalidQuiz(f"Quiz {self.id}: time limit must be positive")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise InvalidQuiz(f"Quiz {self.id}: max attempts must be positive")
        if (
            self.available_from is not None
            and self.available_until is not None
            and self.available_from > self.available_until
        ):
            raise InvalidQuiz(f"Quiz {self.id}: availability window ends before it starts")

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def question(self, question_id: str) -> Question:
        for q in self.questions:
            if q.id == question_id:
                return q
        raise QuestionNotFound(question_id)

    def availability_problem(self, now: datetime) -> str | None:
        """Reason the quiz cannot be started at ``now``, or None if it can."""
        if self.status != QuizStatus.PUBLISHED:
            return "not published"
        if self.available_from is not None and now < self.available_from:
            return "not yet available"
        if self.available_until is not None and now > self.available_until:
            return "no longer available"
        return None

    def is_open(self, now: datetime) -> bool:
        return self.availability_problem(now) is None

    # -------------------------------------------------------------------------
    # Owner-side changes
    # -------------------------------------------------------------------------

    def revise(self, **changes: Any) -> Quiz:
        """Return an edited copy. Only drafts may be edited."""
        if self.status != QuizStatus.DRAFT:
            raise QuizNotEditable(self.id, self.status.value)
        if "status" in changes:
            raise InvalidQuiz(f"Quiz {self.id}: use publish() or archive() to change status")
        return replace(self, **changes)

    def publish(self) -> Quiz:
        if self.status != QuizStatus.DRAFT:
            raise QuizNotEditable(self.id, self.status.value)
        if not self.questions:
            raise InvalidQuiz(f"Quiz {self.id}: cannot publish a quiz without questions")
        return replace(self, status=QuizStatus.PUBLISHED)

    def archive(self) -> Quiz:
        return replace(self, status=QuizStatus.ARCHIVED)


# =============================================================================
# Grading Results
# =============================================================================


@dataclass(frozen=True)
class GradedAnswer:
    """A submitted answer annotated with its outcome."""

    question_id: str
    answer: Any
    is_correct: bool
    points_earned: int
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "answer": self.answer,
            "is_correct": self.is_correct,
            "points_earned": self.points_earned,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GradedAnswer:
        return cls(
            question_id=data["question_id"],
            answer=data.get("answer"),
            is_correct=bool(data["is_correct"]),
            points_earned=int(data["points_earned"]),
            skipped=bool(data.get("skipped", False)),
        )


@dataclass(frozen=True)
class TopicStat:
    """Per-topic correctness tally."""

    topic: str
    correct: int
    total: int

    @property
    def rate(self) -> float:
        """Correctness rate as a percentage."""
        return self.correct / self.total * 100 if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"topic": self.topic, "correct": self.correct, "total": self.total}


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one attempt. Computed once, at submission."""

    score: float
    points_earned: int
    points_possible: int
    correct_count: int
    incorrect_count: int
    skipped_count: int
    graded_answers: tuple[GradedAnswer, ...]
    weak_areas: tuple[str, ...] = ()
    strong_areas: tuple[str, ...] = ()
    topic_stats: tuple[TopicStat, ...] = ()

    def passed_for(self, passing_score: float) -> bool:
        return self.score >= passing_score

    def answer_for(self, question_id: str) -> GradedAnswer | None:
        for graded in self.graded_answers:
            if graded.question_id == question_id:
                return graded
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "points_earned": self.points_earned,
            "points_possible": self.points_possible,
            "correct_count": self.correct_count,
            "incorrect_count": self.incorrect_count,
            "skipped_count": self.skipped_count,
            "graded_answers": [a.to_dict() for a in self.graded_answers],
            "weak_areas": list(self.weak_areas),
            "strong_areas": list(self.strong_areas),
            "topic_stats": [s.to_dict() for s in self.topic_stats],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GradeResult:
        return cls(
            score=float(data["score"]),
            points_earned=int(data["points_earned"]),
            points_possible=int(data["points_possible"]),
            correct_count=int(data["correct_count"]),
            incorrect_count=int(data["incorrect_count"]),
            skipped_count=int(data["skipped_count"]),
            graded_answers=tuple(GradedAnswer.from_dict(a) for a in data.get("graded_answers", [])),
            weak_areas=tuple(data.get("weak_areas", [])),
            strong_areas=tuple(data.get("strong_areas", [])),
            topic_stats=tuple(TopicStat(**s) for s in data.get("topic_stats", [])),
        )


# =============================================================================
# Attempts
# =============================================================================


@dataclass(frozen=True)
class Attempt:
    """
    One student's instance of taking a quiz.

    Mutated (by replacement) only while in progress; immutable once graded.
    """

    id: str
    quiz_id: str
    student_id: str
    attempt_number: int
    started_at: datetime
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    answers: AnswerMap = field(default_factory=dict)
    submitted_at: datetime | None = None
    time_spent: int | None = None  # seconds
    result: GradeResult | None = None
    passed: bool | None = None
    feedback: str | None = None
    timed_out: bool = False
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", AttemptStatus(self.status))
        object.__setattr__(self, "started_at", ensure_utc(self.started_at))
        object.__setattr__(self, "submitted_at", ensure_utc(self.submitted_at))
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    @property
    def is_active(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    @property
    def score(self) -> float | None:
        return self.result.score if self.result else None

    @property
    def weak_areas(self) -> tuple[str, ...]:
        return self.result.weak_areas if self.result else ()

    @property
    def strong_areas(self) -> tuple[str, ...]:
        return self.result.strong_areas if self.result else ()

    def deadline(self, quiz: Quiz, grace_seconds: int = 0) -> datetime | None:
        if quiz.time_limit is None:
            return None
        return self.started_at + timedelta(minutes=quiz.time_limit, seconds=grace_seconds)

    def is_overdue(self, quiz: Quiz, now: datetime, grace_seconds: int = 0) -> bool:
        deadline = self.deadline(quiz, grace_seconds)
        return deadline is not None and now > deadline

    def transition(self, status: AttemptStatus, **changes: Any) -> Attempt:
        """Move to ``status`` if the lifecycle allows it."""
        if status not in ATTEMPT_TRANSITIONS[self.status]:
            raise AttemptNotActive(self.id, self.status.value)
        return replace(self, status=status, **changes)


# =============================================================================
# Review Topics
# =============================================================================


@dataclass(frozen=True)
class ReviewTopic:
    """A topic to remediate. Lower priority number means more urgent."""

    topic: str
    priority: int
    description: str | None = None
    mastery_level: int = 0
    related_question_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.priority < 1:
            raise ValueError("priority is 1-based")
        if not 0 <= self.mastery_level <= 100:
            raise ValueError("mastery_level must be within 0-100")

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "description": self.description,
            "mastery_level": self.mastery_level,
            "priority": self.priority,
            "related_question_ids": list(self.related_question_ids),
        }
