"""
Quiz Presentation Transformer.

Shapes a quiz for display. For a student taking the quiz, answers and
explanations are always stripped, and question/option order is shuffled
with a seed derived from the attempt so a reload shows the same order.
Access checks are the lifecycle controller's job, not this module's.
"""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .errors import AttemptNotGraded
from .models import (
    Attempt,
    Difficulty,
    Question,
    QuestionOption,
    QuestionType,
    Quiz,
    QuizStatus,
    QuizType,
)


@dataclass(frozen=True)
class PresentedQuestion:
    id: str
    type: QuestionType
    prompt: str
    points: int
    options: tuple[QuestionOption, ...] = ()
    topic: str | None = None
    difficulty: Difficulty | None = None
    hints: tuple[str, ...] = ()
    correct_answer: Any = None
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "points": self.points,
            "options": [opt.to_dict() for opt in self.options],
            "topic": self.topic,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "hints": list(self.hints),
        }
        if self.correct_answer is not None:
            correct = self.correct_answer
            result["correct_answer"] = list(correct) if isinstance(correct, tuple) else correct
        if self.explanation is not None:
            result["explanation"] = self.explanation
        return result


@dataclass(frozen=True)
class PresentedQuiz:
    id: str
    title: str
    questions: tuple[PresentedQuestion, ...]
    description: str | None = None
    time_limit: int | None = None
    passing_score: int = 70
    total_points: int = 0
    max_attempts: int | None = None
    shuffle_questions: bool = False
    shuffle_answers: bool = True
    show_correct_answers: bool = True
    show_explanations: bool = True
    available_from: datetime | None = None
    available_until: datetime | None = None
    status: QuizStatus = QuizStatus.DRAFT
    quiz_type: QuizType = QuizType.PRACTICE
    lesson_id: str | None = None
    owner_id: str | None = None
    for_taking: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "time_limit": self.time_limit,
            "passing_score": self.passing_score,
            "total_points": self.total_points,
            "max_attempts": self.max_attempts,
            "shuffle_questions": self.shuffle_questions,
            "shuffle_answers": self.shuffle_answers,
            "show_correct_answers": self.show_correct_answers,
            "show_explanations": self.show_explanations,
            "available_from": self.available_from.isoformat() if self.available_from else None,
            "available_until": self.available_until.isoformat() if self.available_until else None,
            "status": self.status.value,
            "quiz_type": self.quiz_type.value,
            "lesson_id": self.lesson_id,
            "owner_id": self.owner_id,
            "questions": [q.to_dict() for q in self.questions],
        }


def presentation_seed(quiz_id: str, attempt_id: str | None, salt: str | None = None) -> int:
    """Reproducible integer seed from the quiz/attempt identity."""
    key = f"{quiz_id}:{attempt_id}" if attempt_id is not None else quiz_id
    if salt is not None:
        key = f"{key}:{salt}"
    hash_bytes = hashlib.sha256(key.encode()).digest()
    return int.from_bytes(hash_bytes[:8], byteorder="big")


def present(quiz: Quiz, for_taking: bool, attempt_id: str | None = None) -> PresentedQuiz:
    """
    Build the view of a quiz.

    Args:
        quiz: Quiz to show
        for_taking: True for a student view, False for the owner/editor view
        attempt_id: Attempt whose identity seeds the shuffles

    Returns:
        PresentedQuiz; the editor view carries every field untouched
    """
    if not for_taking:
        questions = tuple(_full(q) for q in quiz.questions)
    else:
        ordered = list(quiz.questions)
        if quiz.shuffle_questions:
            random.Random(presentation_seed(quiz.id, attempt_id)).shuffle(ordered)
        questions = tuple(
            _for_student(q, quiz, attempt_id) for q in ordered
        )

    return PresentedQuiz(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        questions=questions,
        time_limit=quiz.time_limit,
        passing_score=quiz.passing_score,
        total_points=quiz.total_points,
        max_attempts=quiz.max_attempts,
        shuffle_questions=quiz.shuffle_questions,
        shuffle_answers=quiz.shuffle_answers,
        show_correct_answers=quiz.show_correct_answers,
        show_explanations=quiz.show_explanations,
        available_from=quiz.available_from,
        available_until=quiz.available_until,
        status=quiz.status,
        quiz_type=quiz.quiz_type,
        lesson_id=quiz.lesson_id,
        owner_id=quiz.owner_id,
        for_taking=for_taking,
    )


def _full(question: Question) -> PresentedQuestion:
    return PresentedQuestion(
        id=question.id,
        type=question.type,
        prompt=question.prompt,
        points=question.points,
        options=question.options,
        topic=question.topic,
        difficulty=question.difficulty,
        hints=question.hints,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
    )


def _for_student(question: Question, quiz: Quiz, attempt_id: str | None) -> PresentedQuestion:
    options = list(question.options)
    if quiz.shuffle_answers and options:
        rng = random.Random(presentation_seed(quiz.id, attempt_id, salt=question.id))
        rng.shuffle(options)
    return PresentedQuestion(
        id=question.id,
        type=question.type,
        prompt=question.prompt,
        points=question.points,
        options=tuple(options),
        topic=question.topic,
        difficulty=question.difficulty,
        hints=question.hints,
    )


# =============================================================================
# Post-submission review
# =============================================================================


@dataclass(frozen=True)
class QuestionReview:
    """One row of the results screen."""

    question_id: str
    prompt: str
    answer: Any
    is_correct: bool
    points_earned: int
    points: int
    skipped: bool = False
    correct_answer: Any = None
    explanation: str | None = None


def review_results(quiz: Quiz, attempt: Attempt) -> list[QuestionReview]:
    """Per-question results in quiz order, revealing only what the quiz allows."""
    if attempt.result is None:
        raise AttemptNotGraded(attempt.id)

    reviews = []
    for question in quiz.questions:
        graded = attempt.result.answer_for(question.id)
        correct = question.correct_answer
        if isinstance(correct, tuple):
            correct = list(correct)
        reviews.append(
            QuestionReview(
                question_id=question.id,
                prompt=question.prompt,
                answer=graded.answer if graded else "",
                is_correct=graded.is_correct if graded else False,
                points_earned=graded.points_earned if graded else 0,
                points=question.points,
                skipped=graded.skipped if graded else True,
                correct_answer=correct if quiz.show_correct_answers else None,
                explanation=question.explanation if quiz.show_explanations else None,
            )
        )
    return reviews
