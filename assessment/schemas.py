"""
Payload schemas for quiz content and answer submissions.

Accepts the platform's camelCase JSON (``correctAnswer``, ``passingScore``,
``timeLimit``...) as well as snake_case field names, and converts to and
from the engine's dataclasses.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from config import get_settings

from .models import (
    AnswerMap,
    Difficulty,
    Question,
    QuestionOption,
    QuestionType,
    Quiz,
    QuizStatus,
    QuizType,
)


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========================================
# Quiz Content
# ========================================


class QuestionOptionPayload(_Payload):
    id: str
    text: str
    image_url: str | None = None


class QuestionPayload(_Payload):
    """A question as stored in a quiz's ``questions`` JSON column."""

    id: str
    type: QuestionType
    question: str = Field(..., description="Prompt shown to the student")
    points: int = Field(1, ge=0)
    correct_answer: str | list[str] | dict[str, str]
    options: list[QuestionOptionPayload] = Field(default_factory=list)
    topic: str | None = None
    explanation: str | None = None
    difficulty: Difficulty | None = None
    hints: list[str] = Field(default_factory=list)

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            type=self.type,
            prompt=self.question,
            points=self.points,
            correct_answer=self.correct_answer,
            options=tuple(
                QuestionOption(id=o.id, text=o.text, image_url=o.image_url)
                for o in self.options
            ),
            topic=self.topic,
            explanation=self.explanation,
            difficulty=self.difficulty,
            hints=tuple(self.hints),
        )

    @classmethod
    def from_question(cls, question: Question) -> QuestionPayload:
        correct = question.correct_answer
        if isinstance(correct, tuple):
            correct = list(correct)
        return cls(
            id=question.id,
            type=question.type,
            question=question.prompt,
            points=question.points,
            correct_answer=correct,
            options=[
                QuestionOptionPayload(id=o.id, text=o.text, image_url=o.image_url)
                for o in question.options
            ],
            topic=question.topic,
            explanation=question.explanation,
            difficulty=question.difficulty,
            hints=list(question.hints),
        )


class QuizPayload(_Payload):
    """A full quiz definition."""

    id: str
    title: str
    description: str | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)
    passing_score: int | None = Field(None, ge=0, le=100)
    time_limit: int | None = Field(None, gt=0, description="Minutes")
    max_attempts: int | None = Field(None, gt=0)
    shuffle_questions: bool = False
    shuffle_answers: bool = True
    show_correct_answers: bool = True
    show_explanations: bool = True
    available_from: datetime | None = None
    available_until: datetime | None = None
    status: QuizStatus = QuizStatus.DRAFT
    type: QuizType = QuizType.PRACTICE
    lesson_id: str | None = None
    owner_id: str | None = None

    def to_quiz(self) -> Quiz:
        """Build the engine Quiz; a missing passing score takes the configured default."""
        passing_score = self.passing_score
        if passing_score is None:
            passing_score = get_settings().default_passing_score
        return Quiz(
            id=self.id,
            title=self.title,
            description=self.description,
            questions=tuple(q.to_question() for q in self.questions),
            passing_score=passing_score,
            time_limit=self.time_limit,
            max_attempts=self.max_attempts,
            shuffle_questions=self.shuffle_questions,
            shuffle_answers=self.shuffle_answers,
            show_correct_answers=self.show_correct_answers,
            show_explanations=self.show_explanations,
            available_from=self.available_from,
            available_until=self.available_until,
            status=self.status,
            quiz_type=self.type,
            lesson_id=self.lesson_id,
            owner_id=self.owner_id,
        )

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> QuizPayload:
        return cls(
            id=quiz.id,
            title=quiz.title,
            description=quiz.description,
            questions=[QuestionPayload.from_question(q) for q in quiz.questions],
            passing_score=quiz.passing_score,
            time_limit=quiz.time_limit,
            max_attempts=quiz.max_attempts,
            shuffle_questions=quiz.shuffle_questions,
            shuffle_answers=quiz.shuffle_answers,
            show_correct_answers=quiz.show_correct_answers,
            show_explanations=quiz.show_explanations,
            available_from=quiz.available_from,
            available_until=quiz.available_until,
            status=quiz.status,
            type=quiz.quiz_type,
            lesson_id=quiz.lesson_id,
            owner_id=quiz.owner_id,
        )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def load_quiz(data: Mapping[str, Any]) -> Quiz:
    """Validate a JSON-like mapping and build a Quiz."""
    return QuizPayload.model_validate(data).to_quiz()


def dump_quiz(quiz: Quiz) -> dict[str, Any]:
    return QuizPayload.from_quiz(quiz).to_json_dict()


# ========================================
# Answers
# ========================================


class AnswerPayload(_Payload):
    """One ``{questionId, answer}`` record."""

    question_id: str
    answer: str | list[str] | dict[str, str] | None = None
    time_spent: int | None = Field(None, ge=0, description="Seconds on this question")


_answer_list = TypeAdapter(list[AnswerPayload])


def parse_answers(data: Mapping[str, Any] | list[Any] | None) -> AnswerMap:
    """
    Normalize a submission to ``{question_id: answer}``.

    Accepts either a plain map or a list of ``{questionId, answer}`` records.
    Values are passed through untouched; shape checks happen at grading time.
    """
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    return {record.question_id: record.answer for record in _answer_list.validate_python(data)}
