"""
Quiz grading.

Pure function over a question list and an answer map: no I/O, no clock,
identical inputs always give an identical GradeResult.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from ..mastery import STRONG_THRESHOLD, WEAK_THRESHOLD, analyze_topics
from ..models import GradedAnswer, GradeResult, Question, is_blank, validate_answers
from .base import StrategyRegistry


def grade(
    questions: Iterable[Question],
    answers: Mapping[str, Any],
    weak_threshold: float = WEAK_THRESHOLD,
    strong_threshold: float = STRONG_THRESHOLD,
) -> GradeResult:
    """
    Grade submitted answers against a quiz's questions.

    Args:
        questions: Questions of the quiz, in quiz order
        answers: question id -> submitted value
        weak_threshold: Topic rate (%) below which a topic is weak
        strong_threshold: Topic rate (%) at or above which a topic is strong

    Returns:
        GradeResult with per-question outcomes and topic signals

    Raises:
        QuestionNotFound: an answer references an unknown question
        MalformedAnswer: an answer's shape does not fit its question type
    """
    questions = tuple(questions)
    validate_answers(questions, answers)

    points_earned = 0
    points_possible = 0
    correct_count = 0
    incorrect_count = 0
    skipped_count = 0
    graded_answers: list[GradedAnswer] = []

    for question in questions:
        points_possible += question.points
        value = answers.get(question.id)

        if is_blank(value):
            skipped_count += 1
            graded_answers.append(
                GradedAnswer(
                    question_id=question.id,
                    answer="",
                    is_correct=False,
                    points_earned=0,
                    skipped=True,
                )
            )
            continue

        outcome = StrategyRegistry.for_question(question).grade(question, value)
        if outcome.is_correct:
            correct_count += 1
            points_earned += question.points
        else:
            incorrect_count += 1

        graded_answers.append(
            GradedAnswer(
                question_id=question.id,
                answer=outcome.actual,
                is_correct=outcome.is_correct,
                points_earned=question.points if outcome.is_correct else 0,
            )
        )

    analysis = analyze_topics(questions, graded_answers, weak_threshold, strong_threshold)
    score = points_earned / points_possible * 100 if points_possible > 0 else 0.0

    logger.debug(
        f"Graded {len(questions)} questions: {points_earned}/{points_possible} "
        f"({score:.1f}%), skipped={skipped_count}"
    )

    return GradeResult(
        score=score,
        points_earned=points_earned,
        points_possible=points_possible,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        skipped_count=skipped_count,
        graded_answers=tuple(graded_answers),
        weak_areas=analysis.weak,
        strong_areas=analysis.strong,
        topic_stats=analysis.stats,
    )
