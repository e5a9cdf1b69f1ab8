"""
Grading Strategy Implementations.

One strategy per answer shape. All of them are all-or-nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import Question, QuestionType
from .base import GradingStrategy, QuestionGrade, StrategyRegistry


# =============================================================================
# Choice (multiple_choice, true_false)
# =============================================================================


@StrategyRegistry.register(QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)
class ChoiceMatchStrategy(GradingStrategy):
    """
    Grade by strict option-id equality.

    Options may have been shuffled for display; the id is stable, the
    position is not.
    """

    name = "choice_match"

    def grade(self, question: Question, answer: Any) -> QuestionGrade:
        expected = question.correct_answer
        assert isinstance(expected, str), f"{question.id}: choice answer must be an option id"

        return QuestionGrade(
            is_correct=answer == expected,
            expected=expected,
            actual=answer,
        )


# =============================================================================
# Text set (short_answer, fill_blank)
# =============================================================================


@StrategyRegistry.register(QuestionType.SHORT_ANSWER, QuestionType.FILL_BLANK)
class TextSetMatchStrategy(GradingStrategy):
    """
    Grade free text against a set of acceptable answers.

    Comparison trims surrounding whitespace and ignores case. Any acceptable
    answer is enough.
    """

    name = "text_set_match"

    def grade(self, question: Question, answer: Any) -> QuestionGrade:
        accepted = question.correct_answer
        assert isinstance(accepted, tuple) and accepted, f"{question.id}: needs acceptable answers"

        normalized = self._normalize(answer)
        matched = next((a for a in accepted if self._normalize(a) == normalized), None)

        return QuestionGrade(
            is_correct=matched is not None,
            expected=list(accepted),
            actual=answer,
            details={"matched": matched},
        )


# =============================================================================
# Mapping (matching)
# =============================================================================


@StrategyRegistry.register(QuestionType.MATCHING)
class MappingMatchStrategy(GradingStrategy):
    """
    Grade key -> value pairings.

    Every key of the correct mapping must map to the identical value in the
    submission. Extra keys in the submission are ignored.
    """

    name = "mapping_match"

    def grade(self, question: Question, answer: Any) -> QuestionGrade:
        expected = question.correct_answer
        assert isinstance(expected, dict) and expected, f"{question.id}: needs a mapping"
        assert isinstance(answer, Mapping)

        mismatched = [key for key, value in expected.items() if answer.get(key) != value]

        return QuestionGrade(
            is_correct=not mismatched,
            expected=dict(expected),
            actual=dict(answer),
            details={"mismatched_keys": mismatched},
        )


# =============================================================================
# Order (ordering)
# =============================================================================


@StrategyRegistry.register(QuestionType.ORDERING)
class OrderMatchStrategy(GradingStrategy):
    """
    Grade an ordered sequence element for element.

    Same items in a different order is incorrect.
    """

    name = "order_match"

    def grade(self, question: Question, answer: Any) -> QuestionGrade:
        expected = question.correct_answer
        assert isinstance(expected, tuple) and expected, f"{question.id}: needs an ordered list"

        submitted = list(answer)
        correct_positions = sum(
            1 for i, item in enumerate(submitted)
            if i < len(expected) and item == expected[i]
        )

        return QuestionGrade(
            is_correct=submitted == list(expected),
            expected=list(expected),
            actual=submitted,
            details={"correct_positions": correct_positions},
        )
