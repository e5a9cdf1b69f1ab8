"""
Base Grading Strategy.

Provides the abstract base for all grading strategies and
a registry for strategy discovery keyed by question type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loguru import logger

from ..models import Question, QuestionType


# =============================================================================
# Question Grade
# =============================================================================


@dataclass(frozen=True)
class QuestionGrade:
    """Outcome of checking one non-blank answer. No partial credit."""

    is_correct: bool
    expected: Any = None
    actual: Any = None
    details: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Strategy Registry
# =============================================================================


class StrategyRegistry:
    """
    Registry for grading strategies.

    Example:
        @StrategyRegistry.register(QuestionType.MATCHING)
        class MappingMatchStrategy(GradingStrategy):
            ...

        strategy = StrategyRegistry.for_question(question)
    """

    _strategies: ClassVar[dict[QuestionType, GradingStrategy]] = {}

    @classmethod
    def register(cls, *question_types: QuestionType):
        """
        Decorator to register a grading strategy for one or more question types.

        Strategies are stateless, so a single instance serves every question.
        """

        def decorator(strategy_class: type[GradingStrategy]):
            instance = strategy_class()
            for question_type in question_types:
                cls._strategies[question_type] = instance
                logger.debug(f"Registered strategy: {question_type.value} -> {strategy_class.__name__}")
            strategy_class.question_types = tuple(question_types)
            return strategy_class

        return decorator

    @classmethod
    def get(cls, question_type: QuestionType | str) -> GradingStrategy:
        """Get the strategy for a question type."""
        question_type = QuestionType(question_type)
        if question_type not in cls._strategies:
            raise KeyError(f"No strategy registered for question type: {question_type.value}")
        return cls._strategies[question_type]

    @classmethod
    def for_question(cls, question: Question) -> GradingStrategy:
        return cls.get(question.type)

    @classmethod
    def list_strategies(cls) -> dict[str, str]:
        """List registered question types and the strategy grading them."""
        return {qt.value: type(s).__name__ for qt, s in cls._strategies.items()}


# =============================================================================
# Base Grading Strategy
# =============================================================================


class GradingStrategy(ABC):
    """
    Abstract base class for grading strategies.

    The answer handed to ``grade`` has already passed the shape check for its
    question type. The correct answer was normalized when the question was
    built, so a mismatch there is a content bug and fails an assertion.
    """

    question_types: ClassVar[tuple[QuestionType, ...]] = ()
    name: ClassVar[str] = "base_strategy"

    @abstractmethod
    def grade(self, question: Question, answer: Any) -> QuestionGrade:
        """
        Grade a single non-blank answer.

        Args:
            question: The question being graded
            answer: The submitted value

        Returns:
            QuestionGrade with correctness
        """
        ...

    def _normalize(self, text: str) -> str:
        """Normalize text for comparison."""
        return text.strip().lower()
