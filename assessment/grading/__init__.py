"""
Grading Strategies.

Strategy Pattern implementation for question grading, one strategy per
answer shape, selected by question type.
"""

from .base import GradingStrategy, QuestionGrade, StrategyRegistry
from .strategies import (
    ChoiceMatchStrategy,
    MappingMatchStrategy,
    OrderMatchStrategy,
    TextSetMatchStrategy,
)
from .grader import grade

__all__ = [
    # Base classes
    "GradingStrategy",
    "QuestionGrade",
    "StrategyRegistry",
    # Strategies
    "ChoiceMatchStrategy",
    "TextSetMatchStrategy",
    "MappingMatchStrategy",
    "OrderMatchStrategy",
    # Entry point
    "grade",
]
