"""
Quiz attempt and grading engine.

Grades submissions per question type, classifies topic mastery, drives the
attempt lifecycle and derives review plans for weak topics.
"""

from .errors import (
    AssessmentError,
    AttemptExpired,
    AttemptLimitExceeded,
    AttemptNotActive,
    MalformedAnswer,
    NotAvailable,
    QuestionNotFound,
)
from .grading import grade
from .lifecycle import AttemptController, AttemptEligibility
from .mastery import analyze_topics
from .models import (
    Attempt,
    AttemptStatus,
    GradedAnswer,
    GradeResult,
    Question,
    QuestionOption,
    QuestionType,
    Quiz,
    QuizStatus,
    ReviewTopic,
)
from .presentation import PresentedQuiz, present, review_results
from .review import ReviewSession, build_review_session, derive_review_topics

__version__ = "0.1.0"

__all__ = [
    "AssessmentError",
    "AttemptExpired",
    "AttemptLimitExceeded",
    "AttemptNotActive",
    "MalformedAnswer",
    "NotAvailable",
    "QuestionNotFound",
    "grade",
    "AttemptController",
    "AttemptEligibility",
    "analyze_topics",
    "Attempt",
    "AttemptStatus",
    "GradedAnswer",
    "GradeResult",
    "Question",
    "QuestionOption",
    "QuestionType",
    "Quiz",
    "QuizStatus",
    "ReviewTopic",
    "PresentedQuiz",
    "present",
    "review_results",
    "ReviewSession",
    "build_review_session",
    "derive_review_topics",
]
