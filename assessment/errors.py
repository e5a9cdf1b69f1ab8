"""
Assessment engine exceptions.

Every error here is caller-recoverable: the presentation layer translates
them into user-facing messages and does not retry them automatically.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for all assessment engine errors."""


# =============================================================================
# Availability & Attempt Limits
# =============================================================================


class NotAvailable(AssessmentError):
    """Quiz is not published or outside its availability window."""

    def __init__(self, quiz_id: str, reason: str):
        super().__init__(f"Quiz {quiz_id} is {reason}")
        self.quiz_id = quiz_id
        self.reason = reason


class AttemptLimitExceeded(AssessmentError):
    """Student has used every attempt the quiz allows."""

    def __init__(self, quiz_id: str, student_id: str, max_attempts: int):
        super().__init__(
            f"Maximum attempts reached for quiz {quiz_id} ({max_attempts})"
        )
        self.quiz_id = quiz_id
        self.student_id = student_id
        self.max_attempts = max_attempts


class AttemptNotActive(AssessmentError):
    """Operation requires an in-progress attempt."""

    def __init__(self, attempt_id: str, status: str):
        super().__init__(f"Attempt {attempt_id} is already completed (status: {status})")
        self.attempt_id = attempt_id
        self.status = status


class AttemptExpired(AttemptNotActive):
    """Attempt passed its deadline and was auto-submitted."""

    def __init__(self, attempt_id: str):
        super().__init__(attempt_id, "expired")


class AttemptNotGraded(AssessmentError):
    """Results were requested before the attempt was graded."""

    def __init__(self, attempt_id: str):
        super().__init__(f"Attempt {attempt_id} has not been graded yet")
        self.attempt_id = attempt_id


# =============================================================================
# Answers
# =============================================================================


class MalformedAnswer(AssessmentError):
    """Submitted answer shape does not match the question type."""

    def __init__(self, question_id: str, expected: str, actual: object):
        super().__init__(
            f"Answer to question {question_id} must be {expected}, "
            f"got {type(actual).__name__}"
        )
        self.question_id = question_id
        self.expected = expected


class QuestionNotFound(AssessmentError):
    """Answer references a question id absent from the quiz."""

    def __init__(self, question_id: str):
        super().__init__(f"Question not found: {question_id}")
        self.question_id = question_id


# =============================================================================
# Content
# =============================================================================


class InvalidQuestion(AssessmentError, ValueError):
    """Question content violates its type's shape invariants."""


class InvalidQuiz(AssessmentError, ValueError):
    """Quiz configuration is inconsistent."""


class QuizNotEditable(AssessmentError):
    """Quiz can only be revised while in draft."""

    def __init__(self, quiz_id: str, status: str):
        super().__init__(f"Quiz {quiz_id} cannot be edited while {status}")
        self.quiz_id = quiz_id
        self.status = status


class InvalidReviewTransition(AssessmentError):
    """Review session status change is not allowed."""


# =============================================================================
# Storage
# =============================================================================


class QuizNotFound(AssessmentError):
    def __init__(self, quiz_id: str):
        super().__init__(f"Quiz not found: {quiz_id}")
        self.quiz_id = quiz_id


class AttemptNotFound(AssessmentError):
    def __init__(self, attempt_id: str):
        super().__init__(f"Attempt not found: {attempt_id}")
        self.attempt_id = attempt_id


class DuplicateInProgressAttempt(AssessmentError):
    """Another in-progress attempt already exists for the student and quiz."""

    def __init__(self, quiz_id: str, student_id: str):
        super().__init__(
            f"Student {student_id} already has an attempt in progress for quiz {quiz_id}"
        )
        self.quiz_id = quiz_id
        self.student_id = student_id
