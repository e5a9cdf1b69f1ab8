"""
Unit tests for question, quiz and attempt models.

Run: pytest tests/unit/test_models.py -v
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from assessment.errors import AttemptNotActive, InvalidQuestion, InvalidQuiz, QuizNotEditable
from assessment.models import (
    Attempt,
    AttemptStatus,
    Question,
    QuestionOption,
    QuestionType,
    Quiz,
    QuizStatus,
    ReviewTopic,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class TestQuestion:
    """Construction-time validation of correct answers."""

    def test_choice_must_name_option(self):
        with pytest.raises(InvalidQuestion):
            Question(
                id="q",
                type=QuestionType.MULTIPLE_CHOICE,
                prompt="?",
                points=1,
                correct_answer="z",
                options=(QuestionOption("a", "A"), QuestionOption("b", "B")),
            )

    def test_matching_needs_mapping(self):
        with pytest.raises(InvalidQuestion):
            Question(id="q", type=QuestionType.MATCHING, prompt="?", points=1, correct_answer=["a"])

    def test_ordering_needs_sequence(self):
        with pytest.raises(InvalidQuestion):
            Question(id="q", type=QuestionType.ORDERING, prompt="?", points=1, correct_answer="abc")

    def test_short_answer_needs_strings(self):
        with pytest.raises(InvalidQuestion):
            Question(id="q", type=QuestionType.SHORT_ANSWER, prompt="?", points=1, correct_answer=[])

    @pytest.mark.parametrize("points", [-1, 1.5, True])
    def test_points_must_be_non_negative_int(self, points):
        with pytest.raises(InvalidQuestion):
            Question(id="q", type=QuestionType.TRUE_FALSE, prompt="?", points=points, correct_answer="true")

    def test_duplicate_option_ids(self):
        with pytest.raises(InvalidQuestion):
            Question(
                id="q",
                type=QuestionType.MULTIPLE_CHOICE,
                prompt="?",
                points=1,
                correct_answer="a",
                options=(QuestionOption("a", "A"), QuestionOption("a", "Again")),
            )

    def test_type_from_string(self):
        question = Question(id="q", type="ordering", prompt="?", points=1, correct_answer=["x", "y"])
        assert question.type is QuestionType.ORDERING
        assert question.correct_answer == ("x", "y")
        assert question.topic_label == "General"

    def test_to_dict_lists(self, sample_questions):
        data = sample_questions[2].to_dict()
        assert data["correct_answer"] == ["Paris", "paris"]
        assert data["type"] == "short_answer"


class TestQuiz:
    """Quiz policy and owner-side edits."""

    def test_defaults(self, sample_questions):
        quiz = Quiz(id="q", title="T", questions=sample_questions)
        assert quiz.passing_score == 70
        assert quiz.shuffle_answers is True
        assert quiz.shuffle_questions is False
        assert quiz.status is QuizStatus.DRAFT
        assert quiz.total_points == 10

    def test_duplicate_question_ids(self, sample_questions):
        with pytest.raises(InvalidQuiz):
            Quiz(id="q", title="T", questions=[sample_questions[0], sample_questions[0]])

    def test_window_order(self, sample_questions):
        with pytest.raises(InvalidQuiz):
            Quiz(
                id="q",
                title="T",
                questions=sample_questions,
                available_from=T0,
                available_until=T0 - timedelta(days=1),
            )

    def test_availability(self, sample_questions):
        quiz = Quiz(
            id="q",
            title="T",
            questions=sample_questions,
            status=QuizStatus.PUBLISHED,
            available_from=T0,
            available_until=T0 + timedelta(days=1),
        )
        assert quiz.availability_problem(T0 - timedelta(minutes=1)) == "not yet available"
        assert quiz.availability_problem(T0 + timedelta(days=2)) == "no longer available"
        assert quiz.is_open(T0 + timedelta(hours=1))

    def test_draft_not_open(self, sample_questions):
        quiz = Quiz(id="q", title="T", questions=sample_questions)
        assert quiz.availability_problem(T0) == "not published"

    def test_naive_window_treated_as_utc(self, sample_questions):
        quiz = Quiz(id="q", title="T", questions=sample_questions, available_from=datetime(2026, 1, 1))
        assert quiz.available_from.tzinfo is UTC

    def test_revise_only_in_draft(self, sample_quiz):
        with pytest.raises(QuizNotEditable):
            sample_quiz.revise(title="New")
        draft = replace(sample_quiz, status=QuizStatus.DRAFT)
        assert draft.revise(title="New").title == "New"

    def test_revise_cannot_change_status(self, sample_quiz):
        empty = replace(sample_quiz, status=QuizStatus.DRAFT, questions=())
        with pytest.raises(InvalidQuiz):
            empty.revise(status=QuizStatus.PUBLISHED)
        with pytest.raises(InvalidQuiz):
            empty.revise(title="Renamed", status=QuizStatus.ARCHIVED)

    def test_publish_and_archive(self, sample_questions):
        quiz = Quiz(id="q", title="T", questions=sample_questions).publish()
        assert quiz.status is QuizStatus.PUBLISHED
        assert quiz.archive().status is QuizStatus.ARCHIVED
        with pytest.raises(QuizNotEditable):
            quiz.publish()

    def test_publish_empty_quiz(self):
        with pytest.raises(InvalidQuiz):
            Quiz(id="q", title="T", questions=()).publish()


class TestAttempt:
    """Attempt state machine."""

    def _attempt(self, **kwargs):
        return Attempt(id="a1", quiz_id="quiz-1", student_id="s1", attempt_number=1, started_at=T0, **kwargs)

    def test_allowed_transitions(self):
        submitted = self._attempt().transition(AttemptStatus.SUBMITTED, submitted_at=T0)
        graded = submitted.transition(AttemptStatus.GRADED, passed=True)
        assert graded.status is AttemptStatus.GRADED
        assert not graded.is_active

    def test_graded_is_terminal(self):
        graded = self._attempt(status=AttemptStatus.GRADED)
        for status in AttemptStatus:
            with pytest.raises(AttemptNotActive):
                graded.transition(status)

    def test_cannot_skip_submitted(self):
        with pytest.raises(AttemptNotActive):
            self._attempt().transition(AttemptStatus.GRADED)

    def test_deadline(self, sample_quiz):
        timed = replace(sample_quiz, time_limit=30)
        attempt = self._attempt()
        assert attempt.deadline(sample_quiz) is None
        assert attempt.deadline(timed) == T0 + timedelta(minutes=30)
        assert not attempt.is_overdue(timed, T0 + timedelta(minutes=30))
        assert attempt.is_overdue(timed, T0 + timedelta(minutes=30, seconds=1))
        assert not attempt.is_overdue(timed, T0 + timedelta(minutes=30, seconds=1), grace_seconds=5)


class TestReviewTopic:
    def test_priority_is_one_based(self):
        with pytest.raises(ValueError):
            ReviewTopic(topic="t", priority=0)

    def test_mastery_bounds(self):
        with pytest.raises(ValueError):
            ReviewTopic(topic="t", priority=1, mastery_level=101)
