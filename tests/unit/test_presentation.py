"""
Unit tests for quiz presentation.

Run: pytest tests/unit/test_presentation.py -v
"""

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from assessment.errors import AttemptNotGraded
from assessment.models import QuizType
from assessment.presentation import present, presentation_seed, review_results


def _order(presented):
    return [q.id for q in presented.questions]


class TestPresentForTaking:
    """Student view."""

    @pytest.mark.parametrize("shuffle_answers", [True, False])
    @pytest.mark.parametrize("shuffle_questions", [True, False])
    def test_answers_always_hidden(self, sample_quiz, shuffle_questions, shuffle_answers):
        quiz = replace(sample_quiz, shuffle_questions=shuffle_questions, shuffle_answers=shuffle_answers)
        presented = present(quiz, for_taking=True, attempt_id="att-1")
        for question in presented.questions:
            assert question.correct_answer is None
            assert question.explanation is None
            data = question.to_dict()
            assert "correct_answer" not in data
            assert "explanation" not in data

    def test_same_attempt_same_order(self, sample_quiz):
        quiz = replace(sample_quiz, shuffle_questions=True)
        first = present(quiz, for_taking=True, attempt_id="att-1")
        second = present(quiz, for_taking=True, attempt_id="att-1")
        assert first == second

    def test_attempts_can_differ(self, sample_quiz):
        quiz = replace(sample_quiz, shuffle_questions=True)
        orders = {tuple(_order(present(quiz, True, f"att-{i}"))) for i in range(20)}
        assert len(orders) > 1

    def test_shuffle_keeps_every_question(self, sample_quiz):
        quiz = replace(sample_quiz, shuffle_questions=True)
        presented = present(quiz, for_taking=True, attempt_id="att-7")
        assert sorted(_order(presented)) == sorted(q.id for q in sample_quiz.questions)

    def test_no_question_shuffle_keeps_order(self, sample_quiz):
        presented = present(sample_quiz, for_taking=True, attempt_id="att-1")
        assert _order(presented) == [q.id for q in sample_quiz.questions]

    def test_option_shuffle_is_stable_per_question(self, sample_quiz):
        first = present(sample_quiz, True, "att-1").questions[0]
        second = present(sample_quiz, True, "att-1").questions[0]
        assert first.options == second.options
        assert {o.id for o in first.options} == {"a", "b", "c", "d"}

    def test_options_untouched_without_answer_shuffle(self, sample_quiz):
        quiz = replace(sample_quiz, shuffle_answers=False)
        presented = present(quiz, True, "att-1")
        assert presented.questions[0].options == sample_quiz.questions[0].options

    def test_metadata(self, sample_quiz):
        presented = present(replace(sample_quiz, time_limit=20), True, "att-1")
        assert presented.total_points == 10
        assert presented.time_limit == 20
        assert presented.to_dict()["title"] == "Fundamentals"


class TestPresentForEditor:
    def test_all_fields_kept(self, sample_quiz):
        quiz = replace(sample_quiz, shuffle_questions=True)
        presented = present(quiz, for_taking=False)
        assert _order(presented) == [q.id for q in quiz.questions]
        assert presented.questions[0].correct_answer == "b"
        assert presented.questions[0].explanation == "Routers operate at layer 3."
        assert presented.questions[0].options == quiz.questions[0].options
        assert presented.questions[2].to_dict()["correct_answer"] == ["Paris", "paris"]

    def test_quiz_settings_kept(self, sample_quiz):
        opens = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)
        quiz = replace(
            sample_quiz,
            max_attempts=3,
            shuffle_questions=True,
            shuffle_answers=False,
            show_explanations=False,
            time_limit=20,
            available_from=opens,
            quiz_type=QuizType.DIAGNOSTIC,
            lesson_id="lesson-7",
            owner_id="teacher-1",
        )
        data = present(quiz, for_taking=False).to_dict()
        assert data["max_attempts"] == 3
        assert data["shuffle_questions"] is True
        assert data["shuffle_answers"] is False
        assert data["show_correct_answers"] is True
        assert data["show_explanations"] is False
        assert data["time_limit"] == 20
        assert data["available_from"] == opens.isoformat()
        assert data["available_until"] is None
        assert data["status"] == "published"
        assert data["quiz_type"] == "diagnostic"
        assert data["lesson_id"] == "lesson-7"
        assert data["owner_id"] == "teacher-1"


class TestPresentationSeed:
    def test_stable(self):
        assert presentation_seed("quiz-1", "att-1") == presentation_seed("quiz-1", "att-1")

    def test_varies_with_attempt_and_salt(self):
        base = presentation_seed("quiz-1", "att-1")
        assert presentation_seed("quiz-1", "att-2") != base
        assert presentation_seed("quiz-1", "att-1", salt="q1") != base


class TestReviewResults:
    """Post-submission results view."""

    def test_requires_grade(self, controller, sample_quiz):
        attempt = controller.start("quiz-1", "s1")
        with pytest.raises(AttemptNotGraded):
            review_results(sample_quiz, attempt)

    def test_reveals_when_allowed(self, controller, sample_quiz, perfect_answers):
        attempt = controller.start("quiz-1", "s1")
        graded = controller.submit(attempt.id, dict(perfect_answers, q3="Lyon"))
        rows = review_results(sample_quiz, graded)

        assert [r.question_id for r in rows] == [q.id for q in sample_quiz.questions]
        capital = rows[2]
        assert not capital.is_correct
        assert capital.answer == "Lyon"
        assert capital.correct_answer == ["Paris", "paris"]
        assert capital.explanation == "Paris has been the capital since 987."

    def test_hides_when_disabled(self, controller, sample_quiz, perfect_answers):
        attempt = controller.start("quiz-1", "s1")
        graded = controller.submit(attempt.id, perfect_answers)
        quiz = replace(sample_quiz, show_correct_answers=False, show_explanations=False)
        for row in review_results(quiz, graded):
            assert row.correct_answer is None
            assert row.explanation is None
