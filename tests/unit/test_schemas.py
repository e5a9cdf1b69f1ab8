"""
Unit tests for payload schemas.

Run: pytest tests/unit/test_schemas.py -v
"""

import pytest
from pydantic import ValidationError

from assessment.errors import InvalidQuestion
from assessment.models import QuestionType, QuizStatus, QuizType
from assessment.schemas import QuizPayload, dump_quiz, load_quiz, parse_answers

QUIZ_JSON = {
    "id": "quiz-42",
    "title": "Capitals",
    "passingScore": 80,
    "timeLimit": 15,
    "maxAttempts": 3,
    "shuffleQuestions": True,
    "availableFrom": "2026-03-01T00:00:00Z",
    "status": "published",
    "type": "graded",
    "questions": [
        {
            "id": "q1",
            "type": "multiple_choice",
            "question": "Capital of Italy?",
            "points": 2,
            "correctAnswer": "rome",
            "options": [
                {"id": "rome", "text": "Rome"},
                {"id": "milan", "text": "Milan", "imageUrl": "https://cdn.example/milan.png"},
            ],
            "topic": "Europe",
            "hints": ["Think of the Colosseum"],
        },
        {
            "id": "q2",
            "type": "matching",
            "question": "Match",
            "correctAnswer": {"Spain": "Madrid"},
        },
    ],
}


class TestQuizPayload:
    def test_camel_case_input(self):
        quiz = load_quiz(QUIZ_JSON)
        assert quiz.passing_score == 80
        assert quiz.time_limit == 15
        assert quiz.max_attempts == 3
        assert quiz.shuffle_questions is True
        assert quiz.shuffle_answers is True
        assert quiz.status is QuizStatus.PUBLISHED
        assert quiz.quiz_type is QuizType.GRADED
        assert quiz.available_from.year == 2026

        first = quiz.questions[0]
        assert first.type is QuestionType.MULTIPLE_CHOICE
        assert first.prompt == "Capital of Italy?"
        assert first.options[1].image_url == "https://cdn.example/milan.png"
        assert first.hints == ("Think of the Colosseum",)
        assert quiz.questions[1].points == 1

    def test_snake_case_input(self):
        quiz = load_quiz({"id": "q", "title": "T", "passing_score": 55})
        assert quiz.passing_score == 55

    def test_passing_score_default(self):
        assert load_quiz({"id": "q", "title": "T"}).passing_score == 70

    def test_round_trip(self):
        quiz = load_quiz(QUIZ_JSON)
        data = dump_quiz(quiz)
        assert data["passingScore"] == 80
        assert data["questions"][0]["correctAnswer"] == "rome"
        assert load_quiz(data) == quiz

    def test_unknown_question_type(self):
        bad = dict(QUIZ_JSON, questions=[dict(QUIZ_JSON["questions"][0], type="essay")])
        with pytest.raises(ValidationError):
            QuizPayload.model_validate(bad)

    def test_content_errors_surface(self):
        bad = dict(QUIZ_JSON, questions=[dict(QUIZ_JSON["questions"][0], correctAnswer="paris")])
        with pytest.raises(InvalidQuestion):
            load_quiz(bad)

    def test_passing_score_bounds(self):
        with pytest.raises(ValidationError):
            QuizPayload.model_validate({"id": "q", "title": "T", "passingScore": 120})


class TestParseAnswers:
    def test_mapping(self):
        assert parse_answers({"q1": "rome"}) == {"q1": "rome"}

    def test_records(self):
        records = [
            {"questionId": "q1", "answer": "rome", "timeSpent": 12},
            {"questionId": "q2", "answer": {"Spain": "Madrid"}},
            {"questionId": "q3", "answer": ["a", "b"]},
        ]
        assert parse_answers(records) == {
            "q1": "rome",
            "q2": {"Spain": "Madrid"},
            "q3": ["a", "b"],
        }

    def test_none(self):
        assert parse_answers(None) == {}

    def test_record_missing_question_id(self):
        with pytest.raises(ValidationError):
            parse_answers([{"answer": "x"}])
