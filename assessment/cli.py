"""
Typer CLI for the assessment engine.

Commands:
    assessment grade QUIZ.json ANSWERS.json   - Grade a submission and show results
    assessment present QUIZ.json              - Print the student view of a quiz
    assessment present QUIZ.json --editor     - Print the owner/editor view
    assessment validate QUIZ.json             - Check a quiz definition

Usage:
    assessment --help
    assessment grade quiz.json answers.json
    assessment present quiz.json --attempt-id 3f2c...
"""

from __future__ import annotations

import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings

from .errors import AssessmentError
from .grading import grade
from .lifecycle import build_feedback
from .models import Attempt, AttemptStatus, Quiz
from .presentation import present as present_quiz
from .review import derive_review_topics
from .schemas import load_quiz, parse_answers

app = typer.Typer(
    help="Quiz grading and presentation tools",
    no_args_is_help=True,
)

console = Console()


def configure_logging() -> None:
    """Route loguru output according to settings."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        rprint(f"[red]✗[/red] Cannot read {path}: {escape(str(e))}")
        raise typer.Exit(code=1)


def _load_quiz(path: Path) -> Quiz:
    try:
        return load_quiz(_read_json(path))
    except ValidationError as e:
        rprint(f"[red]✗[/red] Invalid quiz definition in {path}")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            rprint(f"  [yellow]{escape(location)}[/yellow]: {escape(error['msg'])}")
        raise typer.Exit(code=1)
    except AssessmentError as e:
        rprint(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _format_answer(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(f"{k}→{v}" for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return " › ".join(str(v) for v in value)
    return str(value)


@app.command("grade")
def grade_command(
    quiz_file: Path = typer.Argument(..., help="Quiz definition (JSON)"),
    answers_file: Path = typer.Argument(..., help="Answers: {questionId: answer} or [{questionId, answer}]"),
    as_json: bool = typer.Option(False, "--json", help="Print the grade result as JSON"),
) -> None:
    """
    Grade a submission against a quiz.

    Shows per-question outcomes, the score, topic signals and, for a failed
    submission, the prioritized review plan.
    """
    settings = get_settings()
    quiz = _load_quiz(quiz_file)

    try:
        answers = parse_answers(_read_json(answers_file))
        result = grade(
            quiz.questions,
            answers,
            weak_threshold=settings.weak_topic_threshold,
            strong_threshold=settings.strong_topic_threshold,
        )
    except (AssessmentError, ValidationError) as e:
        rprint(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    passed = result.passed_for(quiz.passing_score)

    if as_json:
        payload = result.to_dict()
        payload["passed"] = passed
        console.print_json(data=payload)
        return

    table = Table(title=quiz.title)
    table.add_column("Question", style="cyan")
    table.add_column("Topic")
    table.add_column("Answer")
    table.add_column("Result", justify="center")
    table.add_column("Points", justify="right")

    for question in quiz.questions:
        graded = result.answer_for(question.id)
        if graded is None or graded.skipped:
            outcome = "[dim]skipped[/dim]"
        elif graded.is_correct:
            outcome = "[green]✓[/green]"
        else:
            outcome = "[red]✗[/red]"
        table.add_row(
            question.id,
            question.topic_label,
            _format_answer(graded.answer) if graded else "",
            outcome,
            f"{graded.points_earned if graded else 0}/{question.points}",
        )

    console.print(table)
    color = "green" if passed else "red"
    rprint(f"[{color}]{build_feedback(result, passed)}[/{color}]")
    rprint(
        f"Points: {result.points_earned}/{result.points_possible} · "
        f"correct {result.correct_count}, incorrect {result.incorrect_count}, "
        f"skipped {result.skipped_count}"
    )
    if result.strong_areas:
        rprint(f"[green]Strong:[/green] {', '.join(result.strong_areas)}")
    if result.weak_areas:
        rprint(f"[yellow]Weak:[/yellow] {', '.join(result.weak_areas)}")

    if not passed:
        now = datetime.now(UTC)
        attempt = Attempt(
            id="cli",
            quiz_id=quiz.id,
            student_id="cli",
            attempt_number=1,
            started_at=now,
            status=AttemptStatus.GRADED,
            answers=answers,
            result=result,
            passed=passed,
        )
        topics = derive_review_topics(attempt, quiz)
        if topics:
            plan = Table(title="Review plan")
            plan.add_column("#", justify="right")
            plan.add_column("Topic", style="yellow")
            plan.add_column("Questions to revisit")
            for topic in topics:
                plan.add_row(str(topic.priority), topic.topic, ", ".join(topic.related_question_ids))
            console.print(plan)


@app.command("present")
def present_command(
    quiz_file: Path = typer.Argument(..., help="Quiz definition (JSON)"),
    attempt_id: str | None = typer.Option(None, "--attempt-id", "-a", help="Attempt id used to seed shuffles"),
    editor: bool = typer.Option(False, "--editor", help="Owner view with answers and explanations"),
) -> None:
    """Print the presented quiz as JSON."""
    quiz = _load_quiz(quiz_file)
    presented = present_quiz(quiz, for_taking=not editor, attempt_id=attempt_id)
    console.print_json(data=presented.to_dict())


@app.command("validate")
def validate_command(
    quiz_file: Path = typer.Argument(..., help="Quiz definition (JSON)"),
) -> None:
    """Check a quiz definition and summarize it."""
    quiz = _load_quiz(quiz_file)

    topics: dict[str, int] = {}
    for question in quiz.questions:
        topics[question.topic_label] = topics.get(question.topic_label, 0) + 1

    rprint(f"[green]✓[/green] {quiz.title}: {len(quiz.questions)} questions, {quiz.total_points} points")
    rprint(
        f"  status={quiz.status.value} passing={quiz.passing_score}% "
        f"time_limit={quiz.time_limit or '-'} max_attempts={quiz.max_attempts or '-'}"
    )
    for topic, count in topics.items():
        rprint(f"  [cyan]{topic}[/cyan]: {count}")


def run() -> None:
    """CLI entry point."""
    configure_logging()
    app()


if __name__ == "__main__":
    run()
