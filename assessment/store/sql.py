"""
SQLAlchemy-backed quiz and attempt store.

Tables:
- quizzes: quiz definition as a JSON payload (camelCase, as the platform stores it)
- quiz_attempts: one row per attempt, answers and grade result as JSON

At most one in-progress attempt per (student, quiz) is enforced by a partial
unique index, so concurrent starts collapse onto a single row even across
processes. Status changes go through a conditional UPDATE so a second
submit of the same attempt matches zero rows instead of regrading it.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Engine,
    ForeignKey,
    Index,
    Integer,
    Text,
    create_engine,
    func,
    select,
    text,
    update,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from config import get_settings

from ..errors import AttemptNotActive, AttemptNotFound, DuplicateInProgressAttempt, QuizNotFound
from ..models import Attempt, AttemptStatus, GradeResult, Quiz
from ..schemas import dump_quiz, load_quiz

JsonColumn = JSON().with_variant(JSONB(), "postgresql")

_IN_PROGRESS = text("status = 'in_progress'")


class Base(DeclarativeBase):
    pass


class QuizRow(Base):
    """Stored quiz definition."""

    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    payload: Mapped[dict] = mapped_column(JsonColumn, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class AttemptRow(Base):
    """Stored quiz attempt."""

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index(
            "uq_quiz_attempts_one_in_progress",
            "student_id",
            "quiz_id",
            unique=True,
            sqlite_where=_IN_PROGRESS,
            postgresql_where=_IN_PROGRESS,
        ),
        Index("ix_quiz_attempts_quiz_student", "quiz_id", "student_id"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    quiz_id: Mapped[str] = mapped_column(Text, ForeignKey("quizzes.id", ondelete="CASCADE"))
    student_id: Mapped[str] = mapped_column(Text, nullable=False)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="in_progress")
    answers: Mapped[dict] = mapped_column(JsonColumn, nullable=False, default=dict)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    time_spent: Mapped[int | None] = mapped_column(Integer)
    result: Mapped[dict | None] = mapped_column(JsonColumn)
    score: Mapped[float | None] = mapped_column()
    passed: Mapped[bool | None] = mapped_column(Boolean)
    feedback: Mapped[str | None] = mapped_column(Text)
    timed_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


def _attempt_values(attempt: Attempt) -> dict[str, Any]:
    return {
        "quiz_id": attempt.quiz_id,
        "student_id": attempt.student_id,
        "attempt_number": attempt.attempt_number,
        "status": attempt.status.value,
        "answers": dict(attempt.answers),
        "started_at": attempt.started_at,
        "submitted_at": attempt.submitted_at,
        "time_spent": attempt.time_spent,
        "result": attempt.result.to_dict() if attempt.result else None,
        "score": attempt.score,
        "passed": attempt.passed,
        "feedback": attempt.feedback,
        "timed_out": attempt.timed_out,
        "updated_at": attempt.updated_at or datetime.now(UTC),
    }


def _to_attempt(row: AttemptRow) -> Attempt:
    return Attempt(
        id=row.id,
        quiz_id=row.quiz_id,
        student_id=row.student_id,
        attempt_number=row.attempt_number,
        status=AttemptStatus(row.status),
        answers=dict(row.answers or {}),
        started_at=row.started_at,
        submitted_at=row.submitted_at,
        time_spent=row.time_spent,
        result=GradeResult.from_dict(row.result) if row.result else None,
        passed=row.passed,
        feedback=row.feedback,
        timed_out=row.timed_out,
        updated_at=row.updated_at,
    )


class SqlStore:
    """
    Implements QuizStore and AttemptStore over any SQLAlchemy engine.

    Args:
        engine_or_url: An Engine, a connection URL, or None for the configured URL
        create_tables: Create missing tables on construction
    """

    def __init__(self, engine_or_url: Engine | str | None = None, create_tables: bool = True):
        if isinstance(engine_or_url, Engine):
            self.engine = engine_or_url
        else:
            settings = get_settings()
            url = engine_or_url or settings.database_url
            self.engine = create_engine(url, echo=settings.log_level == "DEBUG", pool_pre_ping=True)
        self._sessions = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        if create_tables:
            self.init_db()

    def init_db(self) -> None:
        """Initialize database tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================
    # Quizzes
    # ========================================

    def save_quiz(self, quiz: Quiz) -> Quiz:
        with self.session_scope() as session:
            session.merge(
                QuizRow(id=quiz.id, title=quiz.title, status=quiz.status.value, payload=dump_quiz(quiz))
            )
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self.session_scope() as session:
            row = session.get(QuizRow, quiz_id)
            if row is None:
                raise QuizNotFound(quiz_id)
            return load_quiz(row.payload)

    # ========================================
    # Attempts
    # ========================================

    def get(self, attempt_id: str) -> Attempt:
        with self.session_scope() as session:
            row = session.get(AttemptRow, attempt_id)
            if row is None:
                raise AttemptNotFound(attempt_id)
            return _to_attempt(row)

    def find_in_progress(self, quiz_id: str, student_id: str) -> Attempt | None:
        stmt = select(AttemptRow).where(
            AttemptRow.quiz_id == quiz_id,
            AttemptRow.student_id == student_id,
            AttemptRow.status == AttemptStatus.IN_PROGRESS.value,
        )
        with self.session_scope() as session:
            row = session.scalars(stmt).first()
            return _to_attempt(row) if row else None

    def count_completed(self, quiz_id: str, student_id: str) -> int:
        stmt = select(func.count()).select_from(AttemptRow).where(
            AttemptRow.quiz_id == quiz_id,
            AttemptRow.student_id == student_id,
            AttemptRow.status != AttemptStatus.IN_PROGRESS.value,
        )
        with self.session_scope() as session:
            return session.scalar(stmt) or 0

    def list_for_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        stmt = (
            select(AttemptRow)
            .where(AttemptRow.quiz_id == quiz_id, AttemptRow.student_id == student_id)
            .order_by(AttemptRow.attempt_number, AttemptRow.started_at)
        )
        with self.session_scope() as session:
            return [_to_attempt(row) for row in session.scalars(stmt)]

    def list_in_progress(self, quiz_id: str) -> list[Attempt]:
        stmt = (
            select(AttemptRow)
            .where(
                AttemptRow.quiz_id == quiz_id,
                AttemptRow.status == AttemptStatus.IN_PROGRESS.value,
            )
            .order_by(AttemptRow.started_at)
        )
        with self.session_scope() as session:
            return [_to_attempt(row) for row in session.scalars(stmt)]

    def insert(self, attempt: Attempt) -> Attempt:
        try:
            with self.session_scope() as session:
                session.add(AttemptRow(id=attempt.id, **_attempt_values(attempt)))
        except IntegrityError as e:
            logger.debug(f"Insert of attempt {attempt.id} rejected: {e.orig}")
            raise DuplicateInProgressAttempt(attempt.quiz_id, attempt.student_id) from e
        return attempt

    def update(self, attempt: Attempt, expected_status: AttemptStatus) -> Attempt:
        stmt = (
            update(AttemptRow)
            .where(AttemptRow.id == attempt.id, AttemptRow.status == expected_status.value)
            .values(**_attempt_values(attempt))
        )
        with self.session_scope() as session:
            if session.execute(stmt).rowcount == 1:
                return attempt
            current = session.get(AttemptRow, attempt.id)
            if current is None:
                raise AttemptNotFound(attempt.id)
            raise AttemptNotActive(attempt.id, current.status)
