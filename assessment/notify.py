"""
Review assignment notifiers.

Called after a failed attempt has been graded and stored. A notifier must
not raise for delivery problems: the grade is already committed.
"""

from __future__ import annotations

from typing import Protocol

import httpx
from loguru import logger

from .models import Attempt, Quiz
from .review import ReviewSession


class Notifier(Protocol):
    def review_assigned(self, session: ReviewSession, attempt: Attempt, quiz: Quiz) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records the assignment in the log."""

    def review_assigned(self, session: ReviewSession, attempt: Attempt, quiz: Quiz) -> None:
        logger.info(
            f"Review session {session.id} assigned to {attempt.student_id} "
            f"for quiz {quiz.id}: {', '.join(session.focus_areas)}"
        )


class WebhookNotifier:
    """POSTs the review session as JSON to a configured endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.headers = headers or {}
        self._client = client or httpx.Client(timeout=timeout)

    def review_assigned(self, session: ReviewSession, attempt: Attempt, quiz: Quiz) -> None:
        payload = {
            "event": "review_assigned",
            "session": session.to_dict(),
            "attempt": {
                "id": attempt.id,
                "attemptNumber": attempt.attempt_number,
                "score": attempt.score,
                "passed": attempt.passed,
            },
            "quiz": {"id": quiz.id, "title": quiz.title},
        }
        try:
            response = self._client.post(self.url, json=payload, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Review webhook failed for session {session.id}: {e}")
            return
        logger.debug(f"Review webhook delivered for session {session.id} ({response.status_code})")

    def close(self) -> None:
        self._client.close()
