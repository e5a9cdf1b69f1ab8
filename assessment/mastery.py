"""
Topic Mastery Analyzer.

Buckets per-question correctness by topic and classifies each topic:

    rate <  50%          -> weak
    50% <= rate < 80%    -> no signal
    rate >= 80%          -> strong

Weak topics keep the order in which their first question appears; that
order becomes the review priority order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .models import GradedAnswer, Question, TopicStat

WEAK_THRESHOLD = 50.0
STRONG_THRESHOLD = 80.0


@dataclass(frozen=True)
class TopicAnalysis:
    """Weak/strong topic labels plus the tallies they came from."""

    weak: tuple[str, ...]
    strong: tuple[str, ...]
    stats: tuple[TopicStat, ...]

    def stat_for(self, topic: str) -> TopicStat | None:
        for stat in self.stats:
            if stat.topic == topic:
                return stat
        return None


def analyze_topics(
    questions: Iterable[Question],
    graded_answers: Iterable[GradedAnswer],
    weak_threshold: float = WEAK_THRESHOLD,
    strong_threshold: float = STRONG_THRESHOLD,
) -> TopicAnalysis:
    """
    Classify topics by correctness rate.

    Args:
        questions: Questions in quiz order (drives encounter order)
        graded_answers: Outcomes from grading; questions without one count as incorrect
        weak_threshold: Rate (%) below which a topic is weak
        strong_threshold: Rate (%) at or above which a topic is strong

    Returns:
        TopicAnalysis in encounter order
    """
    correct_by_id = {a.question_id: a.is_correct for a in graded_answers}

    # dicts preserve insertion order, i.e. first-encounter order
    totals: dict[str, int] = {}
    correct: dict[str, int] = {}
    for question in questions:
        topic = question.topic_label
        totals[topic] = totals.get(topic, 0) + 1
        correct.setdefault(topic, 0)
        if correct_by_id.get(question.id, False):
            correct[topic] += 1

    stats = tuple(TopicStat(topic, correct[topic], total) for topic, total in totals.items())
    weak = tuple(s.topic for s in stats if s.total > 0 and s.rate < weak_threshold)
    strong = tuple(s.topic for s in stats if s.total > 0 and s.rate >= strong_threshold)

    return TopicAnalysis(weak=weak, strong=strong, stats=stats)
