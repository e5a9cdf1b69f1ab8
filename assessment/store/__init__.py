"""Attempt/quiz storage ports and their implementations."""

from .base import AttemptStore, Clock, FrozenClock, QuizStore, SystemClock
from .memory import MemoryStore
from .sql import SqlStore

__all__ = [
    "AttemptStore",
    "Clock",
    "FrozenClock",
    "MemoryStore",
    "QuizStore",
    "SqlStore",
    "SystemClock",
]
