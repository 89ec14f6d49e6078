"""
Tracks which users already completed the quiz.
"""

from __future__ import annotations

from typing import Optional

from quizscores.repository import ScoreRepository


class CompletionIndex:
    """
    In-memory set of names seen since startup, backed by a store lookup.

    The set starts empty on every restart, so completions made before a
    restart are only visible through the store. A wiped local file therefore
    reports those users as not completed.
    """

    def __init__(self, repository: ScoreRepository, completed: Optional[set[str]] = None):
        self.repository = repository
        self.completed = completed if completed is not None else set()

    def has_completed(self, name: str) -> bool:
        if name in self.completed:
            return True
        return self.repository.has_name(name)

    def mark_completed(self, name: str) -> None:
        self.completed.add(name)

    def reset(self) -> None:
        self.completed.clear()
