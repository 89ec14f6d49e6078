"""
Uniform read/append/clear operations over the active store.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from quizscores.db import ScoreStore
from quizscores.errors import StoreUnavailableError
from quizscores.records import ScoreRecord
from quizscores.storage import FileScoreStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScoreRepository:
    """
    Wraps the store chosen at startup.

    Reads never raise: a failing store falls back to the local file, and a
    failing file reads as empty. Writes report False on failure and are never
    redirected to another store. DuplicateScoreError propagates to the caller.
    """

    def __init__(self, store: ScoreStore, fallback: Optional[FileScoreStore] = None):
        self.store = store
        self.fallback = None if isinstance(store, FileScoreStore) else fallback

    @property
    def mode(self) -> str:
        return self.store.mode

    def _read(self, read: Callable[[ScoreStore], T], default: T) -> T:
        try:
            return read(self.store)
        except StoreUnavailableError as exc:
            logger.error("Failed to read scores from %s store: %s", self.mode, exc)
        if self.fallback is None:
            return default
        logger.warning("Falling back to local file %s for reads", self.fallback.path)
        try:
            return read(self.fallback)
        except StoreUnavailableError as exc:
            logger.error("Failed to read scores from local file: %s", exc)
            return default

    def list_all(self) -> list[ScoreRecord]:
        return self._read(lambda store: store.list_all(), [])

    def has_name(self, name: str) -> bool:
        return self._read(lambda store: store.has_name(name), False)

    def append(self, record: ScoreRecord) -> bool:
        try:
            self.store.append(record)
        except StoreUnavailableError as exc:
            logger.error("Failed to save score %s to %s store: %s", record.id, self.mode, exc)
            return False
        logger.info("Saved score %s to %s store", record.id, self.mode)
        return True

    def clear_all(self) -> bool:
        try:
            self.store.clear_all()
        except StoreUnavailableError as exc:
            logger.error("Failed to clear scores in %s store: %s", self.mode, exc)
            return False
        logger.info("Cleared all scores in %s store", self.mode)
        return True
