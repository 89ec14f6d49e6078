"""
Accepts quiz submissions and runs the bulk clear.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from starlette.concurrency import run_in_threadpool

from quizscores.completion import CompletionIndex
from quizscores.errors import PersistenceError, ScoreValidationError
from quizscores.notify import ScoreBroadcaster
from quizscores.records import ScoreRecord, now_millis, utc_timestamp
from quizscores.repository import ScoreRepository

logger = logging.getLogger(__name__)


class SubmissionHandler:
    def __init__(
        self,
        repository: ScoreRepository,
        completion: CompletionIndex,
        broadcaster: ScoreBroadcaster,
    ):
        self.repository = repository
        self.completion = completion
        self.broadcaster = broadcaster

    async def submit(self, payload: Mapping[str, Any]) -> ScoreRecord:
        """
        Validate, persist and announce one submission.

        The user is marked completed before the write starts, so a status
        check racing the write already sees them; the mark is kept even when
        the write fails.

        Raises:
            ScoreValidationError: name is missing or blank.
            DuplicateScoreError: the id is already stored.
            PersistenceError: the active store rejected the write.
        """
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ScoreValidationError("name is required")

        record = ScoreRecord.from_dict(payload)
        if record.id is None:
            record.id = now_millis()
        if not record.received_at:
            record.received_at = utc_timestamp()

        self.completion.mark_completed(record.name)

        saved = await run_in_threadpool(self.repository.append, record)
        if not saved:
            raise PersistenceError("Failed to persist score")

        try:
            await self.broadcaster.publish_new_score(record)
        except Exception:
            logger.exception("Failed to broadcast score %s", record.id)
        return record

    async def clear_all(self) -> None:
        """Empty the active store, forget completions and announce the clear."""
        cleared = await run_in_threadpool(self.repository.clear_all)
        if not cleared:
            raise PersistenceError("Failed to clear scores")
        self.completion.reset()

        try:
            await self.broadcaster.publish_cleared()
        except Exception:
            logger.exception("Failed to broadcast clear event")
