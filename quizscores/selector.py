"""
Startup selection of the single durable store used for the process lifetime.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from quizscores.config import Settings
from quizscores.db import ScoreStore, SqlScoreStore
from quizscores.storage import FileScoreStore, S3ScoreStore

logger = logging.getLogger(__name__)


def _firestore_store(settings: Settings) -> ScoreStore:
    from quizscores.firestore_store import FirestoreScoreStore

    return FirestoreScoreStore.from_service_account(
        settings.firebase_service_account,
        collection=settings.firestore_collection,
    )


def _s3_store(settings: Settings) -> ScoreStore:
    return S3ScoreStore(
        bucket=settings.s3_bucket,
        region=settings.aws_region,
        key=settings.s3_key,
        endpoint=settings.s3_endpoint,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
    )


def _candidates(settings: Settings) -> Iterator[tuple[str, Callable[[], ScoreStore]]]:
    """Configured stores in priority order: relational, document, object."""
    if settings.database_url:
        yield "postgres", lambda: SqlScoreStore(settings.database_url)
    if settings.firebase_service_account:
        yield "firestore", lambda: _firestore_store(settings)
    if settings.s3_bucket:
        if settings.aws_region:
            yield "s3", lambda: _s3_store(settings)
        else:
            logger.warning("S3_BUCKET is set without AWS_REGION; skipping S3 store")


def select_store(settings: Settings) -> ScoreStore:
    """
    Activate the first configured store whose client initializes.

    Initialization failures (bad credentials, unreachable database, missing
    client library) are logged and the next candidate is tried. When nothing
    else is usable the local file store is returned.
    """
    for mode, factory in _candidates(settings):
        try:
            store = factory()
        except Exception:
            logger.exception("Failed to initialize %s store, trying next backend", mode)
            continue
        logger.info("Using %s store for scores", mode)
        return store

    logger.warning(
        "No durable store available; using local file %s (lost on ephemeral hosts)",
        settings.scores_data_file,
    )
    return FileScoreStore(settings.scores_data_file)
