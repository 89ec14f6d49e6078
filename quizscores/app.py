"""
FastAPI application entry point for the quiz score service.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizscores.completion import CompletionIndex
from quizscores.config import Settings, get_settings
from quizscores.db import ScoreStore
from quizscores.notify import ScoreBroadcaster
from quizscores.repository import ScoreRepository
from quizscores.routes import live_router, router
from quizscores.selector import select_store
from quizscores.storage import FileScoreStore
from quizscores.submission import SubmissionHandler


def create_app(
    settings: Optional[Settings] = None, store: Optional[ScoreStore] = None
) -> FastAPI:
    """
    Build the app around one store, selected from settings unless given.

    Use with `uvicorn --factory quizscores.app:create_app` or `python -m quizscores`.
    """
    settings = settings or get_settings()
    if store is None:
        store = select_store(settings)

    repository = ScoreRepository(store, fallback=FileScoreStore(settings.scores_data_file))
    completion = CompletionIndex(repository)
    broadcaster = ScoreBroadcaster()

    app = FastAPI(title="Quiz Scores", version="0.1.0")
    app.state.settings = settings
    app.state.repository = repository
    app.state.completion = completion
    app.state.broadcaster = broadcaster
    app.state.submissions = SubmissionHandler(repository, completion, broadcaster)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(live_router)
    return app
