"""
Dependency wiring for the FastAPI app.

Services are built once in create_app() and kept on the application state;
these accessors hand them to routes and the WebSocket endpoint alike.
"""

from __future__ import annotations

from fastapi.requests import HTTPConnection

from quizscores.completion import CompletionIndex
from quizscores.config import Settings
from quizscores.notify import ScoreBroadcaster
from quizscores.repository import ScoreRepository
from quizscores.submission import SubmissionHandler


def get_app_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_repository(conn: HTTPConnection) -> ScoreRepository:
    return conn.app.state.repository


def get_completion_index(conn: HTTPConnection) -> CompletionIndex:
    return conn.app.state.completion


def get_broadcaster(conn: HTTPConnection) -> ScoreBroadcaster:
    return conn.app.state.broadcaster


def get_submission_handler(conn: HTTPConnection) -> SubmissionHandler:
    return conn.app.state.submissions
