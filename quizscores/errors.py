"""
Exception hierarchy shared by the stores, the handler and the routes.
"""

from __future__ import annotations


class ScoreServiceError(Exception):
    """Base class for every error raised by the score service."""


class ScoreValidationError(ScoreServiceError):
    """A submission is missing a required field."""


class DuplicateScoreError(ScoreServiceError):
    """A record with the same id already exists in the active store."""

    def __init__(self, record_id):
        super().__init__(f"Score {record_id} already exists")
        self.record_id = record_id


class StoreUnavailableError(ScoreServiceError):
    """The active store could not be reached or refused the request."""


class PersistenceError(ScoreServiceError):
    """A write or clear against the active store did not succeed."""
