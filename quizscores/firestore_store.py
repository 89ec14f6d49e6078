"""
Firestore-backed store: one document per score, keyed by the string id.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud.firestore_v1.base_query import FieldFilter

from quizscores.config import parse_service_account
from quizscores.errors import DuplicateScoreError, StoreUnavailableError
from quizscores.records import ScoreRecord, sort_by_received

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "quizscores"
# Firestore rejects write batches larger than this.
BATCH_LIMIT = 500

_BACKEND_ERRORS = (google_exceptions.GoogleAPIError, GoogleAuthError)


def _describe(exc: Exception) -> str:
    if isinstance(exc, google_exceptions.NotFound):
        return f"Firestore NOT_FOUND (database or collection missing): {exc}"
    if isinstance(exc, google_exceptions.PermissionDenied):
        return f"Firestore PERMISSION_DENIED (check service account roles): {exc}"
    if isinstance(exc, (google_exceptions.Unauthenticated, GoogleAuthError)):
        return f"Firestore UNAUTHENTICATED (check credentials): {exc}"
    return f"Firestore request failed: {exc}"


class FirestoreScoreStore:
    mode = "firestore"

    def __init__(
        self,
        client: Any,
        collection: str = "scores",
        project_id: Optional[str] = None,
    ):
        self.client = client
        self.collection_name = collection
        self.project_id = project_id

    @classmethod
    def from_service_account(
        cls, raw: str, collection: str = "scores"
    ) -> "FirestoreScoreStore":
        info = parse_service_account(raw)
        try:
            app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            app = firebase_admin.initialize_app(
                credentials.Certificate(info), name=FIREBASE_APP_NAME
            )
        project_id = info.get("project_id")
        if not project_id:
            logger.warning(
                "Service account JSON does not contain project_id; Firestore writes may fail"
            )
        return cls(firestore.client(app), collection, project_id=project_id)

    def _collection(self):
        return self.client.collection(self.collection_name)

    def list_all(self) -> list[ScoreRecord]:
        try:
            # order_by would drop documents lacking receivedAt; sort client-side.
            docs = self._collection().stream()
            return sort_by_received(ScoreRecord.from_dict(doc.to_dict() or {}) for doc in docs)
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailableError(_describe(exc)) from exc

    def append(self, record: ScoreRecord) -> None:
        doc_ref = self._collection().document(str(record.id))
        try:
            # create() fails instead of overwriting an existing document.
            doc_ref.create(record.as_dict())
        except google_exceptions.Conflict as exc:
            raise DuplicateScoreError(record.id) from exc
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailableError(_describe(exc)) from exc

    def clear_all(self) -> None:
        try:
            batch = self.client.batch()
            pending = 0
            for doc in self._collection().stream():
                batch.delete(doc.reference)
                pending += 1
                if pending == BATCH_LIMIT:
                    batch.commit()
                    batch = self.client.batch()
                    pending = 0
            if pending:
                batch.commit()
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailableError(_describe(exc)) from exc

    def has_name(self, name: str) -> bool:
        try:
            query = self._collection().where(filter=FieldFilter("name", "==", name))
            return len(query.limit(1).get()) > 0
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailableError(_describe(exc)) from exc
