"""
HTTP and WebSocket routes for the quiz score service.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import Response

from quizscores.completion import CompletionIndex
from quizscores.config import Settings, parse_service_account
from quizscores.dependencies import (
    get_app_settings,
    get_broadcaster,
    get_completion_index,
    get_repository,
    get_submission_handler,
)
from quizscores.errors import DuplicateScoreError, PersistenceError, ScoreValidationError
from quizscores.export import scores_to_csv
from quizscores.notify import ScoreBroadcaster
from quizscores.repository import ScoreRepository
from quizscores.schemas import (
    DiagnoseResponse,
    HealthResponse,
    QuizStatusResponse,
    ScoreSubmission,
    StorageInfoResponse,
    SuccessResponse,
)
from quizscores.storage import FileScoreStore
from quizscores.submission import SubmissionHandler

logger = logging.getLogger(__name__)

router = APIRouter()
live_router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/scores")
def list_scores(repository: ScoreRepository = Depends(get_repository)) -> list[dict]:
    return [record.as_dict() for record in repository.list_all()]


@router.post("/scores", response_model=SuccessResponse)
async def submit_score(
    payload: ScoreSubmission,
    handler: SubmissionHandler = Depends(get_submission_handler),
):
    try:
        await handler.submit(payload.model_dump(by_alias=True))
    except ScoreValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {exc}")
    except DuplicateScoreError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return SuccessResponse()


@router.get("/quiz-status/{name}", response_model=QuizStatusResponse)
def quiz_status(name: str, completion: CompletionIndex = Depends(get_completion_index)):
    return QuizStatusResponse(completed=completion.has_completed(name))


@router.post("/clear-scores", response_model=SuccessResponse)
async def clear_scores(handler: SubmissionHandler = Depends(get_submission_handler)):
    try:
        await handler.clear_all()
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return SuccessResponse()


@router.get("/export-scores")
def export_scores(repository: ScoreRepository = Depends(get_repository)):
    csv_body = scores_to_csv(repository.list_all())
    return Response(
        content=csv_body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="scores.csv"'},
    )


@router.get("/storage-info", response_model=StorageInfoResponse)
def storage_info(
    repository: ScoreRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Report which store is active and whether the local file is writable."""
    info = StorageInfoResponse(mode=repository.mode)
    store = repository.store
    if isinstance(store, FileScoreStore):
        info.writable = store.is_writable()
        if not info.writable:
            info.details["error"] = f"{store.path} is not writable"

    if repository.mode == "firestore" and settings.firebase_service_account:
        try:
            parsed = parse_service_account(settings.firebase_service_account)
        except ValueError as exc:
            info.details["firebase"] = {"error": str(exc)}
        else:
            project_id = parsed.get("project_id")
            info.details["firebase"] = {"project_id": project_id}
            if not project_id:
                info.details["firebase_note"] = (
                    "Service account JSON does not contain project_id; Firestore writes may fail."
                )
    return info


@router.get("/diagnose", response_model=DiagnoseResponse)
def diagnose(
    repository: ScoreRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
):
    mode = repository.mode
    persistent = mode != "file"
    warnings: list[str] = []
    recommendations: list[str] = []
    if not persistent:
        warnings.append("Using local file storage - scores will be lost on server restart")
        recommendations.append(
            "Set DATABASE_URL, FIREBASE_SERVICE_ACCOUNT or S3_BUCKET for persistent storage"
        )
    else:
        recommendations.append(f"{mode} enabled - scores will persist across restarts")

    return DiagnoseResponse(
        timestamp=_now_iso(),
        environment={
            "port": settings.port,
            "hasDatabaseUrl": bool(settings.database_url),
            "hasFirebaseServiceAccount": bool(settings.firebase_service_account),
            "hasS3Bucket": bool(settings.s3_bucket),
            "hasAwsRegion": bool(settings.aws_region),
        },
        storage={
            "mode": mode,
            "postgresEnabled": mode == "postgres",
            "firestoreEnabled": mode == "firestore",
            "s3Enabled": mode == "s3",
            "persistent": persistent,
        },
        warnings=warnings,
        recommendations=recommendations,
    )


@live_router.get("/health", response_model=HealthResponse)
def health(
    repository: ScoreRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
):
    return HealthResponse(
        status="ok", timestamp=_now_iso(), port=settings.port, mode=repository.mode
    )


@live_router.websocket("/ws")
async def live_scores(
    websocket: WebSocket,
    broadcaster: ScoreBroadcaster = Depends(get_broadcaster),
):
    """Push new-score and clear-scores envelopes until the client disconnects."""
    await websocket.accept()
    broadcaster.register(websocket)
    try:
        while True:
            # Incoming messages carry nothing; reading detects the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unregister(websocket)
