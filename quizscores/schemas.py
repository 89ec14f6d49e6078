"""
Pydantic schemas for the quiz score API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScoreSubmission(BaseModel):
    """Incoming result. Only name is required; the handler enforces it."""

    # Numbers sent for text fields (date, timeTaken) are kept as their string form.
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    score: Optional[int] = None
    answered_questions: Optional[int] = Field(default=None, alias="answeredQuestions")
    total_questions: Optional[int] = Field(default=None, alias="totalQuestions")
    time_taken: Optional[str] = Field(default=None, alias="timeTaken")
    reason: Optional[str] = None
    received_at: Optional[str] = Field(default=None, alias="receivedAt")
    date: Optional[str] = None


class SuccessResponse(BaseModel):
    success: Literal[True] = True


class QuizStatusResponse(BaseModel):
    completed: bool


class StorageInfoResponse(BaseModel):
    mode: str
    writable: Optional[bool] = None
    details: dict = Field(default_factory=dict)


class DiagnoseResponse(BaseModel):
    timestamp: str
    environment: dict
    storage: dict
    warnings: list[str]
    recommendations: list[str]


class HealthResponse(BaseModel):
    status: Literal["ok"]
    timestamp: str
    port: int
    mode: str
