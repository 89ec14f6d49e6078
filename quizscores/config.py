"""
Configuration and settings for the quiz score service.
"""

from __future__ import annotations

import base64
import json
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings, evaluated once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Relational store (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Firestore, service account as raw JSON or base64-encoded JSON
    firebase_service_account: Optional[str] = Field(default=None)
    firestore_collection: str = Field(default="scores")

    # S3-compatible object storage
    s3_bucket: Optional[str] = Field(default=None)
    s3_key: str = Field(default="scores.json")
    s3_endpoint: Optional[str] = Field(default=None)
    aws_region: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Local file fallback, always available
    scores_data_file: str = Field(default="scores.json")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])


def parse_service_account(raw: str) -> dict:
    """
    Decode service account credentials given as raw JSON or base64-encoded JSON.

    Raises ValueError when neither form parses to a JSON object.
    """
    try:
        info = json.loads(raw)
    except json.JSONDecodeError:
        decoded = base64.b64decode(raw).decode("utf-8")
        info = json.loads(decoded)
    if not isinstance(info, dict):
        raise ValueError("Service account credentials must be a JSON object")
    return info


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
