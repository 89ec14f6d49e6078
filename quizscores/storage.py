"""
JSON-array stores: S3-compatible object storage and the local file.

Both keep the whole record set as one serialized array and append by
read-modify-write. Two concurrent appends can each read the same array and
the later write drops the other record; relational and document stores do
not share this limitation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from quizscores.errors import DuplicateScoreError, StoreUnavailableError
from quizscores.records import ScoreRecord, sort_by_received

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


class JsonArrayScoreStore:
    """Shared read-modify-write logic; subclasses move the raw body."""

    mode = "json"

    @property
    def location(self) -> str:
        raise NotImplementedError

    def _read_bytes(self) -> Optional[bytes]:
        """Return the stored body, or None when nothing has been written yet."""
        raise NotImplementedError

    def _write_text(self, body: str) -> None:
        raise NotImplementedError

    def _load(self) -> list[dict]:
        raw = self._read_bytes()
        if raw is None:
            return []
        try:
            body = raw.decode("utf-8")
            data = json.loads(body) if body.strip() else []
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error(
                "Malformed score data at %s, treating as empty: %s", self.location, exc
            )
            return []
        if not isinstance(data, list):
            logger.error(
                "Score data at %s is not an array, treating as empty", self.location
            )
            return []
        return [item for item in data if isinstance(item, dict)]

    def _save(self, items: list[dict]) -> None:
        self._write_text(json.dumps(items, indent=2, default=str))

    def list_all(self) -> list[ScoreRecord]:
        return sort_by_received(ScoreRecord.from_dict(item) for item in self._load())

    def append(self, record: ScoreRecord) -> None:
        items = self._load()
        if any(str(item.get("id")) == str(record.id) for item in items):
            raise DuplicateScoreError(record.id)
        items.append(record.as_dict())
        self._save(items)

    def clear_all(self) -> None:
        self._save([])

    def has_name(self, name: str) -> bool:
        return any(item.get("name") == name for item in self._load())


class FileScoreStore(JsonArrayScoreStore):
    """Local JSON file. Needs no configuration and backs every other store's reads."""

    mode = "file"

    def __init__(self, path: str):
        self.path = path

    @property
    def location(self) -> str:
        return self.path

    def is_writable(self) -> bool:
        directory = os.path.dirname(os.path.abspath(self.path))
        return os.access(directory, os.W_OK)

    def _read_bytes(self) -> Optional[bytes]:
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreUnavailableError(f"Failed to read {self.path}: {exc}") from exc

    def _write_text(self, body: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            # Replace atomically so readers never see a half-written array.
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=directory, suffix=".tmp", delete=False
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(body)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StoreUnavailableError(f"Failed to write {self.path}: {exc}") from exc


@dataclass
class S3ScoreStore(JsonArrayScoreStore):
    """
    Record array kept as a single object in an S3-compatible bucket.
    """

    bucket: str
    region: str
    key: str = "scores.json"
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    client: Any = None

    mode = "s3"

    def __post_init__(self):
        if self.client is None:
            config = Config(signature_version="s3v4")
            self.client = boto3.client(
                "s3",
                endpoint_url=self.endpoint or None,
                region_name=self.region,
                aws_access_key_id=self.access_key_id or None,
                aws_secret_access_key=self.secret_access_key or None,
                config=config,
            )

    @property
    def location(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def _read_bytes(self) -> Optional[bytes]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
            return response["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in MISSING_OBJECT_CODES:
                return None
            raise StoreUnavailableError(f"Failed to read {self.location}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreUnavailableError(f"Failed to read {self.location}: {exc}") from exc

    def _write_text(self, body: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=body.encode("utf-8"),
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailableError(f"Failed to write {self.location}: {exc}") from exc
