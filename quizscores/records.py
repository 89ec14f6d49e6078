"""
Score record type and its wire representation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

# Wire names in export order.
SCORE_FIELDS = (
    "id",
    "name",
    "email",
    "score",
    "answeredQuestions",
    "totalQuestions",
    "timeTaken",
    "reason",
    "receivedAt",
    "date",
)


def now_millis() -> int:
    return int(time.time() * 1000)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ScoreRecord:
    id: Any
    name: str
    email: Optional[str] = None
    score: Optional[int] = None
    answered_questions: Optional[int] = None
    total_questions: Optional[int] = None
    time_taken: Optional[str] = None
    reason: Optional[str] = None
    received_at: Optional[str] = None
    date: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "score": self.score,
            "answeredQuestions": self.answered_questions,
            "totalQuestions": self.total_questions,
            "timeTaken": self.time_taken,
            "reason": self.reason,
            "receivedAt": self.received_at,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScoreRecord":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            email=data.get("email"),
            score=data.get("score"),
            answered_questions=data.get("answeredQuestions"),
            total_questions=data.get("totalQuestions"),
            time_taken=data.get("timeTaken"),
            reason=data.get("reason"),
            received_at=data.get("receivedAt"),
            date=data.get("date"),
        )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp to an aware datetime; naive values are UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _received_key(record: ScoreRecord) -> tuple:
    parsed = parse_timestamp(record.received_at)
    if parsed is None:
        return (0, _EPOCH)
    return (1, parsed)


def sort_by_received(records: Iterable[ScoreRecord]) -> list[ScoreRecord]:
    """
    Ascending by the instant in receivedAt, so mixed offsets and precisions
    order correctly. Missing or unparseable values sort first; ties keep order.
    """
    return sorted(records, key=_received_key)
