"""
Copy scores from a local JSON file into the configured durable store.

Records whose id already exists in the target are skipped, so the migration
can be re-run safely.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from typing import Iterator

from quizscores.config import get_settings
from quizscores.db import ScoreStore
from quizscores.errors import DuplicateScoreError, StoreUnavailableError
from quizscores.records import ScoreRecord, now_millis
from quizscores.selector import select_store
from quizscores.storage import FileScoreStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    inserted: int = 0
    skipped: int = 0
    failed: int = 0


def load_score_file(path: str) -> list[dict]:
    """
    Read the JSON array at path. Raises FileNotFoundError when absent and
    ValueError when the contents are not a JSON array.
    """
    with open(path, "r", encoding="utf-8") as f:
        body = f.read()
    data = json.loads(body or "[]")
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data


def _generated_ids() -> Iterator[int]:
    last = 0
    while True:
        last = max(now_millis(), last + 1)
        yield last


def _coerce_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


def migrate_records(items: list[dict], store: ScoreStore) -> MigrationResult:
    result = MigrationResult()
    ids = _generated_ids()
    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            logger.warning("Skipping entry without a name: %r", item)
            result.skipped += 1
            continue
        record = ScoreRecord.from_dict(item)
        record.id = next(ids) if record.id is None else _coerce_id(record.id)
        try:
            store.append(record)
        except DuplicateScoreError:
            logger.info("Score %s already present, skipping", record.id)
            result.skipped += 1
        except StoreUnavailableError as exc:
            logger.error("Failed inserting score %s: %s", record.id, exc)
            result.failed += 1
        else:
            logger.info("Inserted score %s", record.id)
            result.inserted += 1
    return result


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Migrate a local scores.json into the configured durable store."
    )
    parser.add_argument(
        "--file",
        type=str,
        default=settings.scores_data_file,
        help="Path of the JSON array to migrate",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    try:
        items = load_score_file(args.file)
    except FileNotFoundError:
        logger.info("No %s found, nothing to migrate", args.file)
        return 0
    except ValueError as exc:
        logger.error("Cannot migrate %s: %s", args.file, exc)
        return 2
    if not items:
        logger.info("No data to migrate")
        return 0

    store = select_store(settings)
    if isinstance(store, FileScoreStore):
        logger.error(
            "Set DATABASE_URL, FIREBASE_SERVICE_ACCOUNT or S3_BUCKET before running the migration"
        )
        return 1

    logger.info("Migrating %d records to %s store", len(items), store.mode)
    result = migrate_records(items, store)
    logger.info(
        "Migration complete: %d inserted, %d skipped, %d failed",
        result.inserted,
        result.skipped,
        result.failed,
    )
    return 1 if result.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
