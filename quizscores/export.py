"""
CSV export of stored scores.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable

from quizscores.records import SCORE_FIELDS, ScoreRecord


def scores_to_csv(records: Iterable[ScoreRecord]) -> str:
    """
    Plain header line, then one row per record with every value quoted and
    embedded quotes doubled. Missing values export as empty strings.
    """
    buffer = io.StringIO()
    buffer.write(",".join(SCORE_FIELDS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for record in records:
        row = record.as_dict()
        writer.writerow(["" if row[field] is None else row[field] for field in SCORE_FIELDS])
    return buffer.getvalue()
