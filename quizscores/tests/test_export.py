import csv
import io
import unittest

from quizscores.export import scores_to_csv
from quizscores.records import SCORE_FIELDS, ScoreRecord


class ScoresToCsvTests(unittest.TestCase):
    def test_header_and_column_order(self):
        body = scores_to_csv([])
        self.assertEqual(
            body,
            "id,name,email,score,answeredQuestions,totalQuestions,timeTaken,reason,receivedAt,date\n",
        )

    def test_quotes_are_doubled_and_fields_wrapped(self):
        reason = 'said "hi", then left'
        record = ScoreRecord(id=1, name="Alice", score=18, reason=reason)

        body = scores_to_csv([record])

        line = body.splitlines()[1]
        self.assertIn('"said ""hi"", then left"', line)
        self.assertTrue(line.startswith('"1","Alice","","18"'))

        rows = list(csv.DictReader(io.StringIO(body)))
        self.assertEqual(rows[0]["reason"], reason)
        self.assertEqual(list(rows[0].keys()), list(SCORE_FIELDS))

    def test_missing_values_export_empty_and_zero_survives(self):
        record = ScoreRecord(id=2, name="Bob", score=0)
        rows = list(csv.DictReader(io.StringIO(scores_to_csv([record]))))
        self.assertEqual(rows[0]["score"], "0")
        self.assertEqual(rows[0]["email"], "")


if __name__ == "__main__":
    unittest.main()
