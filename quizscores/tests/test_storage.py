import json
import os
import tempfile
import threading
import unittest
from unittest.mock import patch

from botocore.exceptions import ClientError, EndpointConnectionError

from quizscores.errors import DuplicateScoreError, StoreUnavailableError
from quizscores.records import ScoreRecord
from quizscores.storage import FileScoreStore, S3ScoreStore


def make_record(record_id, name="Alice", received_at="2025-01-01T10:00:00.000Z", **kwargs):
    return ScoreRecord(id=record_id, name=name, received_at=received_at, **kwargs)


class FileScoreStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "scores.json")
        self.store = FileScoreStore(self.path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_lists_empty(self):
        self.assertEqual(self.store.list_all(), [])
        self.assertFalse(self.store.has_name("Alice"))

    def test_append_preserves_every_field(self):
        record = ScoreRecord(
            id=1700000000000,
            name="Alice",
            email="alice@example.com",
            score=0,
            answered_questions=20,
            total_questions=20,
            time_taken="12:34",
            reason="tab switch",
            received_at="2025-01-01T10:00:00.000Z",
            date="2025-01-01T09:48:00.000Z",
        )
        self.store.append(record)

        self.assertEqual(self.store.list_all(), [record])
        with open(self.path, encoding="utf-8") as f:
            stored = json.load(f)
        self.assertEqual(stored[0]["answeredQuestions"], 20)
        self.assertEqual(stored[0]["score"], 0)

    def test_list_is_ordered_by_received_at(self):
        self.store.append(make_record(1, "Bob", "2025-01-01T12:00:00.000Z"))
        self.store.append(make_record(2, "Alice", "2025-01-01T09:00:00.000Z"))
        self.store.append(make_record(3, "Carol", "2025-01-01T10:30:00.000Z"))

        names = [record.name for record in self.store.list_all()]
        self.assertEqual(names, ["Alice", "Carol", "Bob"])

    def test_list_orders_mixed_offsets_by_instant(self):
        # 10:00+05:00 is 05:00Z, earlier than 06:00Z although it sorts later as text.
        self.store.append(make_record(1, "Later", "2025-01-01T06:00:00.000Z"))
        self.store.append(make_record(2, "Earlier", "2025-01-01T10:00:00+05:00"))
        self.store.append(make_record(3, "Unknown", "not a timestamp"))

        names = [record.name for record in self.store.list_all()]
        self.assertEqual(names, ["Unknown", "Earlier", "Later"])

    def test_duplicate_id_is_rejected(self):
        self.store.append(make_record(7))
        with self.assertRaises(DuplicateScoreError):
            self.store.append(make_record(7, "Mallory"))
        self.assertEqual(len(self.store.list_all()), 1)
        self.assertFalse(self.store.has_name("Mallory"))

    def test_corrupt_file_reads_as_empty(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("[{not json")
        with self.assertLogs("quizscores.storage", level="ERROR"):
            self.assertEqual(self.store.list_all(), [])

    def test_invalid_utf8_reads_as_empty(self):
        with open(self.path, "wb") as f:
            f.write(b'[{"name": "\xff\xfe"}]')
        with self.assertLogs("quizscores.storage", level="ERROR"):
            self.assertEqual(self.store.list_all(), [])
        self.assertFalse(self.store.has_name("Alice"))

    def test_non_array_reads_as_empty(self):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"scores": []}, f)
        with self.assertLogs("quizscores.storage", level="ERROR"):
            self.assertEqual(self.store.list_all(), [])

    def test_clear_all_writes_empty_array(self):
        self.store.append(make_record(1))
        self.store.clear_all()
        self.assertEqual(self.store.list_all(), [])
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), [])

    def test_has_name_matches_exactly(self):
        self.store.append(make_record(1, "Alice"))
        self.assertTrue(self.store.has_name("Alice"))
        self.assertFalse(self.store.has_name("alice"))

    def test_failed_write_keeps_previous_contents(self):
        self.store.append(make_record(1))
        with patch("quizscores.storage.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(StoreUnavailableError):
                self.store.append(make_record(2, "Bob"))
        self.assertEqual([r.id for r in self.store.list_all()], [1])
        self.assertEqual(os.listdir(self.tmpdir.name), ["scores.json"])

    def test_concurrent_appends_can_lose_a_write(self):
        # Both writers read the empty array before either writes back.
        barrier = threading.Barrier(2, timeout=5)
        original_load = FileScoreStore._load

        def racing_load(store):
            items = original_load(store)
            barrier.wait()
            return items

        errors = []

        def submit(record):
            try:
                self.store.append(record)
            except Exception as exc:
                errors.append(exc)

        with patch.object(FileScoreStore, "_load", racing_load):
            threads = [
                threading.Thread(target=submit, args=(make_record(1, "Alice"),)),
                threading.Thread(target=submit, args=(make_record(2, "Bob"),)),
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(errors, [])
        persisted = self.store.list_all()
        self.assertGreaterEqual(len(persisted), 1)
        self.assertLessEqual(len(persisted), 2)
        # With the interleaving forced above the last writer wins.
        self.assertEqual(len(persisted), 1)


class FakeBody:
    def __init__(self, data: bytes):
        self._data = data

    def read(self) -> bytes:
        return self._data


class FakeS3Client:
    def __init__(self):
        self.objects = {}
        self.fail_with = None

    def get_object(self, Bucket, Key):
        if self.fail_with:
            raise self.fail_with
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject"
            )
        return {"Body": FakeBody(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_with:
            raise self.fail_with
        self.objects[(Bucket, Key)] = Body


class S3ScoreStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = FakeS3Client()
        self.store = S3ScoreStore(
            bucket="quiz", region="us-east-1", key="scores.json", client=self.client
        )

    def test_missing_object_reads_as_empty(self):
        self.assertEqual(self.store.list_all(), [])

    def test_append_rewrites_whole_array(self):
        self.store.append(make_record(1, "Alice"))
        self.store.append(make_record(2, "Bob", "2025-01-01T11:00:00.000Z"))

        body = json.loads(self.client.objects[("quiz", "scores.json")])
        self.assertEqual([item["name"] for item in body], ["Alice", "Bob"])
        self.assertTrue(self.store.has_name("Bob"))

    def test_clear_all_stores_empty_array(self):
        self.store.append(make_record(1))
        self.store.clear_all()
        self.assertEqual(json.loads(self.client.objects[("quiz", "scores.json")]), [])

    def test_invalid_utf8_object_reads_as_empty(self):
        self.client.objects[("quiz", "scores.json")] = b'[{"name": "\xff\xfe"}]'
        with self.assertLogs("quizscores.storage", level="ERROR"):
            self.assertEqual(self.store.list_all(), [])

        self.store.append(make_record(1, "Alice"))
        self.assertEqual([r.name for r in self.store.list_all()], ["Alice"])

    def test_access_denied_is_unavailable(self):
        self.client.fail_with = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject"
        )
        with self.assertRaises(StoreUnavailableError):
            self.store.list_all()

    def test_connection_failure_on_write_is_unavailable(self):
        self.client.fail_with = EndpointConnectionError(endpoint_url="https://s3.test")
        with self.assertRaises(StoreUnavailableError):
            self.store.append(make_record(1))

    @patch("quizscores.storage.boto3.client")
    def test_builds_boto3_client_when_none_given(self, mock_client):
        store = S3ScoreStore(
            bucket="quiz",
            region="eu-west-1",
            endpoint="https://cos.example.test",
            access_key_id="AKIA",
            secret_access_key="secret",
        )
        self.assertIs(store.client, mock_client.return_value)
        kwargs = mock_client.call_args.kwargs
        self.assertEqual(kwargs["region_name"], "eu-west-1")
        self.assertEqual(kwargs["endpoint_url"], "https://cos.example.test")
        self.assertEqual(store.mode, "s3")


if __name__ == "__main__":
    unittest.main()
