"""
Tests for the read module: JSON record input and the query path.
"""
import io
import json
import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace
from unittest.mock import MagicMock

from .json_reader import JsonReader
from .query_reader import QueryReader
from ..core.exceptions import (
    InputError, QueryNotInitializedError, QueryExecutionError, UninitializedHandleError
)
from ..schema.models import Stage


class TestJsonReader(unittest.TestCase):
    """Test cases for JsonReader class."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)

        self.record_data = [
            {"state": "Pre", "customerName": "Acme", "gateway": "gw1", "data": {"temp": 20.0}},
            {"state": "Post", "customerName": "Acme", "gateway": "gw1", "data": {"temp": 21.5}},
        ]

    def tearDown(self):
        """Clean up after tests."""
        self.temp_dir.cleanup()

    def test_read_json_array(self):
        json_file = self.temp_path / "records.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(self.record_data, f)

        records = JsonReader.read_records(json_file)
        self.assertEqual([r.stage for r in records], [Stage.PRE, Stage.POST])
        self.assertEqual(records[1].fields, {"temp": 21.5})

    def test_read_json_lines_skips_malformed(self):
        jsonl_file = self.temp_path / "records.jsonl"
        with open(jsonl_file, 'w', encoding='utf-8') as f:
            f.write(json.dumps(self.record_data[0]) + "\n")
            f.write("this is not json\n")
            f.write("\n")
            f.write(json.dumps(self.record_data[1]) + "\n")

        with self.assertLogs('forwarder.read.json_reader', level='ERROR'):
            records = JsonReader.read_records(jsonl_file)
        self.assertEqual(len(records), 2)

    def test_read_single_object_from_stream(self):
        stream = io.StringIO(json.dumps(self.record_data[0]))
        records = JsonReader.read_records(stream)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].gateway, "gw1")

    def test_nonexistent_file(self):
        """Test reading a file that doesn't exist."""
        with self.assertLogs('forwarder.read.json_reader', level='ERROR'):
            data = JsonReader.read_file(self.temp_path / "nonexistent.json")
        self.assertEqual(data, [])

    def test_read_records_missing_file_raises(self):
        with self.assertLogs('forwarder.read.json_reader', level='ERROR'):
            with self.assertRaises(InputError) as ctx:
                JsonReader.read_records(self.temp_path / "nonexistent.json")
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_bad_item_skipped(self):
        items = [{"data": "not a mapping"}, self.record_data[0]]
        with self.assertLogs('forwarder.read.json_reader', level='ERROR'):
            records = JsonReader.to_records(items)
        self.assertEqual(len(records), 1)

    def test_bad_timestamp_skipped(self):
        items = [dict(self.record_data[0], timestamp="01/05/2024 12:00"),
                 dict(self.record_data[1], timestamp=1e20),
                 dict(self.record_data[1], timestamp="2024-05-01T12:00:00.123456789Z")]
        with self.assertLogs('forwarder.read.json_reader', level='ERROR') as logs:
            records = JsonReader.to_records(items)
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].timestamp.microsecond, 123456)


class TestQueryReader(unittest.TestCase):
    """Test cases for QueryReader."""

    def setUp(self):
        self.handle = MagicMock(name='QueryHandle')
        self.connection = SimpleNamespace(query_handle=self.handle)
        self.reader = QueryReader(self.connection)

    def test_not_connected(self):
        self.connection.query_handle = None
        with self.assertRaises(QueryNotInitializedError):
            self.reader.query('SELECT * FROM "Original"')
        with self.assertRaises(UninitializedHandleError):
            self.reader.query('SELECT * FROM "Original"')

    def test_query_returns_empty_and_closes_result(self):
        records = self.reader.query('SELECT * FROM "Processed"')

        self.assertEqual(records, [])
        self.handle.execute.assert_called_once_with('SELECT * FROM "Processed"')
        self.handle.execute.return_value.close.assert_called_once()

    def test_result_closed_when_materialization_fails(self):
        result = self.handle.execute.return_value
        self.reader._materialize = MagicMock(side_effect=RuntimeError('bad row'))

        with self.assertRaises(RuntimeError):
            self.reader.query('SELECT 1')
        result.close.assert_called_once()

    def test_execution_failure_is_wrapped(self):
        cause = RuntimeError('error while planning query')
        self.handle.execute.side_effect = cause

        with self.assertRaises(QueryExecutionError) as ctx:
            self.reader.query('SELEKT')
        self.assertIs(ctx.exception.__cause__, cause)


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
