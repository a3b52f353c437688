"""
End-to-end tests for the client facade and command line entry point.
"""
import json
import logging
import unittest
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock, patch

from .client import ForwarderClient, create_client
from .core.exceptions import UninitializedHandleError, ConnectionError
from .main import main
from .schema.models import Record, Measurement


def ok_response():
    response = MagicMock()
    response.ok = True
    return response


@patch('forwarder.store.connection.requests.get', return_value=ok_response())
class TestForwarderClient(unittest.TestCase):
    """Test cases for the client facade."""

    def setUp(self):
        self.store = MagicMock(name='InfluxDBClient3')
        self.factory = MagicMock(return_value=self.store)
        self.client = create_client('http://influxdb:8181', 'secret', 'acme', 'telemetry',
                                    client_factory=self.factory)

    def test_lifecycle(self, mock_get):
        self.assertFalse(self.client.is_connected())
        self.client.connect()
        self.client.connect()
        self.assertTrue(self.client.is_connected())
        self.factory.assert_called_once()

        self.client.disconnect()
        self.assertFalse(self.client.is_connected())

    def test_query_before_connect(self, mock_get):
        with self.assertRaises(UninitializedHandleError):
            self.client.query('SELECT * FROM "Original"')

    def test_write_before_connect(self, mock_get):
        with self.assertRaises(UninitializedHandleError):
            self.client.write(Record(stage='Pre'))

    def test_write_and_query(self, mock_get):
        timestamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
        with self.client:
            points = self.client.write(Record(stage='', gateway='gw1',
                                              fields={'temp': 21.5}, timestamp=timestamp))
            self.assertEqual(self.client.query('SELECT * FROM "Original"'), [])

        self.assertEqual([p.measurement for p in points], [Measurement.ORIGINAL, Measurement.PROCESSED])
        self.assertEqual(self.store.write.call_count, 2)
        self.store.flush.assert_called_once()
        self.store.close.assert_called_once()
        self.assertFalse(self.client.is_connected())

    def test_write_after_disconnect(self, mock_get):
        self.client.connect()
        self.client.disconnect()
        with self.assertRaises(UninitializedHandleError):
            self.client.write(Record(stage='Post'))


class TestMain(unittest.TestCase):
    """Test cases for the command line entry point."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.records_file = Path(self.temp_dir.name) / 'records.jsonl'
        self.records_file.write_text(
            json.dumps({"state": "Pre", "gateway": "gw1", "data": {"v": 1}}) + "\n" +
            json.dumps({"state": "", "gateway": "gw1", "data": {"v": 2}}) + "\n",
            encoding='utf-8'
        )
        self.base_args = ['--influxdbUrl', 'http://db:8181', '--influxdbToken', 't',
                          '--influxdbOrg', 'o', '--influxdbBucket', 'b']

    def tearDown(self):
        self.temp_dir.cleanup()

    @patch('forwarder.main.LoggingConfigurator.setup_logging')
    @patch('forwarder.main.ForwarderClient')
    def test_forward_file(self, client_cls, _setup_logging):
        client = client_cls.return_value
        client.is_connected.return_value = True
        client.write_many.return_value = [object()] * 3

        exit_code = main(self.base_args + ['--fromJson', str(self.records_file)])

        self.assertEqual(exit_code, 0)
        client.connect.assert_called_once()
        records = client.write_many.call_args.args[0]
        self.assertEqual(len(records), 2)
        client.disconnect.assert_called_once()

    @patch('forwarder.main.LoggingConfigurator.setup_logging')
    @patch('forwarder.main.ForwarderClient')
    def test_connect_failure_exit_code(self, client_cls, _setup_logging):
        client = client_cls.return_value
        client.connect.side_effect = ConnectionError('failed to ping InfluxDB server')
        client.is_connected.return_value = False

        exit_code = main(self.base_args + ['--query', 'SHOW TABLES'])

        self.assertEqual(exit_code, 1)
        client.query.assert_not_called()
        client.disconnect.assert_not_called()

    @patch('forwarder.main.LoggingConfigurator.setup_logging')
    @patch('forwarder.main.ForwarderClient')
    def test_unreadable_input_exit_code(self, client_cls, _setup_logging):
        missing = Path(self.temp_dir.name) / 'absent.jsonl'

        with self.assertLogs(level='ERROR') as logs:
            exit_code = main(self.base_args + ['--fromJson', str(missing)])

        self.assertEqual(exit_code, 1)
        self.assertTrue(any('absent.jsonl' in line for line in logs.output))
        client_cls.return_value.connect.assert_not_called()
        client_cls.return_value.write_many.assert_not_called()

    @patch('forwarder.main.LoggingConfigurator.setup_logging')
    @patch('forwarder.main.Settings')
    def test_missing_configuration(self, settings_cls, _setup_logging):
        settings_cls.return_value.to_influxdb_config.side_effect = ValueError('org required')
        self.assertEqual(main(['--query', 'SHOW TABLES']), 1)


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
