"""
Tests for the connection manager and store handles.
"""
import logging
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import requests

from .connection import ConnectionManager, ConnectionState
from .handles import WriteHandle, QueryHandle, BatchingCallback, build_client_kwargs
from ..core.config import InfluxDBConfig, WriteTuning
from ..core.exceptions import ConnectionError
from ..schema.models import Point, Measurement


def make_config(**overrides):
    values = dict(url='http://influxdb:8181', token='secret', org='acme', bucket='telemetry')
    values.update(overrides)
    return InfluxDBConfig(**values)


def ok_response():
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    return response


@patch('forwarder.store.connection.requests.get')
class TestConnectionManager(unittest.TestCase):
    """Test cases for ConnectionManager lifecycle."""

    def setUp(self):
        self.client = MagicMock(name='InfluxDBClient3')
        self.factory = MagicMock(return_value=self.client)
        self.manager = ConnectionManager(make_config(), client_factory=self.factory)

    def test_initial_state(self, mock_get):
        self.assertFalse(self.manager.is_connected())
        self.assertIs(self.manager.state, ConnectionState.DISCONNECTED)
        self.assertIsNone(self.manager.write_handle)
        self.assertIsNone(self.manager.query_handle)
        mock_get.assert_not_called()

    def test_connect_success(self, mock_get):
        mock_get.return_value = ok_response()

        with self.assertLogs('forwarder.store.connection', level='DEBUG') as logs:
            self.manager.connect()

        self.assertTrue(self.manager.is_connected())
        self.assertIsInstance(self.manager.write_handle, WriteHandle)
        self.assertIsInstance(self.manager.query_handle, QueryHandle)

        kwargs = self.factory.call_args.kwargs
        self.assertEqual(kwargs['host'], 'http://influxdb:8181')
        self.assertEqual(kwargs['token'], 'secret')
        self.assertEqual(kwargs['org'], 'acme')
        self.assertEqual(kwargs['database'], 'telemetry')

        mock_get.assert_called_once()
        self.assertEqual(mock_get.call_args.args[0], 'http://influxdb:8181/ping')
        self.assertEqual(mock_get.call_args.kwargs['headers'], {'Authorization': 'Bearer secret'})

        self.client.query.assert_called_once()
        self.assertEqual(self.client.query.call_args.kwargs['query'], 'SHOW TABLES')
        self.client.query.return_value.close.assert_called_once()

        levels = [record.levelname for record in logs.records]
        self.assertEqual(levels, ['INFO', 'DEBUG', 'INFO'])
        self.assertIn('Connected to InfluxDB', logs.output[-1])

    def test_connect_twice_is_noop(self, mock_get):
        mock_get.return_value = ok_response()
        self.manager.connect()

        with self.assertLogs('forwarder.store.connection', level='WARNING') as logs:
            self.manager.connect()

        self.factory.assert_called_once()
        self.assertTrue(self.manager.is_connected())
        self.assertEqual(len(logs.records), 1)
        self.assertIn('already connected', logs.output[0])

    def test_ping_rejected_rolls_back(self, mock_get):
        response = ok_response()
        response.ok = False
        response.status_code = 503
        mock_get.return_value = response

        with self.assertRaises(ConnectionError) as ctx:
            self.manager.connect()

        self.assertIn('ping', str(ctx.exception))
        self.assertIsNotNone(ctx.exception.__cause__)
        self.assertFalse(self.manager.is_connected())
        self.assertIsNone(self.manager.write_handle)
        self.assertIsNone(self.manager.query_handle)
        self.client.close.assert_called_once()
        self.client.query.assert_not_called()

    def test_ping_unreachable_rolls_back(self, mock_get):
        cause = requests.ConnectionError('connection refused')
        mock_get.side_effect = cause

        with self.assertRaises(ConnectionError) as ctx:
            self.manager.connect()

        self.assertIs(ctx.exception.__cause__, cause)
        self.assertIs(self.manager.state, ConnectionState.DISCONNECTED)

    def test_validation_query_failure_rolls_back(self, mock_get):
        mock_get.return_value = ok_response()
        cause = RuntimeError('bucket not found')
        self.client.query.side_effect = cause

        with self.assertRaises(ConnectionError) as ctx:
            self.manager.connect()

        self.assertIn('query', str(ctx.exception))
        self.assertIs(ctx.exception.__cause__, cause)
        self.assertFalse(self.manager.is_connected())
        self.assertIsNone(self.manager.write_handle)

    def test_handles_hidden_until_verified(self, mock_get):
        mock_get.return_value = ok_response()
        seen = []

        def failing_query(**kwargs):
            seen.append((self.manager.write_handle, self.manager.query_handle,
                         self.manager.is_connected()))
            raise RuntimeError('bucket not found')

        self.client.query.side_effect = failing_query

        with self.assertRaises(ConnectionError):
            self.manager.connect()

        self.assertEqual(seen, [(None, None, False)])
        self.assertIsNone(self.manager.write_handle)
        self.client.close.assert_called_once()

    def test_handles_hidden_during_ping(self, mock_get):
        seen = []

        def ping(*args, **kwargs):
            seen.append((self.manager.write_handle, self.manager.state))
            return ok_response()

        mock_get.side_effect = ping
        self.manager.connect()

        self.assertEqual(seen, [(None, ConnectionState.CONNECTING)])
        self.assertIsNotNone(self.manager.write_handle)

    def test_client_creation_failure(self, mock_get):
        self.factory.side_effect = ValueError('bad url')

        with self.assertRaises(ConnectionError):
            self.manager.connect()

        self.assertFalse(self.manager.is_connected())
        mock_get.assert_not_called()

    def test_retry_after_failure(self, mock_get):
        mock_get.side_effect = [requests.Timeout('timed out'), ok_response()]

        with self.assertRaises(ConnectionError):
            self.manager.connect()
        self.manager.connect()

        self.assertTrue(self.manager.is_connected())
        self.assertEqual(self.factory.call_count, 2)

    def test_disconnect(self, mock_get):
        mock_get.return_value = ok_response()
        self.manager.connect()

        with self.assertLogs('forwarder.store.connection', level='INFO') as logs:
            self.manager.disconnect()

        self.client.close.assert_called_once()
        self.assertFalse(self.manager.is_connected())
        self.assertIsNone(self.manager.write_handle)
        self.assertIsNone(self.manager.query_handle)
        self.assertIn('Disconnected from InfluxDB', logs.output[-1])

    def test_disconnect_when_not_connected(self, mock_get):
        with self.assertLogs('forwarder.store.connection', level='WARNING') as logs:
            self.manager.disconnect()

        self.assertEqual(logs.records[0].levelname, 'WARNING')
        self.factory.assert_not_called()

    def test_disconnect_close_error_still_clears(self, mock_get):
        mock_get.return_value = ok_response()
        self.manager.connect()
        self.client.close.side_effect = RuntimeError('boom')

        with self.assertLogs('forwarder.store.connection', level='WARNING'):
            self.manager.disconnect()

        self.assertFalse(self.manager.is_connected())
        self.assertIsNone(self.manager.write_handle)

    def test_context_manager(self, mock_get):
        mock_get.return_value = ok_response()

        with self.manager as manager:
            self.assertTrue(manager.is_connected())

        self.assertFalse(self.manager.is_connected())
        self.client.close.assert_called_once()


class TestHandles(unittest.TestCase):
    """Test cases for WriteHandle, QueryHandle and client construction."""

    def test_build_client_kwargs(self):
        config = make_config(tls_ca='/etc/ssl/ca.pem',
                             tuning=WriteTuning(batch_size=10, flush_interval=1_000))
        kwargs = build_client_kwargs(config, BatchingCallback())

        self.assertEqual(kwargs['database'], 'telemetry')
        self.assertEqual(kwargs['org'], 'acme')
        self.assertEqual(kwargs['ssl_ca_cert'], '/etc/ssl/ca.pem')
        self.assertEqual(kwargs['write_timeout'], 10_000)
        self.assertEqual(kwargs['query_timeout'], 10_000)
        self.assertNotIn('timeout', kwargs)
        write_options = kwargs['write_client_options']['write_options']
        self.assertEqual(write_options.batch_size, 10)
        self.assertEqual(write_options.flush_interval, 1_000)

    def test_custom_timeout_reaches_client(self):
        kwargs = build_client_kwargs(make_config(timeout_ms=1234), BatchingCallback())
        self.assertEqual((kwargs['write_timeout'], kwargs['query_timeout']), (1234, 1234))

    def test_write_handle_submit_and_flush(self):
        client = MagicMock()
        handle = WriteHandle(client, 'telemetry')
        point = Point(Measurement.ORIGINAL, {'gateway': 'gw1'}, {'v': 1},
                      datetime(2024, 1, 1, tzinfo=timezone.utc))

        handle.submit(point)
        handle.flush()

        self.assertEqual(client.write.call_args.kwargs['database'], 'telemetry')
        self.assertIn('Original,gateway=gw1', client.write.call_args.kwargs['record'].to_line_protocol())
        client.flush.assert_called_once()

    def test_query_handle_uses_reader_mode(self):
        client = MagicMock()
        QueryHandle(client, 'telemetry', 'influxql').execute('SHOW MEASUREMENTS')
        client.query.assert_called_once_with(query='SHOW MEASUREMENTS', language='influxql',
                                             mode='reader', database='telemetry')

    def test_batching_callback_stats(self):
        callback = BatchingCallback()
        callback.success(None, 'abc')
        with self.assertLogs('forwarder.store.handles', level='WARNING'):
            callback.retry(None, 'abc', Exception('slow'))
            callback.error(None, 'abc', Exception('dead'))
        stats = callback.get_stats()
        self.assertEqual((stats['writes'], stats['retries'], stats['errors']), (1, 1, 1))
        self.assertIn('dead', stats['status'])


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
