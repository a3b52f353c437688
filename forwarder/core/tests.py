"""
Tests for configuration classes and settings loading.
"""
import json
import logging
import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace
from unittest.mock import patch

from .config import InfluxDBConfig, WriteTuning
from .exceptions import ConnectionError, ForwarderError
from .logging_config import LoggingConfigurator, NOISY_LOGGERS
from ..config import Settings


class TestInfluxDBConfig(unittest.TestCase):
    """Test cases for InfluxDBConfig validation."""

    def test_required_fields(self):
        for missing in ['url', 'token', 'org', 'bucket']:
            values = dict(url='http://db:8181', token='t', org='o', bucket='b')
            values[missing] = ''
            with self.subTest(missing=missing):
                with self.assertRaises(ValueError) as ctx:
                    InfluxDBConfig(**values)
                self.assertIn(missing, str(ctx.exception))

    def test_url_normalized(self):
        config = InfluxDBConfig(url='db.example.com:8181/', token='t', org='o', bucket='b')
        self.assertEqual(config.url, 'https://db.example.com:8181')

    def test_defaults(self):
        config = InfluxDBConfig(url='http://db:8181', token='t', org='o', bucket='b')
        self.assertEqual(config.tuning, WriteTuning(3, 10_000, 5_000, 3))
        self.assertEqual(config.timeout_seconds, 10.0)
        self.assertEqual(config.to_dict()['token'], '[REDACTED]')

    def test_invalid_query_language(self):
        with self.assertRaises(ValueError):
            InfluxDBConfig(url='http://db', token='t', org='o', bucket='b', query_language='flux')

    def test_validation_query_follows_language(self):
        sql = InfluxDBConfig(url='http://db', token='t', org='o', bucket='b')
        influxql = InfluxDBConfig(url='http://db', token='t', org='o', bucket='b',
                                  query_language='influxql')
        custom = InfluxDBConfig(url='http://db', token='t', org='o', bucket='b',
                                query_language='influxql', validation_query='SHOW DATABASES')
        self.assertEqual(sql.validation_query, 'SHOW TABLES')
        self.assertEqual(influxql.validation_query, 'SHOW MEASUREMENTS')
        self.assertEqual(custom.validation_query, 'SHOW DATABASES')

    def test_invalid_tuning(self):
        with self.assertRaises(ValueError):
            WriteTuning(batch_size=0)
        with self.assertRaises(ValueError):
            WriteTuning(max_retries=-1)

    def test_from_args(self):
        args = SimpleNamespace(influxdbUrl='http://db:8181', influxdbToken='t', influxdbOrg='o',
                               influxdbBucket='b', tlsCa=None, batchSize=50,
                               flushInterval=1_000, retryInterval=2_000, maxRetries=1)
        config = InfluxDBConfig.from_args(args)
        self.assertEqual(config.bucket, 'b')
        self.assertEqual(config.tuning.batch_size, 50)

    def test_connection_error_hierarchy(self):
        self.assertTrue(issubclass(ConnectionError, ForwarderError))
        import builtins
        self.assertTrue(issubclass(ConnectionError, builtins.ConnectionError))


@patch('forwarder.core.logging_config.logging.basicConfig')
class TestLoggingConfigurator(unittest.TestCase):
    """Test cases for LoggingConfigurator.setup_logging."""

    def setUp(self):
        self.tearDown()

    def tearDown(self):
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_console_only(self, basic_config):
        LoggingConfigurator.setup_logging('warning')

        kwargs = basic_config.call_args.kwargs
        self.assertEqual(kwargs['level'], logging.WARNING)
        self.assertEqual([type(h) for h in kwargs['handlers']], [logging.StreamHandler])
        for name in NOISY_LOGGERS:
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_log_file_directory_created(self, basic_config):
        with TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / 'logs' / 'forwarder.log'
            LoggingConfigurator.setup_logging('DEBUG', str(log_file))

            handlers = basic_config.call_args.kwargs['handlers']
            self.assertTrue(log_file.parent.is_dir())
            self.assertIsInstance(handlers[-1], logging.FileHandler)
            for handler in handlers:
                handler.close()
        for name in NOISY_LOGGERS:
            self.assertEqual(logging.getLogger(name).level, logging.NOTSET)


class TestSettings(unittest.TestCase):
    """Test cases for Settings file and environment loading."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    @patch.dict(os.environ, {}, clear=True)
    def test_yaml_file(self):
        config_file = self.temp_path / 'forwarder.yaml'
        config_file.write_text(
            "influxdb_url: http://db:8181\n"
            "influxdb_token: secret\n"
            "influxdb_org: acme\n"
            "influxdb_bucket: telemetry\n",
            encoding='utf-8'
        )
        config = Settings(config_file=str(config_file)).to_influxdb_config()
        self.assertEqual((config.url, config.org, config.bucket), ('http://db:8181', 'acme', 'telemetry'))

    @patch.dict(os.environ, {'INFLUXDB_BUCKET': 'from-env'}, clear=True)
    def test_env_overrides_file(self):
        config_file = self.temp_path / 'forwarder.json'
        config_file.write_text(json.dumps({
            'influxdb_url': 'http://db:8181', 'influxdb_token': 't',
            'influxdb_org': 'o', 'influxdb_bucket': 'from-file'
        }), encoding='utf-8')
        settings = Settings(config_file=str(config_file))
        self.assertEqual(settings.influxdb_bucket, 'from-env')

    @patch.dict(os.environ, {}, clear=True)
    def test_explicit_overrides_win(self):
        settings = Settings(from_env=False)
        settings.influxdb_url = 'http://db:8181'
        config = settings.to_influxdb_config(token='t', org='o', bucket='b', tls_ca=None)
        self.assertEqual(config.token, 't')
        self.assertIsNone(config.tls_ca)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_file(self):
        with self.assertLogs('forwarder.config', level='WARNING'):
            settings = Settings(config_file=str(self.temp_path / 'absent.yaml'))
        with self.assertRaises(ValueError):
            settings.to_influxdb_config()


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
