"""
Tests for the tag-and-route InfluxDB writer.
"""
import logging
import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

from .influxdb_writer import InfluxDBWriter, format_record_line
from ..core.exceptions import UninitializedHandleError, WriteError
from ..schema.models import Record, Stage, Measurement
from ..store.handles import BatchingCallback

TIMESTAMP = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_record(stage, **overrides):
    values = dict(
        stage=stage, customer_name='Acme', site_name='Plant 7', gateway='gw1',
        controller='ctl', device_type='meter', controller_identifier='C-1',
        device_name='Main', device_identifier='D-1',
        fields={'temp': 21.5}, timestamp=TIMESTAMP,
    )
    values.update(overrides)
    return Record(**values)


class TestInfluxDBWriter(unittest.TestCase):
    """Test cases for routing, submission and logging."""

    def setUp(self):
        self.handle = MagicMock(name='WriteHandle')
        self.connection = SimpleNamespace(write_handle=self.handle, batch_callback=BatchingCallback())
        self.writer = InfluxDBWriter(self.connection)

    def submitted(self):
        return [c.args[0] for c in self.handle.submit.call_args_list]

    def test_pre_goes_to_original(self):
        points = self.writer.write(make_record('Pre'))

        self.assertEqual([p.measurement for p in points], [Measurement.ORIGINAL])
        self.assertEqual(self.submitted(), points)
        self.handle.flush.assert_called_once()

    def test_post_goes_to_processed(self):
        points = self.writer.write(make_record(Stage.POST))

        self.assertEqual([p.measurement for p in self.submitted()], [Measurement.PROCESSED])
        self.assertEqual(len(points), 1)
        self.handle.flush.assert_called_once()

    def test_unspecified_goes_to_both(self):
        for stage in ['', None, 'unknown', Stage.UNSPECIFIED]:
            with self.subTest(stage=stage):
                self.handle.reset_mock()
                self.writer.write(make_record(stage))

                first, second = self.submitted()
                self.assertEqual(first.measurement, Measurement.ORIGINAL)
                self.assertEqual(second.measurement, Measurement.PROCESSED)
                self.assertEqual(first.tags, second.tags)
                self.assertEqual(first.fields, second.fields)
                self.assertEqual(first.timestamp, second.timestamp)
                self.handle.flush.assert_called_once()

    def test_flush_after_submit(self):
        self.writer.write(make_record(''))
        names = [c[0] for c in self.handle.mock_calls]
        self.assertEqual(names, ['submit', 'submit', 'flush'])

    def test_post_scenario_with_missing_site(self):
        record = Record(stage='Post', customer_name='Acme', site_name='', gateway='gw1',
                        fields={'temp': 21.5}, timestamp=TIMESTAMP)

        (point,) = self.writer.write(record)

        self.assertEqual(point.measurement, Measurement.PROCESSED)
        self.assertEqual(point.tags['site'], 'Unknown site')
        self.assertEqual(point.tags['customer'], 'Acme')
        self.assertEqual(point.tags['gateway'], 'gw1')
        self.assertEqual(len(point.tags), 10)
        self.assertEqual(point.fields, {'temp': 21.5})
        self.assertEqual(point.timestamp, TIMESTAMP)

    def test_not_connected(self):
        self.connection.write_handle = None
        with self.assertRaises(UninitializedHandleError):
            self.writer.write(make_record('Pre'))

    def test_submit_failure_is_wrapped(self):
        cause = RuntimeError('buffer closed')
        self.handle.submit.side_effect = cause

        with self.assertRaises(WriteError) as ctx:
            self.writer.write(make_record('Pre'))

        self.assertIs(ctx.exception.__cause__, cause)
        self.handle.flush.assert_not_called()

    def test_flush_failure_is_wrapped(self):
        self.handle.flush.side_effect = RuntimeError('flush failed')
        with self.assertRaises(WriteError):
            self.writer.write(make_record('Post'))

    def test_pre_logs_debug_only(self):
        record = make_record('Pre')
        with self.assertLogs('forwarder.writer.influxdb_writer', level='DEBUG') as logs:
            self.writer.write(record)

        self.assertEqual([r.levelname for r in logs.records], ['DEBUG'])
        self.assertEqual(logs.records[0].getMessage(),
                         'gw1 :: Acme :: Plant 7 :: ctl :: C-1 :: meter :: D-1 :: Main :: Pre')
        self.assertEqual(logs.records[0].data, {'temp': 21.5})

    def test_post_logs_info_and_debug(self):
        with self.assertLogs('forwarder.writer.influxdb_writer', level='DEBUG') as logs:
            self.writer.write(make_record('Post'))

        self.assertEqual([r.levelname for r in logs.records], ['INFO', 'DEBUG'])
        self.assertEqual(logs.records[0].getMessage(),
                         'gw1 :: Acme :: Plant 7 :: ctl :: C-1 :: meter :: D-1 :: Main')
        self.assertTrue(logs.records[1].getMessage().endswith(' :: Post'))

    def test_unspecified_debug_line_has_no_stage_suffix(self):
        with self.assertLogs('forwarder.writer.influxdb_writer', level='DEBUG') as logs:
            self.writer.write(make_record(''))

        self.assertEqual([r.levelname for r in logs.records], ['INFO', 'DEBUG'])
        self.assertEqual(logs.records[0].getMessage(), logs.records[1].getMessage())

    def test_format_uses_raw_values(self):
        self.assertEqual(format_record_line(Record()), ' ::  ::  ::  ::  ::  ::  :: ')

    def test_write_many(self):
        points = self.writer.write_many([make_record('Pre'), make_record('')])
        self.assertEqual(len(points), 3)
        self.assertEqual(self.handle.flush.call_count, 2)

    def test_batch_stats(self):
        self.assertEqual(self.writer.get_batch_stats()['writes'], 0)


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
