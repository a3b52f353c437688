"""
Tests for records, points and tag set derivation.
"""
import logging
import unittest
import uuid
from datetime import datetime, timezone

from .models import Record, Point, Stage, Measurement, NIL_UUID, parse_uuid, parse_timestamp
from .tags import build_tag_set, TAG_KEYS, TAG_DEFAULTS


class TestTagSet(unittest.TestCase):
    """Test cases for build_tag_set."""

    def test_empty_record_gets_all_defaults(self):
        """Every tag is present and uses its placeholder when the record is empty."""
        tags = build_tag_set(Record())
        self.assertEqual(list(tags), TAG_KEYS)
        self.assertEqual(tags, {
            'customerID': 'Unknown customer ID',
            'customer': 'Unknown customer',
            'siteID': 'Unknown site ID',
            'site': 'Unknown site',
            'gateway': 'Unknown gateway',
            'controller': 'Unknown controller',
            'device_type': 'Unknown device type',
            'controller_identifier': 'Unknown controller serial number',
            'device_name': 'Unknown device name',
            'device_identifier': 'Unknown device serial number',
        })

    def test_values_copied_verbatim(self):
        """Non-empty values become tags unchanged."""
        customer_id = uuid.uuid4()
        site_id = uuid.uuid4()
        record = Record(
            customer_id=customer_id, customer_name='Acme',
            site_id=site_id, site_name='Plant 7',
            gateway='gw1', controller='ctl-a', device_type='meter',
            controller_identifier='SN-1', device_name='Main meter',
            device_identifier='SN-2',
        )
        tags = build_tag_set(record)
        self.assertEqual(tags['customerID'], str(customer_id))
        self.assertEqual(tags['siteID'], str(site_id))
        self.assertEqual(tags['customer'], 'Acme')
        self.assertEqual(tags['site'], 'Plant 7')
        self.assertEqual(tags['gateway'], 'gw1')
        self.assertEqual(tags['controller'], 'ctl-a')
        self.assertEqual(tags['device_type'], 'meter')
        self.assertEqual(tags['controller_identifier'], 'SN-1')
        self.assertEqual(tags['device_name'], 'Main meter')
        self.assertEqual(tags['device_identifier'], 'SN-2')

    def test_each_empty_field_defaults_independently(self):
        """Clearing one field only changes its own tag."""
        full = Record(customer_name='c', site_name='s', gateway='g', controller='ct',
                      device_type='dt', controller_identifier='ci', device_name='dn',
                      device_identifier='di')
        for key, (attr, default) in TAG_DEFAULTS.items():
            if attr in ('customer_id', 'site_id'):
                continue
            with self.subTest(key=key):
                record = Record(**{**full.__dict__, attr: ''})
                tags = build_tag_set(record)
                self.assertEqual(tags[key], default)
                self.assertEqual(sum(1 for v in tags.values() if v.startswith('Unknown')), 3)

    def test_nil_identifiers(self):
        """Nil UUIDs map to the identifier placeholders."""
        tags = build_tag_set(Record(customer_id=NIL_UUID, site_id=NIL_UUID, customer_name='Acme'))
        self.assertEqual(tags['customerID'], 'Unknown customer ID')
        self.assertEqual(tags['siteID'], 'Unknown site ID')
        self.assertEqual(tags['customer'], 'Acme')


class TestStage(unittest.TestCase):
    """Test cases for Stage.parse."""

    def test_known_values(self):
        self.assertIs(Stage.parse('Pre'), Stage.PRE)
        self.assertIs(Stage.parse('Post'), Stage.POST)
        self.assertIs(Stage.parse(Stage.POST), Stage.POST)

    def test_unknown_values_are_unspecified(self):
        for value in ['', None, 'pre', 'POST', 'Processed', 'anything']:
            with self.subTest(value=value):
                self.assertIs(Stage.parse(value), Stage.UNSPECIFIED)


class TestRecordFromDict(unittest.TestCase):
    """Test cases for building records from pipeline JSON."""

    def test_pipeline_keys(self):
        customer_id = uuid.uuid4()
        record = Record.from_dict({
            'state': 'Post',
            'customerID': str(customer_id),
            'customerName': 'Acme',
            'siteID': '',
            'gateway': 'gw1',
            'deviceName': 'Boiler',
            'data': {'temp': 21.5, 'on': True},
            'timestamp': '2024-05-01T12:00:00Z',
        })
        self.assertIs(record.stage, Stage.POST)
        self.assertEqual(record.customer_id, customer_id)
        self.assertEqual(record.site_id, NIL_UUID)
        self.assertEqual(record.customer_name, 'Acme')
        self.assertEqual(record.site_name, '')
        self.assertEqual(record.device_name, 'Boiler')
        self.assertEqual(record.fields, {'temp': 21.5, 'on': True})
        self.assertEqual(record.timestamp, datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))

    def test_attribute_keys_and_fields(self):
        record = Record.from_dict({'stage': 'Pre', 'site_name': 'North', 'fields': {'v': 1}})
        self.assertIs(record.stage, Stage.PRE)
        self.assertEqual(record.site_name, 'North')
        self.assertEqual(record.fields, {'v': 1})

    def test_invalid_fields_payload(self):
        with self.assertRaises(ValueError):
            Record.from_dict({'data': [1, 2, 3]})

    def test_round_trip_keys(self):
        record = Record(stage=Stage.PRE, customer_name='Acme', fields={'a': 1})
        data = record.to_dict()
        self.assertEqual(data['state'], 'Pre')
        self.assertEqual(data['customerID'], str(NIL_UUID))
        self.assertEqual(Record.from_dict(data), record)

    def test_parse_helpers(self):
        self.assertEqual(parse_uuid('not-a-uuid'), NIL_UUID)
        self.assertEqual(parse_uuid(None), NIL_UUID)
        self.assertEqual(parse_timestamp(0), datetime(1970, 1, 1, tzinfo=timezone.utc))
        with self.assertRaises(ValueError):
            parse_timestamp('garbage')

    def test_missing_timestamp_defaults_to_now(self):
        before = datetime.now(timezone.utc)
        for value in (None, ''):
            with self.subTest(value=value):
                parsed = parse_timestamp(value)
                self.assertIsNotNone(parsed.tzinfo)
                self.assertGreaterEqual(parsed, before)
        self.assertGreaterEqual(Record.from_dict({'deviceName': 'pump'}).timestamp, before)

    def test_unparseable_timestamp_rejected(self):
        with self.assertRaises(ValueError):
            Record.from_dict({'deviceName': 'pump', 'timestamp': '01/05/2024 12:00'})

    def test_out_of_range_epoch_rejected(self):
        for value in (1e20, float('inf'), float('nan')):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_timestamp(value)

    def test_nanosecond_timestamp(self):
        parsed = parse_timestamp('2024-05-01T12:00:00.123456789Z')
        self.assertEqual(parsed, datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc))
        short = parse_timestamp('2024-05-01T12:00:00.5+02:00')
        self.assertEqual(short.microsecond, 500000)
        self.assertEqual(short.utcoffset().total_seconds(), 7200)


class TestPoint(unittest.TestCase):
    """Test cases for Point conversion."""

    def test_to_influx_line_protocol(self):
        timestamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        point = Point(Measurement.PROCESSED, build_tag_set(Record(customer_name='Acme')),
                      {'temp': 21.5}, timestamp)
        line = point.to_influx().to_line_protocol()
        self.assertTrue(line.startswith('Processed,'))
        self.assertIn('customer=Acme', line)
        self.assertIn('temp=21.5', line)
        self.assertTrue(line.endswith(str(int(timestamp.timestamp()) * 1_000_000_000)))


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
