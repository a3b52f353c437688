"""
Data models for records forwarded to InfluxDB.

A Record is what the ingestion pipeline hands us; a Point is what gets written.
One Record produces one or two Points depending on its stage.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Union

from influxdb_client_3 import Point as InfluxPoint, WritePrecision

LOG = logging.getLogger(__name__)

NIL_UUID = uuid.UUID(int=0)

FRACTION_RE = re.compile(r"\.(\d+)")

Scalar = Union[int, float, str, bool]


class Stage(Enum):
    """Processing stage marker carried by a Record."""
    PRE = "Pre"
    POST = "Post"
    UNSPECIFIED = ""

    @classmethod
    def parse(cls, value: Union['Stage', str, None]) -> 'Stage':
        """Map a raw stage value to a Stage; anything unrecognised is UNSPECIFIED."""
        if isinstance(value, Stage):
            return value
        if value == cls.PRE.value:
            return cls.PRE
        if value == cls.POST.value:
            return cls.POST
        return cls.UNSPECIFIED


class Measurement(Enum):
    """Measurement streams a Point can target."""
    ORIGINAL = "Original"
    PROCESSED = "Processed"


def parse_uuid(value: Any) -> uuid.UUID:
    """Return value as a UUID, or NIL_UUID if it is missing or not a valid identifier."""
    if isinstance(value, uuid.UUID):
        return value
    if not value:
        return NIL_UUID
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        LOG.debug(f"Invalid identifier {value!r}, using nil UUID")
        return NIL_UUID


def parse_timestamp(value: Any) -> datetime:
    """
    Parse ISO 8601 / RFC 3339 strings, epoch seconds or datetimes.

    Only a missing value defaults to now (UTC); anything present that can't
    be parsed raises ValueError.
    """
    if isinstance(value, datetime):
        return value
    if value is None or value == '':
        return datetime.now(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Invalid epoch timestamp {value!r}: {e}") from e
    if isinstance(value, str):
        # fromisoformat before 3.11 takes neither 'Z' nor more than 6 fractional digits
        normalized = FRACTION_RE.sub(lambda m: '.' + (m.group(1) + '000000')[:6],
                                     value.strip().replace('Z', '+00:00'), count=1)
        try:
            return datetime.fromisoformat(normalized)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp {value!r}") from e
    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


@dataclass
class Record:
    """A telemetry record submitted for persistence."""

    stage: Stage = Stage.UNSPECIFIED
    customer_id: uuid.UUID = NIL_UUID
    customer_name: str = ''
    site_id: uuid.UUID = NIL_UUID
    site_name: str = ''
    gateway: str = ''
    controller: str = ''
    device_type: str = ''
    controller_identifier: str = ''
    device_name: str = ''
    device_identifier: str = ''
    fields: Dict[str, Scalar] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Pipeline (camelCase) key -> attribute name
    KEY_MAP = {
        'customerID': 'customer_id',
        'customerName': 'customer_name',
        'siteID': 'site_id',
        'siteName': 'site_name',
        'gateway': 'gateway',
        'controller': 'controller',
        'deviceType': 'device_type',
        'controllerIdentifier': 'controller_identifier',
        'deviceName': 'device_name',
        'deviceIdentifier': 'device_identifier',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        """
        Create a Record from the ingestion pipeline's JSON shape.

        Accepts both the pipeline keys (customerID, deviceName, ...) and the
        attribute names. The stage may be given as 'state' or 'stage' and the
        payload as 'data' or 'fields'.
        """
        kwargs: Dict[str, Any] = {}
        for key, attr in cls.KEY_MAP.items():
            if key in data:
                kwargs[attr] = data[key]
            elif attr in data:
                kwargs[attr] = data[attr]

        for attr in ('customer_id', 'site_id'):
            kwargs[attr] = parse_uuid(kwargs.get(attr))
        for attr in cls.KEY_MAP.values():
            if attr in kwargs and attr not in ('customer_id', 'site_id'):
                kwargs[attr] = '' if kwargs[attr] is None else str(kwargs[attr])

        stage = data.get('stage', data.get('state'))
        payload = data.get('fields', data.get('data')) or {}
        if not isinstance(payload, dict):
            raise ValueError(f"Record fields must be a mapping, got {type(payload).__name__}")

        return cls(
            stage=Stage.parse(stage),
            fields=dict(payload),
            timestamp=parse_timestamp(data.get('timestamp')),
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict, using the pipeline keys."""
        result: Dict[str, Any] = {'state': Stage.parse(self.stage).value}
        for key, attr in self.KEY_MAP.items():
            value = getattr(self, attr)
            result[key] = str(value) if isinstance(value, uuid.UUID) else value
        result['data'] = dict(self.fields)
        result['timestamp'] = self.timestamp.isoformat()
        return result


@dataclass(frozen=True)
class Point:
    """Immutable write unit: measurement, tag set, fields and timestamp."""

    measurement: Measurement
    tags: Dict[str, str]
    fields: Dict[str, Scalar]
    timestamp: datetime

    def to_influx(self, precision: str = WritePrecision.NS) -> InfluxPoint:
        """Convert to the store client's Point type."""
        point = InfluxPoint(self.measurement.value)
        for tag_key, tag_value in self.tags.items():
            point = point.tag(tag_key, tag_value)
        for field_key, field_value in self.fields.items():
            if field_value is not None:
                point = point.field(field_key, field_value)
        return point.time(self.timestamp, precision)
