"""
Tag set derivation for forwarded records.

Every point carries the same ten tags. Missing metadata is replaced with an
"Unknown ..." placeholder so that points stay groupable and filterable.
"""

import uuid
from typing import Dict

from .models import Record, NIL_UUID

# Tag key -> (record attribute, placeholder when empty)
TAG_DEFAULTS = {
    'customerID': ('customer_id', 'Unknown customer ID'),
    'customer': ('customer_name', 'Unknown customer'),
    'siteID': ('site_id', 'Unknown site ID'),
    'site': ('site_name', 'Unknown site'),
    'gateway': ('gateway', 'Unknown gateway'),
    'controller': ('controller', 'Unknown controller'),
    'device_type': ('device_type', 'Unknown device type'),
    'controller_identifier': ('controller_identifier', 'Unknown controller serial number'),
    'device_name': ('device_name', 'Unknown device name'),
    'device_identifier': ('device_identifier', 'Unknown device serial number'),
}

TAG_KEYS = list(TAG_DEFAULTS)


def tag_value(value, default: str) -> str:
    """Return the tag form of value, or default if it is empty or the nil UUID."""
    if isinstance(value, uuid.UUID):
        return default if value == NIL_UUID else str(value)
    if not value:
        return default
    return str(value)


def build_tag_set(record: Record) -> Dict[str, str]:
    """Build the full tag set for a record. Never raises, never omits a key."""
    return {
        key: tag_value(getattr(record, attr, None), default)
        for key, (attr, default) in TAG_DEFAULTS.items()
    }
