"""Record, Point and tag set definitions."""

from .models import Record, Point, Stage, Measurement, NIL_UUID
from .tags import build_tag_set, TAG_KEYS

__all__ = ['Record', 'Point', 'Stage', 'Measurement', 'NIL_UUID', 'build_tag_set', 'TAG_KEYS']
