from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from datetime_utils import (
    day_key,
    hours_between,
    parse_day,
    parse_iso,
    previous_day_key,
    to_iso,
)


def test_parse_iso_accepts_z_suffix_and_offsets():
    assert parse_iso("2024-03-04T08:00:00.000Z") == datetime(2024, 3, 4, 8, tzinfo=timezone.utc)
    assert parse_iso("2024-03-04T10:00:00+02:00") == datetime(2024, 3, 4, 8, tzinfo=timezone.utc)
    assert parse_iso("not a date") is None
    assert parse_iso("") is None


def test_to_iso_uses_milliseconds_and_z():
    dt = datetime(2024, 3, 4, 8, 5, 9, 123456, tzinfo=timezone.utc)
    assert to_iso(dt) == "2024-03-04T08:05:09.123Z"
    assert to_iso(None) is None


def test_day_keys_are_utc():
    late = datetime(2024, 3, 4, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert day_key(late) == "2024-03-05"
    assert previous_day_key(late) == "2024-03-04"


def test_hours_between_and_parse_day():
    start = datetime(2024, 3, 4, 8, tzinfo=timezone.utc)
    assert hours_between(start, start + timedelta(minutes=90)) == 1.5
    assert parse_day("2024-03-04T08:00:00Z").isoformat() == "2024-03-04"
    assert parse_day("bad") is None
