from datetime import datetime, timedelta, timezone

import pytest

from triage.utils.time import epoch_ms, minutes_between, parse_iso, to_iso


def test_iso_round_trip_millis():
    dt = datetime(2024, 1, 15, 14, 32, 1, 123456, tzinfo=timezone.utc)
    assert to_iso(dt) == "2024-01-15T14:32:01.123Z"
    assert parse_iso("2024-01-15T14:32:01.123Z") == dt.replace(microsecond=123000)
    assert parse_iso("2024-01-15T09:32:01-05:00") == datetime(2024, 1, 15, 14, 32, 1, tzinfo=timezone.utc)


def test_naive_datetimes_are_rejected():
    with pytest.raises(ValueError):
        to_iso(datetime(2024, 1, 1))
    with pytest.raises(ValueError):
        epoch_ms(datetime(2024, 1, 1))


def test_epoch_ms_and_minutes_between():
    t0 = datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert epoch_ms(t0 + timedelta(seconds=1.5)) == 1500
    assert minutes_between(t0, t0 + timedelta(minutes=45)) == 45.0
