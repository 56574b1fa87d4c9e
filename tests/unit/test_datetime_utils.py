from datetime import datetime, timedelta, timezone

from blogcomments.utils.datetime_utils import UTC, coerce_utc, ensure_utc, parse_iso_to_utc


def test_parse_iso_with_z_suffix():
    assert parse_iso_to_utc("2024-01-20T09:00:00.000Z") == datetime(2024, 1, 20, 9, 0, tzinfo=UTC)


def test_parse_iso_with_offset():
    assert parse_iso_to_utc("2024-01-20T09:00:00+09:00") == datetime(2024, 1, 20, 0, 0, tzinfo=UTC)


def test_parse_naive_iso_assumes_utc():
    assert parse_iso_to_utc("2024-01-20T09:00:00").tzinfo == UTC


def test_ensure_utc():
    assert ensure_utc(None) is None
    assert ensure_utc(datetime(2024, 1, 1)).tzinfo == UTC
    tokyo = timezone(timedelta(hours=9))
    assert ensure_utc(datetime(2024, 1, 1, 9, tzinfo=tokyo)) == datetime(2024, 1, 1, tzinfo=UTC)


def test_coerce_utc_accepts_wire_values():
    expected = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    assert coerce_utc("2024-05-01T12:00:00Z") == expected
    assert coerce_utc(1714564800000) == expected
    assert coerce_utc(expected) == expected


def test_coerce_utc_rejects_garbage():
    assert coerce_utc(None) is None
    assert coerce_utc("") is None
    assert coerce_utc("yesterday") is None
    assert coerce_utc(True) is None
    assert coerce_utc({"$date": 1}) is None
