"""Tests for date normalization (taxiledger.backup.normalize)."""

from datetime import date, datetime, timedelta, timezone

from taxiledger.backup.normalize import normalize, to_iso


class TestToIso:
    def test_utc_datetime_has_millis_and_z(self):
        value = datetime(2024, 12, 31, 9, 30, 0, tzinfo=timezone.utc)
        assert to_iso(value) == "2024-12-31T09:30:00.000Z"

    def test_microseconds_truncated_to_millis(self):
        value = datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_iso(value) == "2024-01-01T00:00:00.123Z"

    def test_offset_converted_to_utc(self):
        value = datetime(2024, 1, 1, 1, 0, 0, tzinfo=timezone(timedelta(hours=1)))
        assert to_iso(value) == "2024-01-01T00:00:00.000Z"

    def test_naive_datetime_taken_as_utc(self):
        assert to_iso(datetime(2024, 6, 15, 12, 0, 0)) == "2024-06-15T12:00:00.000Z"

    def test_plain_date(self):
        assert to_iso(date(2024, 5, 6)) == "2024-05-06"


class TestNormalize:
    def test_nested_structures(self):
        when = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
        value = {
            "a": [when, {"b": when}],
            "c": 1,
            "d": None,
            "e": ("x", when),
        }
        assert normalize(value) == {
            "a": ["2024-03-01T08:00:00.000Z", {"b": "2024-03-01T08:00:00.000Z"}],
            "c": 1,
            "d": None,
            "e": ["x", "2024-03-01T08:00:00.000Z"],
        }

    def test_input_not_mutated(self):
        when = datetime(2024, 3, 1, tzinfo=timezone.utc)
        value = {"when": when, "items": [when]}
        normalize(value)
        assert value["when"] is when
        assert value["items"][0] is when

    def test_primitives_unchanged(self):
        for value in (None, True, 0, 1.5, "text"):
            assert normalize(value) == value
