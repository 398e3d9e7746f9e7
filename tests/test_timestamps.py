"""Tests for timestamp normalization at the load boundary."""

import pytest
from datetime import date, datetime, timedelta, timezone

from wallet_ledger.models.timestamps import normalize_timestamp

UTC = timezone.utc
# 2024-03-01T00:00:00Z
MARCH_FIRST_SECONDS = 1709251200


class TestNormalizeTimestamp:
    """Tests for normalize_timestamp."""

    def test_iso_string_with_z(self):
        """Test ISO strings with a trailing Z."""
        assert normalize_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_iso_string_with_offset(self):
        """Test that offsets are converted to UTC."""
        result = normalize_timestamp("2024-03-01T12:00:00+02:00")
        assert result == datetime(2024, 3, 1, 10, tzinfo=UTC)
        assert result.utcoffset() == timedelta(0)

    def test_date_only_string(self):
        """Test plain dates become midnight UTC."""
        assert normalize_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=UTC)

    def test_naive_datetime_is_utc(self):
        """Test naive datetimes are taken as UTC."""
        assert normalize_timestamp(datetime(2024, 3, 1, 8)).tzinfo == UTC

    def test_native_date(self):
        """Test date objects become midnight UTC."""
        assert normalize_timestamp(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_epoch_milliseconds(self):
        """Test integer epoch milliseconds."""
        assert normalize_timestamp(MARCH_FIRST_SECONDS * 1000) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_epoch_zero(self):
        """Test that 0 is the epoch, not a missing value."""
        assert normalize_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)

    def test_seconds_mapping(self):
        """Test serialized legacy timestamps."""
        value = {"seconds": MARCH_FIRST_SECONDS, "nanoseconds": 0}
        assert normalize_timestamp(value) == datetime(2024, 3, 1, tzinfo=UTC)

    def test_underscored_seconds_mapping(self):
        """Test the underscored variant of serialized timestamps."""
        value = {"_seconds": MARCH_FIRST_SECONDS, "_nanoseconds": 500_000_000}
        assert normalize_timestamp(value) == datetime(2024, 3, 1, 0, 0, 0, 500000, tzinfo=UTC)

    def test_converter_object(self):
        """Test objects exposing a to_datetime() method."""

        class Stamp:
            def to_datetime(self):
                return datetime(2024, 3, 1, 10, tzinfo=UTC)

        assert normalize_timestamp(Stamp()) == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_converter_returning_garbage(self):
        """Test converters that do not return a date."""

        class Broken:
            def toDate(self):
                return "yesterday"

        with pytest.raises(ValueError):
            normalize_timestamp(Broken())

    @pytest.mark.parametrize("value", ["", "   ", "not a date", True, [1, 2], object(), {"minutes": 3}])
    def test_unsupported_values(self, value):
        """Test that unsupported shapes raise ValueError."""
        with pytest.raises(ValueError):
            normalize_timestamp(value)

    def test_out_of_range_epoch(self):
        """Test that absurd epoch values raise ValueError."""
        with pytest.raises(ValueError):
            normalize_timestamp(10 ** 20)

    def test_shapes_agree(self):
        """Test that every shape of the same instant normalizes identically."""
        shapes = [
            "2024-03-01T00:00:00Z",
            "2024-03-01T00:00:00+00:00",
            date(2024, 3, 1),
            datetime(2024, 3, 1),
            MARCH_FIRST_SECONDS * 1000,
            {"seconds": MARCH_FIRST_SECONDS},
        ]
        assert len({normalize_timestamp(s) for s in shapes}) == 1
