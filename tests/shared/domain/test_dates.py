from datetime import UTC, datetime

import pytest

from shared.dates import DateRange, parse_date_range
from shared.errors import ValidationFailedError


class TestParseDateRange:
    def test_open_range(self):
        date_range = parse_date_range(None, None)
        assert date_range == DateRange()
        assert date_range.to_match() == {}
        assert not date_range.to_criteria()

    def test_end_date_is_inclusive(self):
        date_range = parse_date_range("2024-01-01", "2024-01-31")

        assert date_range.start == datetime(2024, 1, 1, tzinfo=UTC)
        assert date_range.end == datetime(2024, 1, 31, 23, 59, 59, 999000, tzinfo=UTC)

    def test_match_bounds(self):
        date_range = parse_date_range("2024-01-01", None)
        assert date_range.to_match("placed_at") == {"placed_at": {"$gte": datetime(2024, 1, 1, tzinfo=UTC)}}

    def test_criteria_bounds(self):
        date_range = parse_date_range("2024-01-01", "2024-01-31")
        criteria = date_range.to_criteria("placed_at")

        assert ("placed_at__gte", datetime(2024, 1, 1, tzinfo=UTC)) in criteria.children
        assert ("placed_at__lte", datetime(2024, 1, 31, 23, 59, 59, 999000, tzinfo=UTC)) in criteria.children

    def test_invalid_start_date(self):
        with pytest.raises(ValidationFailedError) as exc:
            parse_date_range("not-a-date", None)
        assert exc.value.errors == {"start_date": ["Invalid start date format"]}

    def test_invalid_end_date(self):
        with pytest.raises(ValidationFailedError) as exc:
            parse_date_range(None, "2024-13-40")
        assert exc.value.errors == {"end_date": ["Invalid end date format"]}

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationFailedError) as exc:
            parse_date_range("2024-02-01", "2024-01-01")
        assert exc.value.errors == {"start_date": ["Start date cannot be after end date"]}

    def test_same_day_range_is_valid(self):
        date_range = parse_date_range("2024-02-01", "2024-02-01")
        assert date_range.start < date_range.end
