"""
Tests for completion-date parsing.
"""

from datetime import date, datetime

import pytest

from studylabs.ranking.dates import normalize_completion_date, parse_completion_date


class TestParseCompletionDate:
    """Tests for parse_completion_date."""

    def test_iso(self):
        assert parse_completion_date("2024-01-05") == date(2024, 1, 5)

    def test_iso_with_time(self):
        assert parse_completion_date("2024-01-05T10:30:00Z") == date(2024, 1, 5)

    def test_iso_with_space_and_offset(self):
        assert parse_completion_date("2024-01-05 10:30+05:30") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["2024-01-05 not a date", "2024-01-05T", "2024-01-05Tnoon"])
    def test_iso_with_trailing_garbage(self, value):
        assert parse_completion_date(value) is None

    def test_day_first_slashes(self):
        assert parse_completion_date("05/01/2024") == date(2024, 1, 5)

    def test_day_first_dashes(self):
        assert parse_completion_date("05-01-2024") == date(2024, 1, 5)

    def test_single_digit_fields(self):
        assert parse_completion_date("5/1/2024") == date(2024, 1, 5)

    def test_formats_agree(self):
        assert parse_completion_date("05/01/2024") == parse_completion_date("2024-01-05")

    def test_strips_whitespace(self):
        assert parse_completion_date("  2024-01-05 ") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["13/13/2024", "00/01/2024", "32/01/2024", "01/00/2024"])
    def test_out_of_range_fields(self, value):
        assert parse_completion_date(value) is None

    def test_day_overflow_rolls_into_next_month(self):
        assert parse_completion_date("31/02/2024") == date(2024, 3, 2)
        assert parse_completion_date("31-04-2023") == date(2023, 5, 1)

    def test_iso_is_strict_about_calendar_days(self):
        assert parse_completion_date("2024-02-31") is None

    def test_year_out_of_range(self):
        assert parse_completion_date("01/01/0000") is None

    @pytest.mark.parametrize("value", ["", "   ", "soon", "2024/01/05", "Jan 5 2024", None, float("nan")])
    def test_unparseable_is_none(self, value):
        assert parse_completion_date(value) is None

    def test_passes_dates_through(self):
        assert parse_completion_date(date(2024, 1, 5)) == date(2024, 1, 5)
        assert parse_completion_date(datetime(2024, 1, 5, 12)) == date(2024, 1, 5)


class TestNormalizeCompletionDate:
    """Tests for normalize_completion_date."""

    def test_day_first_to_iso(self):
        assert normalize_completion_date("05/01/2024") == "2024-01-05"

    def test_invalid_is_none(self):
        assert normalize_completion_date("not a date") is None
