from datetime import datetime, timedelta, timezone
import pytest
from conftest import NOW
from timeparse import (
    NO_TIME,
    TimeParseError,
    UnknownPrefixError,
    format_time,
    is_overdue,
    parse_absolute_time,
    parse_duration,
    parse_relative_time,
    parse_time_args,
)

UTC = timezone.utc


@pytest.mark.parametrize("text, expected", [
    ("90s", timedelta(seconds=90)),
    ("2h30m", timedelta(hours=2, minutes=30)),
    ("1 day 4 hours", timedelta(days=1, hours=4)),
    ("3d", timedelta(days=3)),
    ("2w", timedelta(weeks=2)),
    ("15min", timedelta(minutes=15)),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "5", "2x", "h2", "2h!"])
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_relative_uses_duration_first():
    assert parse_relative_time("2h", now=NOW) == NOW + timedelta(hours=2)
    assert parse_relative_time("1h 30m", now=NOW) == NOW + timedelta(hours=1, minutes=30)


def test_relative_fallback_scanner_skips_unknown_units():
    # "x" breaks the duration grammar, the scanner ignores it
    assert parse_relative_time("1d2x3h", now=NOW) == NOW + timedelta(days=1, hours=3)


def test_relative_fallback_uses_approximate_months():
    assert parse_relative_time("1M1q", now=NOW) == NOW + timedelta(days=30)
    assert parse_relative_time("1y!", now=NOW) == NOW + timedelta(days=365)


def test_relative_trailing_garbage_is_ignored():
    assert parse_relative_time("5", now=NOW) == NOW
    assert parse_relative_time("2h7", now=NOW) == NOW + timedelta(hours=2)


def test_absolute_clock_only_keeps_local_date():
    # local is 2025-03-12 13:00 (+3h)
    result = parse_absolute_time("h23m59s59", 3, now=NOW)
    assert result == datetime(2025, 3, 12, 20, 59, 59, tzinfo=UTC)


def test_absolute_date_only_is_local_midnight():
    result = parse_absolute_time("y2025M3d14", 3, now=NOW)
    assert result == datetime(2025, 3, 13, 21, 0, tzinfo=UTC)


def test_absolute_uses_local_date_across_midnight():
    late = datetime(2025, 3, 12, 22, 30, tzinfo=UTC)  # already the 13th locally
    assert parse_absolute_time("h9", 3, now=late) == datetime(2025, 3, 13, 6, 0, tzinfo=UTC)


def test_absolute_negative_offset():
    assert parse_absolute_time("h9", -5, now=NOW) == datetime(2025, 3, 12, 14, 0, tzinfo=UTC)


@pytest.mark.parametrize("text, message", [
    ("M13d1", "Month must be between 1 and 12"),
    ("M0", "Month must be between 1 and 12"),
    ("d32", "Day must be between 1 and 31"),
    ("y0", "Year must be between 1 and 9999"),
    ("y10000", "Year must be between 1 and 9999"),
    ("w8", "Weekday must be 1-7"),
    ("h24", "Hour must be between 0 and 23"),
    ("m60", "Minute must be between 0 and 59"),
    ("s60", "Second must be between 0 and 59"),
])
def test_absolute_field_ranges(text, message):
    with pytest.raises(TimeParseError, match=message):
        parse_absolute_time(text, 3, now=NOW)


def test_absolute_rejects_impossible_calendar_date():
    with pytest.raises(TimeParseError, match="Invalid date/time: 2025-02-30 00:00:00"):
        parse_absolute_time("y2025M2d30", 3, now=NOW)


def test_weekday_same_day_rolls_a_full_week():
    # NOW is a Wednesday
    assert parse_absolute_time("w3", 3, now=NOW) == datetime(2025, 3, 18, 21, 0, tzinfo=UTC)


def test_weekday_later_this_week():
    assert parse_absolute_time("w5h18", 3, now=NOW) == datetime(2025, 3, 14, 15, 0, tzinfo=UTC)


def test_weekday_earlier_in_week_goes_to_next_week():
    assert parse_absolute_time("w1", 0, now=NOW) == datetime(2025, 3, 17, 0, 0, tzinfo=UTC)


def test_explicit_day_wins_over_weekday():
    assert parse_absolute_time("w5d20", 0, now=NOW) == datetime(2025, 3, 20, 0, 0, tzinfo=UTC)


def test_absolute_reads_unit_before_digits():
    assert parse_absolute_time("y2030M1d2h3m4s5", 0, now=NOW) == datetime(2030, 1, 2, 3, 4, 5, tzinfo=UTC)
    # field order does not matter
    assert parse_absolute_time("s5d2m4M1h3y2030", 0, now=NOW) == datetime(2030, 1, 2, 3, 4, 5, tzinfo=UTC)


def test_absolute_unit_without_digits_is_zero():
    assert parse_absolute_time("h9m", 0, now=NOW) == datetime(2025, 3, 12, 9, 0, tzinfo=UTC)
    with pytest.raises(TimeParseError, match="Month must be between 1 and 12"):
        parse_absolute_time("M", 0, now=NOW)


def test_absolute_ignores_leading_digits():
    assert parse_absolute_time("42h9", 0, now=NOW) == datetime(2025, 3, 12, 9, 0, tzinfo=UTC)


def test_absolute_skips_unknown_units():
    assert parse_absolute_time("h9x5", 0, now=NOW) == datetime(2025, 3, 12, 9, 0, tzinfo=UTC)


def test_parse_time_args_dispatch():
    assert parse_time_args("in", "2h", 3, now=NOW) == NOW + timedelta(hours=2)
    assert parse_time_args("at", "h9", 0, now=NOW) == datetime(2025, 3, 12, 9, 0, tzinfo=UTC)
    with pytest.raises(UnknownPrefixError, match="Unknown time prefix 'on'"):
        parse_time_args("on", "h9", 0, now=NOW)


def test_format_time():
    assert format_time(None, 3) == NO_TIME
    assert format_time(datetime(2025, 3, 13, 21, 0, tzinfo=UTC), 3) == "2025-03-14 00:00"


def test_is_overdue():
    assert is_overdue(NOW - timedelta(seconds=1), now=NOW)
    assert not is_overdue(NOW + timedelta(seconds=1), now=NOW)
    assert not is_overdue(None, now=NOW)
