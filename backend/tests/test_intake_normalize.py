from datetime import date, datetime
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.intake.normalize import (
    collapse_whitespace,
    parse_canonical_date,
    parse_date,
    parse_numeric,
    parse_purchased_datetime,
    to_canonical_date_string,
)


def test_iso_date_is_never_read_day_first():
    parsed = parse_date("2026-01-08")
    assert parsed.year == 2026
    assert parsed.month == 1
    assert parsed.day == 8


@pytest.mark.parametrize("canonical", ["2026-01-08", "2024-02-29", "1999-12-31"])
def test_canonical_date_round_trips(canonical):
    assert to_canonical_date_string(canonical) == canonical
    assert to_canonical_date_string(to_canonical_date_string(canonical)) == canonical


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("08/01/2026", "2026-01-08"),
        ("08/01/2026 14:30", "2026-01-08"),
        ("15 Feb 2026", "2026-02-15"),
        ("15 February 2026", "2026-02-15"),
        ("02-Jan-2026", "2026-01-02"),
        ("2026-01-08 9:14:45", "2026-01-08"),
        ("  2026-01-08  ", "2026-01-08"),
    ],
)
def test_vendor_date_formats(raw, expected):
    assert to_canonical_date_string(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "31/02/2026", "2026-13-01"])
def test_unparseable_dates_are_none(raw):
    assert parse_date(raw) is None
    assert to_canonical_date_string(raw) is None


def test_parse_canonical_date_drops_time():
    assert parse_canonical_date("2026-02-10T23:59:00") == date(2026, 2, 10)


def test_purchased_datetime_keeps_time_of_day():
    assert parse_purchased_datetime("10/02/2026 18:05") == datetime(2026, 2, 10, 18, 5)
    assert parse_purchased_datetime("2026-02-10 07:45") == datetime(2026, 2, 10, 7, 45)
    assert parse_purchased_datetime("") is None


def test_numeric_strips_thousands_separators():
    assert parse_numeric("1,234.50") == 1234.5
    assert parse_numeric(" 12,000 ") == 12000.0
    assert parse_numeric("-3.25") == -3.25


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "nan", "inf", "-Infinity", "1.2.3"])
def test_numeric_garbage_is_none_not_zero(raw):
    assert parse_numeric(raw) is None


def test_collapse_whitespace():
    assert collapse_whitespace("  WXY \t 1234 ") == "wxy 1234"
    assert collapse_whitespace(None) == ""
