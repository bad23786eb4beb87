"""
Intake - normalization helpers.

Responsibility:
- Turn vendor date strings into real datetimes / canonical YYYY-MM-DD text.
- Turn vendor numeric strings ("1,234.50") into floats.

Design notes:
- Pure functions only. No IO, no logging, never raise on bad input.
- Format order matters: ISO is unambiguous so it goes first, and the
  day-first formats come before anything that could swap day and month.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional, Sequence

# -------------------------
# Date formats
# -------------------------

# Tried after ISO 8601, in this order.
BILLING_DATE_FORMATS: Sequence[str] = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d %b %Y",   # Generali: "15 Feb 2026"
    "%d %B %Y",   # "15 February 2026"
    "%d-%b-%Y",   # "02-Jan-2026", "2-Jan-2026"
)

# Issuance exports carry time-of-day in the purchased date column.
PURCHASED_DATE_FORMATS: Sequence[str] = (
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)

CANONICAL_DATE_FORMAT = "%Y-%m-%d"


def _clean(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_iso(s: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    # fromisoformat does not accept a trailing "Z" before 3.11
    if s.endswith("Z"):
        try:
            return datetime.fromisoformat(s[:-1] + "+00:00")
        except ValueError:
            return None
    return None


def _parse_with_formats(s: str, formats: Sequence[str]) -> Optional[datetime]:
    parsed = _parse_iso(s)
    if parsed is not None:
        return parsed
    for fmt in formats:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a vendor date string.

    Returns None (never raises) for blank or unrecognised input; that is the
    normal "No valid date" path for billing rows.
    """
    s = _clean(value)
    if not s:
        return None
    return _parse_with_formats(s, BILLING_DATE_FORMATS)


def parse_purchased_datetime(value: Optional[str]) -> Optional[datetime]:
    s = _clean(value)
    if not s:
        return None
    return _parse_with_formats(s, PURCHASED_DATE_FORMATS)


def to_canonical_date_string(value: Optional[str]) -> Optional[str]:
    """Parse with parse_date and format as YYYY-MM-DD (time-of-day dropped)."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.strftime(CANONICAL_DATE_FORMAT)


def parse_canonical_date(value: Optional[str]) -> Optional[date]:
    """Calendar date of any supported date string, for filtering and sorting."""
    parsed = parse_date(value)
    return parsed.date() if parsed is not None else None


# -------------------------
# Numbers
# -------------------------

def parse_numeric(value: Optional[str]) -> Optional[float]:
    """
    Parse "1,234.50" -> 1234.5.

    Blank, unparseable and non-finite values (nan, inf) all become None,
    never zero.
    """
    s = _clean(value)
    if not s:
        return None
    cleaned = s.replace(",", "").strip()
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


# -------------------------
# Text
# -------------------------

def collapse_whitespace(value: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace runs to one space."""
    return " ".join(_clean(value).lower().split())
