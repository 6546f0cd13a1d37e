# Rev 0.1.0
# src/sitedash/services/dates.py
"""Date normalization for spreadsheet cells.

Cells arrive as spreadsheet serial numbers (45000), numeric strings ("45000"),
ISO strings ("2023-03-15", sometimes with a time part), locale strings
("15-03-2023", "15/03/2023") or real date objects. Everything is reduced to a
`datetime.date`, which is a plain (year, month, day) triple: no timezone, no
DST, so two cells naming the same calendar day are always 0 days apart.

None of these functions raise; unusable input yields None ("unknown").
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

# Day 0 of the Google Sheets / Excel (1900 date system) serial calendar.
SERIAL_EPOCH = date(1899, 12, 30)

_NUMERIC = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_DMY = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(value: float) -> Optional[date]:
    if not math.isfinite(value) or value < 1:
        return None
    try:
        return SERIAL_EPOCH + timedelta(days=int(math.floor(value)))
    except OverflowError:
        return None


def to_canonical_date(raw: Any) -> Optional[date]:
    """Reduce any supported cell value to a calendar date, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float)):
        return _from_serial(float(raw))

    text = str(raw).strip()
    if not text:
        return None
    if _NUMERIC.match(text):
        return _from_serial(float(text))

    m = _ISO.match(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _DMY.match(text)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    return None


def to_serial(d: date) -> int:
    """Inverse of the serial conversion: days since SERIAL_EPOCH."""
    return (d - SERIAL_EPOCH).days


def to_iso(raw: Any) -> str:
    """YYYY-MM-DD for date inputs and forms; '' when unknown."""
    d = to_canonical_date(raw)
    return d.isoformat() if d else ""


def format_for_display(raw: Any) -> str:
    """DD-MM-YYYY, or 'N/A' when there is nothing usable.

    A value shaped like a date (three dash-separated parts) that is not a real
    calendar day, e.g. '2024-02-30', is shown exactly as entered.
    """
    d = to_canonical_date(raw)
    if d is not None:
        return f"{d.day:02d}-{d.month:02d}-{d.year:04d}"
    if raw is None or isinstance(raw, (bool, int, float)):
        return "N/A"
    text = str(raw).strip()
    if not text or _NUMERIC.match(text):
        return "N/A"
    if len(text.split("-")) == 3:
        return str(raw)
    return "N/A"


def days_between(a: Optional[date], b: Optional[date]) -> Optional[int]:
    """Absolute number of calendar days between a and b; None if either is unknown."""
    if a is None or b is None:
        return None
    return abs((b - a).days)
