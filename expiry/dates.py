"""Date normalisation for raw spreadsheet cells.

Cells arrive as spreadsheet serial numbers, as text in a handful of formats or
occasionally as datetimes when the reader already converted them. Everything is
reduced to a ``datetime.date``; anything that cannot be read becomes ``None``.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from datetime import date, datetime, time, timedelta
from typing import Optional

import numpy as np
import pandas as pd
from dateutil import parser as date_parser


logger = logging.getLogger(__name__)

# Serial 0 is 1899-12-30, so serial 25569 is 1970-01-01.
EXCEL_ORIGIN = "1899-12-30"
EXCEL_ORIGIN_DATE = date(1899, 12, 30)
# Spreadsheets count a 1900-02-29 that never existed.
PHANTOM_LEAP_SERIAL = 60
# 9999-12-31, the last day a spreadsheet can show.
MAX_SERIAL = 2958465

# Slash and dash triples are always day first.
DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
ISO_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

# Two defaults that differ in every date field; free-form text must pin all of them.
_DEFAULT_A = datetime(1, 1, 1)
_DEFAULT_B = datetime(2, 2, 2)


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _to_date(parsed: object) -> Optional[date]:
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def excel_serial_to_date(serial: object) -> Optional[date]:
    """Convert a spreadsheet serial day count (time fraction dropped)."""
    try:
        value = float(serial)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    whole = math.floor(value)
    if not 0 <= whole <= MAX_SERIAL:
        return None
    if whole == PHANTOM_LEAP_SERIAL:
        return date(1900, 2, 28)
    if 0 < whole < PHANTOM_LEAP_SERIAL:
        whole += 1
    try:
        parsed = pd.to_datetime(whole, unit="D", origin=EXCEL_ORIGIN, errors="coerce")
    except (ValueError, OverflowError):
        return None
    return _to_date(parsed)


def date_to_excel_serial(value: date) -> int:
    if isinstance(value, datetime):
        value = value.date()
    serial = (value - EXCEL_ORIGIN_DATE).days
    if 1 < serial <= PHANTOM_LEAP_SERIAL:
        serial -= 1
    return serial


def _calendar_date(year: int, month: int, day: int) -> Optional[date]:
    text = f"{year:04d}-{month:02d}-{day:02d}"
    try:
        parsed = pd.to_datetime(text, format="%Y-%m-%d", errors="coerce")
    except (ValueError, OverflowError):
        return None
    return _to_date(parsed)


def _day_first(match: "re.Match[str]") -> Optional[date]:
    day, month, year = (int(g) for g in match.groups())
    if not (1 <= day <= 31 and 1 <= month <= 12 and year >= 1900):
        return None
    return _calendar_date(year, month, day)


def _iso(match: "re.Match[str]") -> Optional[date]:
    year, month, day = (int(g) for g in match.groups())
    return _calendar_date(year, month, day)


def _free_form(text: str) -> Optional[date]:
    """Best-effort parse; text must spell out year, month and day."""
    try:
        first = date_parser.parse(text, default=_DEFAULT_A)
        second = date_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        logger.debug("Free-form text %r is missing part of a date", text)
        return None
    return first.date()


def parse_text_date(text: str) -> Optional[date]:
    text = text.strip()
    if not text:
        return None
    match = DAY_FIRST_PATTERN.match(text)
    if match:
        parsed = _day_first(match)
        if parsed is None:
            logger.debug("Day-first text %r is not a valid date", text)
        return parsed
    match = ISO_PATTERN.match(text)
    if match:
        parsed = _iso(match)
        if parsed is None:
            logger.debug("ISO text %r is not a valid date", text)
        return parsed
    return _free_form(text)


def parse_date(raw: object) -> Optional[date]:
    """Normalise a raw cell to a calendar date, or ``None`` when unparseable."""
    if is_blank(raw):
        return None
    if isinstance(raw, (bool, np.bool_)):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, numbers.Real):
        return excel_serial_to_date(raw)
    return parse_text_date(str(raw))


def format_expiry_date(value: date, fmt: Optional[str] = None) -> str:
    if fmt:
        return value.strftime(fmt)
    return f"{value.month}/{value.day}/{value.year}"


def days_until(expiry: date, reference: date) -> int:
    """Whole days from ``reference`` to ``expiry``, rounded up."""
    if isinstance(reference, pd.Timestamp):
        reference = reference.to_pydatetime()
    if isinstance(reference, datetime):
        ref = reference.replace(tzinfo=None)
    else:
        ref = datetime.combine(reference, time())
    delta = datetime.combine(expiry, time()) - ref
    return math.ceil(delta / timedelta(days=1))
