"""
Date Extractor.

Finds a travel date in free text and returns it as YYYY-MM-DD.

Recognized forms:
- ISO dates: 2025-11-03
- Day-first numeric dates: 03/11/2025, 03-11-2025
- today / tonight / tomorrow / day after tomorrow
- [this|next] <weekday>
- Month-name dates: 15 Nov, November 15 2025
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

logger = logging.getLogger(__name__)

_ISO = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_DAY_FIRST = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b")
_WEEKDAY = re.compile(
    r"\b(?:(this|next|coming)\s+)?"
    r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday"
    r"|mon|tues|tue|wed|thurs|thur|thu|fri|sat|sun)\b"
)
_MONTHS = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*"
_DAY_MONTH = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTHS})(?:,?\s+(\d{{4}}))?\b"
)
_MONTH_DAY = re.compile(
    rf"\b({_MONTHS})\s+(\d{{1,2}})(?:st|nd|rd|th)?(?:,?\s+(\d{{4}}))?\b"
)

_WEEKDAYS = {
    "mon": MO, "tue": TU, "wed": WE, "thu": TH, "fri": FR, "sat": SA, "sun": SU,
}


def _format(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _weekday_date(qualifier: Optional[str], name: str, today: date) -> date:
    weekday = _WEEKDAYS[name[:3]]

    if qualifier != "next":
        # Nearest occurrence on or after today
        return today + relativedelta(weekday=weekday(+1))

    # Strictly after today, and never inside the current Mon-Sun week
    candidate = today + relativedelta(days=+1, weekday=weekday(+1))
    end_of_week = today + relativedelta(weekday=SU(+1))
    if candidate <= end_of_week:
        candidate += timedelta(days=7)
    return candidate


def _month_name_date(
    day: str,
    month: str,
    year: Optional[str],
    today: date,
) -> Optional[date]:
    text = f"{day} {month} {year}" if year else f"{day} {month}"
    try:
        parsed = date_parser.parse(
            text,
            default=datetime(today.year, today.month, today.day),
            dayfirst=True,
        ).date()
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unparseable month-name date '{text}': {e}")
        return None

    # A date without a year that already passed means next year
    if year is None and parsed < today:
        parsed = parsed + relativedelta(years=+1)
    return parsed


def parse_relative_date(text: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Extract a travel date from free text.

    Args:
        text: Free-text message or phrase
        today: Reference date (defaults to the current local date)

    Returns:
        Date as YYYY-MM-DD, or None if no valid date is present
    """
    if not text:
        return None

    today = today or date.today()
    lowered = text.lower()

    match = _ISO.search(lowered)
    if match:
        value = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return _format(value) if value else None

    match = _DAY_FIRST.search(lowered)
    if match:
        value = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        return _format(value) if value else None

    if "day after tomorrow" in lowered:
        return _format(today + timedelta(days=2))
    if re.search(r"\btomorrow\b", lowered):
        return _format(today + timedelta(days=1))
    if re.search(r"\b(today|tonight)\b", lowered):
        return _format(today)

    match = _WEEKDAY.search(lowered)
    if match:
        return _format(_weekday_date(match.group(1), match.group(2), today))

    match = _DAY_MONTH.search(lowered)
    if match:
        value = _month_name_date(match.group(1), match.group(2), match.group(3), today)
        return _format(value) if value else None

    match = _MONTH_DAY.search(lowered)
    if match:
        value = _month_name_date(match.group(2), match.group(1), match.group(3), today)
        return _format(value) if value else None

    return None
