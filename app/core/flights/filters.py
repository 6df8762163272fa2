"""
Result Filter.

Applies budget, time-of-day, airline and sort directives found in free
text to a flight result set. Filters run first (order independent), sort
directives always run last. The input sequence is never modified.
"""

import logging
import re
from typing import Optional, Sequence

from .types import FlightRecord

logger = logging.getLogger(__name__)

_UNDER = re.compile(r"(?:under|below|less than|<)\s*(?:₹|rs\.?|inr)?\s*([0-9][0-9,]*)")
# Clock ranges ("7-9 am", "10:30-12") and dates ("2025-12-25") are not budgets
_RANGE = re.compile(
    r"(?:₹|rs\.?|inr)?\s*(?<![\d:-])([0-9][0-9,]*)\s*(?:-|–|to)\s*(?:₹|rs\.?|inr)?\s*"
    r"([0-9][0-9,]*)(?![\d:-]|\s*(?:am|pm|hrs?)\b)"
)
_URGENT = re.compile(r"\b(earliest|immediate|asap|soon|now|today|tonight)\b")
_CHEAP = re.compile(r"\b(cheap|cheapest|lowest|budget|sort by price)\b")
_MORNING = re.compile(r"\bmorning\b")
_EVENING = re.compile(r"\bevening\b")
_AFTER = re.compile(r"\bafter\s+([0-2]?\d(?::[0-5]\d)?\s*(?:am|pm)?)\b")
_BEFORE = re.compile(r"\bbefore\s+([0-2]?\d(?::[0-5]\d)?\s*(?:am|pm)?)\b")
_ONLY = re.compile(r"\bonly\s+([a-z][a-z ]*)")
_EXCLUDE = re.compile(r"\bno\s+([a-z][a-z ]*)")

_CLOCK = re.compile(r"\b([0-2]?\d)(?::([0-5]\d))?\s*(am|pm)?\b")
_HHMM = re.compile(r"^([0-1]?\d|2[0-3]):([0-5]\d)")
_AMPM = re.compile(r"([0-1]?\d)(?::([0-5]\d))?\s*(am|pm)", re.IGNORECASE)
_LEADING = re.compile(r"^([0-2]?\d)")

# Words that end an airline phrase ("only indigo flights after 6pm" -> "indigo")
_AIRLINE_STOP = {
    "flight", "flights", "please", "after", "before", "under", "below",
    "and", "or", "in", "on", "the", "morning", "evening", "cheap",
    "cheapest", "options", "ones", "today", "tonight", "tomorrow",
}

_DIRECTIVES = (
    _UNDER, _RANGE, _URGENT, _CHEAP, _MORNING, _EVENING,
    _AFTER, _BEFORE, _ONLY, _EXCLUDE,
)


def parse_hour(text: Optional[str]) -> Optional[int]:
    """Parse an hour of day from "7pm", "19:30", "7:30 am" or "7".

    Returns:
        Hour in 0-23, or None if unparseable
    """
    if not text:
        return None
    match = _CLOCK.search(str(text).lower())
    if not match:
        return None
    hour = int(match.group(1))
    meridiem = match.group(3)
    if meridiem == "pm" and hour < 12:
        hour += 12
    if meridiem == "am" and hour == 12:
        hour = 0
    return hour if 0 <= hour <= 23 else None


def departure_hour(flight: FlightRecord) -> Optional[int]:
    """Departure hour of a flight, None when the time is unparseable.

    Handles "HH:MM" (24-hour), "H[:MM] am/pm" and a bare leading hour.
    """
    if not flight.departure_time:
        return None
    value = str(flight.departure_time).strip()

    match = _HHMM.match(value)
    if match and not _AMPM.match(value):
        return int(match.group(1))

    match = _AMPM.search(value)
    if match:
        hour = int(match.group(1))
        meridiem = match.group(3).lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
        return hour

    match = _LEADING.match(value)
    if match:
        hour = int(match.group(1))
        if 0 <= hour < 24:
            return hour
    return None


def _money(value: str) -> float:
    return float(value.replace(",", ""))


def _airline_term(captured: str) -> str:
    words = []
    for word in captured.split():
        if word in _AIRLINE_STOP:
            break
        words.append(word)
    return " ".join(words)


def has_filter_directive(text: Optional[str]) -> bool:
    """Check whether text contains any recognized filter or sort directive."""
    lowered = (text or "").lower()
    return any(pattern.search(lowered) for pattern in _DIRECTIVES)


def apply_filters(flights: Sequence[FlightRecord], text: Optional[str]) -> list[FlightRecord]:
    """Apply every directive found in text to a flight result set.

    Args:
        flights: Current result set (not modified)
        text: Free-text filter phrase, e.g. "evening flights under 6000"

    Returns:
        New filtered and/or reordered list
    """
    result = list(flights)
    lowered = (text or "").lower()

    # Budget ceiling
    under = _UNDER.search(lowered)
    if under:
        limit = _money(under.group(1))
        result = [f for f in result if f.price is not None and f.price <= limit]

    # Budget range (bounds in either order)
    span = _RANGE.search(lowered)
    if span:
        a, b = _money(span.group(1)), _money(span.group(2))
        low, high = min(a, b), max(a, b)
        result = [f for f in result if f.price is not None and low <= f.price <= high]

    # Time of day
    if _EVENING.search(lowered):
        result = [f for f in result if departure_hour(f) is not None and departure_hour(f) >= 17]
    if _MORNING.search(lowered):
        result = [f for f in result if departure_hour(f) is not None and departure_hour(f) < 12]

    after = _AFTER.search(lowered)
    if after:
        hour = parse_hour(after.group(1))
        if hour is not None:
            result = [
                f for f in result
                if departure_hour(f) is not None and departure_hour(f) >= hour
            ]

    before = _BEFORE.search(lowered)
    if before:
        hour = parse_hour(before.group(1))
        if hour is not None:
            result = [
                f for f in result
                if departure_hour(f) is not None and departure_hour(f) <= hour
            ]

    # Airline inclusion / exclusion
    only = _ONLY.search(lowered)
    if only:
        term = _airline_term(only.group(1))
        if term:
            result = [f for f in result if term in (f.airline or "").lower()]

    exclude = _EXCLUDE.search(lowered)
    if exclude:
        term = _airline_term(exclude.group(1))
        if term:
            result = [f for f in result if term not in (f.airline or "").lower()]

    # Sorts last; sorted() is stable
    if _URGENT.search(lowered):
        result = sorted(
            result,
            key=lambda f: (departure_hour(f) is None, departure_hour(f) or 0),
        )
    if _CHEAP.search(lowered):
        result = sorted(result, key=lambda f: f.price or 0)

    logger.debug(f"Filter '{lowered}' kept {len(result)}/{len(flights)} flights")
    return result
