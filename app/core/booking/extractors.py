"""Field extraction for the passenger-collection steps."""

import re
from typing import Optional

from app.core.seating.allocator import SeatLocation, SeatPreference, SeatType

_WORD_NUMBERS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}
_COUNT = re.compile(r"\b(\d{1,2})\b")
_COUNT_WORD = re.compile(r"\b(" + "|".join(_WORD_NUMBERS) + r")\b")
_AGE = re.compile(r"^\D*?(\d{1,3})\b")
_NAME_PREFIX = re.compile(
    r"^\s*(?:my name is|name is|name:|the name is|it's|it is|i am|i'm|this is)\s+",
    re.IGNORECASE,
)
_PARENTHETICAL = re.compile(r"\([^)]*\)?")
_NAME_SPLIT = re.compile(r"[\s,;]+")
_NAME_TOKEN = re.compile(r"^[A-Za-z][A-Za-z'\-.]*$")

_CONFIRM = re.compile(r"^(confirm|yes|book|proceed|pay|checkout)$")
_AUTO = re.compile(r"\b(auto|auto-assign|auto assign|assign seats|assign them|assign)\b")
_MANUAL = re.compile(
    r"\b(manual|manually|choose seats|choose myself|pick seats|select seats"
    r"|i'll choose|i will choose|i'll pick|i will pick|i want to pick|change seats)\b"
)

_SEAT_TYPES = (
    (re.compile(r"\b(window|win|wnd)\b"), SeatType.WINDOW),
    (re.compile(r"\b(aisle|ais)\b"), SeatType.AISLE),
    (re.compile(r"\b(middle|mid)\b"), SeatType.MIDDLE),
)
_LOCATIONS = (
    (re.compile(r"\b(front|forward)\b"), SeatLocation.FRONT),
    (re.compile(r"\b(back|rear|rearward)\b"), SeatLocation.BACK),
    (re.compile(r"\b(wing|wings)\b"), SeatLocation.NEAR_WINGS),
    (re.compile(r"\b(exit|exits)\b"), SeatLocation.NEAR_EXIT),
)

_GENDER_WORDS = {
    "male": "Male", "man": "Male", "boy": "Male",
    "female": "Female", "woman": "Female", "girl": "Female",
    "other": "Other", "nonbinary": "Other", "non-binary": "Other",
}
# Abbreviations only count when they are the whole reply ("m", "fem")
_GENDER_PREFIXES = (("male", "Male"), ("female", "Female"), ("other", "Other"))


def normalize(text: Optional[str]) -> str:
    """Lowercase, trim and drop trailing punctuation."""
    return (text or "").strip().lower().rstrip(".!?")


def title_case(value: str) -> str:
    return " ".join(part[:1].upper() + part[1:].lower() for part in value.split())


def extract_passenger_count(text: Optional[str]) -> Optional[int]:
    """Number of travelers from "2", "2 adults" or "two"."""
    if not text:
        return None
    match = _COUNT.search(text)
    if match:
        return int(match.group(1))
    match = _COUNT_WORD.search(text.lower())
    if match:
        return _WORD_NUMBERS[match.group(1)]
    return None


def extract_name(text: Optional[str]) -> Optional[str]:
    """Full name, title-cased. None unless it has a letter and 2+ characters."""
    if not text:
        return None
    cleaned = _PARENTHETICAL.sub(" ", _NAME_PREFIX.sub("", text.strip()))

    # Leading run of name words ("Mary Anne Smith, 34" -> "Mary Anne Smith")
    words = []
    for token in _NAME_SPLIT.split(cleaned):
        if _NAME_TOKEN.match(token):
            words.append(token)
        elif words:
            break

    if words:
        name = " ".join(words)
    else:
        name = re.sub(r"[^A-Za-z'\-]", "", cleaned.split()[0]) if cleaned.split() else ""

    name = name.strip()
    if len(name) < 2 or not re.search(r"[A-Za-z]", name):
        return None
    return title_case(name)


def extract_age(text: Optional[str]) -> Optional[int]:
    """Age in whole years, valid range 1-120."""
    if not text:
        return None
    match = _AGE.match(text.strip())
    if not match:
        return None
    age = int(match.group(1))
    return age if 1 <= age <= 120 else None


def extract_gender(text: Optional[str]) -> Optional[str]:
    """Male / Female / Other from a gender word or a one-word abbreviation ("m", "fem")."""
    tokens = re.findall(r"[a-z]+(?:-[a-z]+)?", normalize(text))
    for token in tokens:
        if token in _GENDER_WORDS:
            return _GENDER_WORDS[token]
    if len(tokens) == 1:
        for word, gender in _GENDER_PREFIXES:
            if word.startswith(tokens[0]):
                return gender
    return None


def extract_seat_preference(text: Optional[str]) -> SeatPreference:
    """Map free text to a seat preference; unknown input means no preference."""
    lowered = normalize(text)
    pref = SeatPreference()
    for pattern, seat_type in _SEAT_TYPES:
        if pattern.search(lowered):
            pref.seat_type = seat_type
    for pattern, location in _LOCATIONS:
        if pattern.search(lowered):
            pref.location = location
    return pref


def detect_seat_flow_choice(text: Optional[str]) -> Optional[str]:
    """Return "auto", "manual" or None."""
    lowered = normalize(text)
    if _MANUAL.search(lowered):
        return "manual"
    if _AUTO.search(lowered):
        return "auto"
    return None


def is_confirmation(text: Optional[str]) -> bool:
    """Explicit go-ahead: confirm / yes / book / proceed / pay / checkout."""
    return bool(_CONFIRM.match(normalize(text)))


_TRAVEL_CLASSES = (
    (re.compile(r"\bfirst[\s-]+class\b"), "First"),
    (re.compile(r"\bbusiness\b"), "Business"),
    (re.compile(r"\beconomy\b"), "Economy"),
)


def extract_travel_class(text: Optional[str]) -> Optional[str]:
    """Cabin class mentioned alongside the passenger count, if any."""
    lowered = normalize(text)
    for pattern, travel_class in _TRAVEL_CLASSES:
        if pattern.search(lowered):
            return travel_class
    return None
