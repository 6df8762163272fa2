"""
Route extraction.

Finds origin and destination cities in a search message. Explicit
"from X to Y" / "X to Y" phrasing is tried first; otherwise sentence
tokens are scanned with the conservative resolver passes only. Cities
the message leaves out are taken from the previous search context.
"""

import re
from dataclasses import dataclass
from typing import Optional

from app.core.intelligence.cities import CityMatch, CityResolver, get_city_resolver
from app.core.intelligence.session.models import SearchContext

MAX_SCAN_TOKENS = 12

_FROM_TO = re.compile(r"\bfrom\s+(.+?)\s+(?:to|->|→)\s+(.+)$")
_TO = re.compile(r"^(.*?)\s*(?:\bto\b|->|→)\s+(.+)$")
_TOKENS = re.compile(r"[a-z]+")

_STOPWORDS = {
    "flight", "flights", "from", "book", "show", "find", "search", "want",
    "need", "please", "the", "and", "for", "fly", "flying", "going", "get",
    "trip", "travel", "ticket", "tickets", "any", "are", "there", "what",
    "about", "with", "via", "one", "way", "return", "can", "you", "how",
    "cheap", "cheapest", "morning", "evening", "night", "after", "before",
    "under", "below", "only", "today", "tonight", "tomorrow", "next",
    "this", "coming", "day", "week", "month", "year", "also", "then",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "mon", "tue", "wed", "thu", "fri", "sat", "sun",
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept",
    "oct", "nov", "dec", "hey", "hello", "hii", "let", "lets", "see",
    "some", "options", "available", "plan", "have",
}

# Words that end a place phrase ("delhi on friday" -> "delhi")
_PLACE_STOP = _STOPWORDS | {"on", "at", "by", "in", "to", "around", "late", "early"}


@dataclass
class RouteQuery:
    """Resolved (possibly partial) origin and destination."""

    origin: Optional[CityMatch] = None
    destination: Optional[CityMatch] = None
    from_message: bool = False  # At least one city came from the message itself

    @property
    def is_complete(self) -> bool:
        return self.origin is not None and self.destination is not None


def _place(phrase: str) -> str:
    """Leading place words of a phrase, stopping at dates, times and filler."""
    words = []
    for word in phrase.split():
        cleaned = word.strip(".,!?;:")
        if not cleaned or cleaned in _PLACE_STOP or any(ch.isdigit() for ch in cleaned):
            break
        words.append(cleaned)
    return " ".join(words[:3])


def _trailing_place(phrase: str) -> str:
    """Trailing place words of a phrase ("cheap flights chennai" -> "chennai")."""
    words = []
    for word in reversed(phrase.split()):
        cleaned = word.strip(".,!?;:")
        if not cleaned or cleaned in _PLACE_STOP or any(ch.isdigit() for ch in cleaned):
            break
        words.insert(0, cleaned)
    return " ".join(words[-3:])


def _resolve_phrase(resolver: CityResolver, phrase: str) -> Optional[CityMatch]:
    if not phrase:
        return None
    return resolver.resolve(phrase, allow_loose=True)


def _scan_tokens(resolver: CityResolver, text: str) -> list[CityMatch]:
    tokens = [
        t for t in _TOKENS.findall(text)
        if len(t) >= 3 and t not in _STOPWORDS
    ][:MAX_SCAN_TOKENS]

    found: list[CityMatch] = []
    for token in tokens:
        match = resolver.resolve(token, allow_loose=False)
        if match is None or not resolver.knows_code(match.iata):
            continue
        if match not in found:
            found.append(match)
    return found


def extract_route(
    message: str,
    context: Optional[SearchContext] = None,
    resolver: Optional[CityResolver] = None,
) -> RouteQuery:
    """
    Extract origin and destination from a message.

    Args:
        message: User message
        context: Previous search context used to fill in a missing city
        resolver: City resolver (defaults to the shared one)

    Returns:
        RouteQuery; is_complete is False when either city is unknown
    """
    resolver = resolver or get_city_resolver()
    text = " ".join(message.strip().lower().split())
    origin: Optional[CityMatch] = None
    destination: Optional[CityMatch] = None

    match = _FROM_TO.search(text)
    if match:
        origin = _resolve_phrase(resolver, _place(match.group(1)))
        destination = _resolve_phrase(resolver, _place(match.group(2)))
    else:
        match = _TO.search(text)
        if match:
            origin = _resolve_phrase(resolver, _trailing_place(match.group(1)))
            destination = _resolve_phrase(resolver, _place(match.group(2)))

    if origin is None and destination is None:
        found = _scan_tokens(resolver, text)
        if len(found) >= 2:
            origin, destination = found[0], found[1]
        elif len(found) == 1:
            city = found[0]
            if re.search(rf"\bto\s+{re.escape(city.city.lower())}\b", text) or re.search(
                rf"\bto\s+{re.escape(city.iata.lower())}\b", text
            ):
                destination = city
            else:
                origin = city

    from_message = origin is not None or destination is not None

    if context is not None:
        origin = origin or context.from_city
        destination = destination or context.to_city

    return RouteQuery(origin=origin, destination=destination, from_message=from_message)
