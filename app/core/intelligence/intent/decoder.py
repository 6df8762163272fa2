"""
Deterministic intent decoding.

Rules are evaluated in a fixed order and the first match wins:

1. greeting
2. reset
3. cancel booking
4. suggestion request (only with results)
5. booking step (awaiting a passenger count or mid-draft)
6. book by number / book by code (only with results)
7. select by code / filter (only with results, not a new search)
8. search (fallback)

While a booking is active, rule 5 captures every message so that
passenger details are never reinterpreted as searches or filters.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from app.core.flights.filters import has_filter_directive
from app.core.intelligence.cities import get_city_resolver
from app.core.intelligence.session.models import SessionData
from .types import Intent, IntentResult

logger = logging.getLogger(__name__)

_GREETING = re.compile(r"^(hi|hello|hey)\b")
_RESET = re.compile(r"^(reset|start over|clear chat)\b(?!\s+booking)")
_CANCEL = re.compile(r"\b(cancel booking|discard booking|clear booking|reset booking|cancel)\b")
_SUGGEST = re.compile(
    r"\b(what do you think|any suggestions?|suggest|recommend|recommendation"
    r"|which should i (pick|choose|take)|help me choose|which is better|which one)\b"
)
_BOOK_NUMBER = re.compile(r"^\s*(?:book|finali[sz]e|select)?\s*#?\s*(\d{1,2})\s*$")
_BOOK_CODE = re.compile(
    r"\b(?:book|finali[sz]e|select)\b[\s:,-]*((?=[A-Za-z0-9-]*\d)[A-Za-z0-9-]{2,8})\b"
)
_BARE_CODE = re.compile(r"^\s*([A-Za-z0-9]{1,3}[\s-]?\d{2,5})\s*$")
_NEW_SEARCH = re.compile(
    r"\bfrom\s+[a-z]+.*?\s(?:to|->|→)\s|\bflights?\s+(?:from|to|between)\b|^\s*(?:search|find)\b"
)
_PLACE_TO_PLACE = re.compile(r"\b([a-z]{3,})\s*(?:\bto\b|->|→)\s*([a-z]{3,})\b")


@dataclass(frozen=True)
class RoutingState:
    """The parts of a session that routing depends on."""

    has_results: bool = False
    booking_active: bool = False
    result_codes: frozenset[str] = frozenset()

    @classmethod
    def from_session(cls, session: SessionData) -> "RoutingState":
        return cls(
            has_results=bool(session.last_search_results),
            booking_active=session.awaiting_passenger_count or session.in_booking,
            result_codes=frozenset(
                _compact_code(f.flight_number) for f in session.last_search_results
            ),
        )


def _normalize(text: str) -> str:
    return " ".join(text.strip().lower().split())


def _names_city_pair(text: str) -> bool:
    """A "<city> to <city>" pair where both sides are known catalog cities or codes."""
    resolver = get_city_resolver()
    for match in _PLACE_TO_PLACE.finditer(text):
        origin = resolver.resolve(match.group(1), allow_loose=False)
        destination = resolver.resolve(match.group(2), allow_loose=False)
        if origin is None or destination is None or origin == destination:
            continue
        if resolver.knows_code(origin.iata) and resolver.knows_code(destination.iata):
            return True
    return False


def looks_like_new_search(text: str) -> bool:
    """Explicit search phrasing ("from X to Y", "Chennai to Delhi", "flights to", "search", "find")."""
    text = _normalize(text)
    return bool(_NEW_SEARCH.search(text)) or _names_city_pair(text)


def _compact_code(code: str) -> str:
    return re.sub(r"[\s-]", "", code).upper()


# === Rules ===

Predicate = Callable[[str, RoutingState], bool]
Builder = Callable[[str, RoutingState], IntentResult]


def _is_greeting(text: str, state: RoutingState) -> bool:
    return bool(_GREETING.match(text)) and not looks_like_new_search(text)


def _is_reset(text: str, state: RoutingState) -> bool:
    return bool(_RESET.match(text))


def _is_cancel(text: str, state: RoutingState) -> bool:
    return bool(_CANCEL.search(text))


def _is_suggest(text: str, state: RoutingState) -> bool:
    return state.has_results and bool(_SUGGEST.search(text))


def _is_booking_step(text: str, state: RoutingState) -> bool:
    return state.booking_active


def _is_book_by_number(text: str, state: RoutingState) -> bool:
    return state.has_results and bool(_BOOK_NUMBER.match(text))


def _book_by_number(text: str, state: RoutingState) -> IntentResult:
    match = _BOOK_NUMBER.match(text)
    return IntentResult(Intent.BOOK_BY_NUMBER, index=int(match.group(1)))


def _is_book_by_code(text: str, state: RoutingState) -> bool:
    return state.has_results and bool(_BOOK_CODE.search(text))


def _book_by_code(text: str, state: RoutingState) -> IntentResult:
    match = _BOOK_CODE.search(text)
    return IntentResult(Intent.BOOK_BY_CODE, code=match.group(1).upper())


def _is_select_by_code(text: str, state: RoutingState) -> bool:
    if not state.has_results or looks_like_new_search(text):
        return False
    match = _BARE_CODE.match(text)
    return bool(match) and _compact_code(match.group(1)) in state.result_codes


def _select_by_code(text: str, state: RoutingState) -> IntentResult:
    match = _BARE_CODE.match(text)
    return IntentResult(Intent.SELECT_BY_CODE, code=_compact_code(match.group(1)))


def _is_filter(text: str, state: RoutingState) -> bool:
    return (
        state.has_results
        and not looks_like_new_search(text)
        and has_filter_directive(text)
    )


def _simple(intent: Intent) -> Builder:
    return lambda text, state: IntentResult(intent)


RULES: tuple[tuple[Predicate, Builder], ...] = (
    (_is_greeting, _simple(Intent.GREETING)),
    (_is_reset, _simple(Intent.RESET)),
    (_is_cancel, _simple(Intent.CANCEL_BOOKING)),
    (_is_suggest, _simple(Intent.SUGGEST)),
    (_is_booking_step, _simple(Intent.BOOKING_STEP)),
    (_is_book_by_number, _book_by_number),
    (_is_book_by_code, _book_by_code),
    (_is_select_by_code, _select_by_code),
    (_is_filter, _simple(Intent.FILTER)),
)


class IntentDecoder:
    """Ordered (predicate, builder) rules with SEARCH as the fallback."""

    def __init__(self, rules: Optional[tuple[tuple[Predicate, Builder], ...]] = None):
        self._rules = rules if rules is not None else RULES

    def decode(self, message: str, state: RoutingState) -> IntentResult:
        """
        Decode a message into an intent.

        Args:
            message: Raw user message
            state: Routing view of the session

        Returns:
            IntentResult (SEARCH when no rule matches)
        """
        text = _normalize(message)
        for predicate, builder in self._rules:
            if predicate(text, state):
                result = builder(text, state)
                logger.debug(f"Decoded intent: {result.intent.value}")
                return result
        return IntentResult(Intent.SEARCH)


# Singleton
_decoder: Optional[IntentDecoder] = None


def get_intent_decoder() -> IntentDecoder:
    """Get singleton IntentDecoder."""
    global _decoder
    if _decoder is None:
        _decoder = IntentDecoder()
    return _decoder


def decode_intent(message: str, session: SessionData) -> IntentResult:
    """Convenience function to decode a message against a session."""
    return get_intent_decoder().decode(message, RoutingState.from_session(session))
