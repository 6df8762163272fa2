"""
Intelligence Layer Module

Deterministic language understanding for the assistant: city resolution,
date extraction, intent decoding and session management.

Usage:
    from app.core.intelligence import (
        resolve_city,
        parse_relative_date,
        decode_intent,
        get_session_manager,
    )

    resolve_city("chenai")            # CityMatch(city="Chennai", iata="MAA")
    parse_relative_date("next friday")

    manager = await get_session_manager()
    session = await manager.get_or_create()
    result = decode_intent("cheapest after 6pm", session)
"""

# Cities and dates
from app.core.intelligence.cities import CityMatch, CityResolver, get_city_resolver, resolve_city
from app.core.intelligence.dates import parse_relative_date

# Session Management
from app.core.intelligence.session.models import SearchContext, SessionData
from app.core.intelligence.session.manager import SessionManager, get_session_manager

# Intent Decoding
from app.core.intelligence.intent.types import Intent, IntentResult
from app.core.intelligence.intent.decoder import (
    IntentDecoder,
    RoutingState,
    decode_intent,
    get_intent_decoder,
)

__all__ = [
    # Cities and dates
    "CityMatch",
    "CityResolver",
    "get_city_resolver",
    "resolve_city",
    "parse_relative_date",
    # Session
    "SearchContext",
    "SessionData",
    "SessionManager",
    "get_session_manager",
    # Intent
    "Intent",
    "IntentResult",
    "IntentDecoder",
    "RoutingState",
    "decode_intent",
    "get_intent_decoder",
]
