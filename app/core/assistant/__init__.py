"""
Assistant Module

Conversational flight-booking assistant:
- Route: Origin/destination extraction from search messages
- Engine: Per-turn orchestration over sessions, lookup, booking and seating
"""

from app.core.assistant.route import RouteQuery, extract_route
from app.core.assistant.engine import (
    AssistantEngine,
    AssistantError,
    AuthenticationRequiredError,
    NoActiveDraftError,
    SeatSelectionError,
    TurnResult,
    get_assistant_engine,
)

__all__ = [
    # Route
    "RouteQuery",
    "extract_route",
    # Engine
    "AssistantEngine",
    "AssistantError",
    "AuthenticationRequiredError",
    "NoActiveDraftError",
    "SeatSelectionError",
    "TurnResult",
    "get_assistant_engine",
]
