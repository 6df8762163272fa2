"""
Session data models.

One SessionData per conversation: turn history, the last resolved search
context, the most recent result set, the selected flight and the booking
draft in progress.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from app.core.booking.draft import BookingDraft
from app.core.flights.types import FlightRecord
from app.core.intelligence.cities import CityMatch


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class SearchContext:
    """Last resolved origin, destination and travel date."""

    from_city: Optional[CityMatch] = None
    to_city: Optional[CityMatch] = None
    date: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "fromCity": self.from_city.to_dict() if self.from_city else None,
            "toCity": self.to_city.to_dict() if self.to_city else None,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SearchContext":
        """Create from dictionary."""
        data = data or {}
        return cls(
            from_city=CityMatch.from_dict(data["fromCity"]) if data.get("fromCity") else None,
            to_city=CityMatch.from_dict(data["toCity"]) if data.get("toCity") else None,
            date=data.get("date"),
        )


@dataclass
class SessionData:
    """
    Complete session data stored in Redis.

    History is append-only; callers truncate it themselves when passing it
    to the help responder.
    """

    session_id: str = field(default_factory=lambda: str(uuid4()))

    # Conversation
    history: list[dict] = field(default_factory=list)  # {"role", "content"}
    context: SearchContext = field(default_factory=SearchContext)

    # Search and booking
    last_search_results: list[FlightRecord] = field(default_factory=list)
    selected_flight: Optional[FlightRecord] = None
    booking_draft: Optional[BookingDraft] = None

    # Metadata
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def awaiting_passenger_count(self) -> bool:
        """A flight is selected but no draft has been started yet."""
        return self.selected_flight is not None and self.booking_draft is None

    @property
    def in_booking(self) -> bool:
        """A draft is being collected (completed drafts do not count)."""
        return self.booking_draft is not None and self.booking_draft.stage.value != "completed"

    def add_turn(self, role: str, content: str) -> None:
        """Append one turn to the history."""
        self.history.append({"role": role, "content": content})
        self.updated_at = _utcnow()

    def recent_history(self, turns: int) -> list[dict]:
        """Last N history entries, oldest first."""
        if turns <= 0:
            return []
        return list(self.history[-turns:])

    def clear_booking(self) -> None:
        """Drop the selected flight and draft; keep results and context."""
        self.selected_flight = None
        self.booking_draft = None

    def start_search(self, context: SearchContext, results: list[FlightRecord]) -> None:
        """Replace the search context and results, discarding any booking."""
        self.context = context
        self.last_search_results = list(results)
        self.clear_booking()

    def to_json(self) -> str:
        """Convert to JSON string for Redis storage."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "session_id": self.session_id,
            "history": self.history,
            "context": self.context.to_dict(),
            "last_search_results": [f.to_dict() for f in self.last_search_results],
            "selected_flight": self.selected_flight.to_dict() if self.selected_flight else None,
            "booking_draft": self.booking_draft.to_dict() if self.booking_draft else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_json(cls, json_str: str) -> "SessionData":
        """Create from JSON string."""
        data = json.loads(json_str)
        selected = data.get("selected_flight")
        draft = data.get("booking_draft")
        return cls(
            session_id=data["session_id"],
            history=data.get("history", []),
            context=SearchContext.from_dict(data.get("context")),
            last_search_results=[
                FlightRecord.from_dict(f) for f in data.get("last_search_results", [])
            ],
            selected_flight=FlightRecord.from_dict(selected) if selected else None,
            booking_draft=BookingDraft.from_dict(draft) if draft else None,
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
