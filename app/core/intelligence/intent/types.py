"""Intent types for message routing."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Intent(str, Enum):
    """Top-level message intents, in routing precedence order."""

    # Conversation control
    GREETING = "greeting"              # Hi, hello
    RESET = "reset"                    # Start over, clear chat
    CANCEL_BOOKING = "cancel_booking"  # Drop the selected flight and draft
    SUGGEST = "suggest"                # "Which should I pick?"

    # Booking in progress
    BOOKING_STEP = "booking_step"      # Passenger count, details, seats, confirm

    # Working with the current results
    BOOK_BY_NUMBER = "book_by_number"  # "2", "book #2"
    BOOK_BY_CODE = "book_by_code"      # "book 6E201"
    SELECT_BY_CODE = "select_by_code"  # "6E201"
    FILTER = "filter"                  # "under 5000", "morning", "only indigo"

    # Fallback
    SEARCH = "search"                  # New origin/destination search


@dataclass
class IntentResult:
    """Result of intent decoding."""

    intent: Intent

    # Captured arguments
    code: Optional[str] = None    # Flight number for *_BY_CODE
    index: Optional[int] = None   # 1-based result number for BOOK_BY_NUMBER

    @property
    def is_selection(self) -> bool:
        """Check if the intent picks a flight from the results."""
        return self.intent in {
            Intent.BOOK_BY_NUMBER,
            Intent.BOOK_BY_CODE,
            Intent.SELECT_BY_CODE,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "intent": self.intent.value,
            "code": self.code,
            "index": self.index,
        }
