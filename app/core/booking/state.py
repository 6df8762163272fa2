"""Booking draft state machine."""

from enum import Enum
from typing import Set


class BookingStage(str, Enum):
    """Stages of the passenger-collection and seat-assignment flow."""

    # Passenger details (looped per passenger)
    COLLECT_NAME = "collect_name"
    COLLECT_AGE = "collect_age"
    COLLECT_GENDER = "collect_gender"

    # Seat preferences (looped per passenger)
    COLLECT_SEAT_PREFERENCES = "collect_seat_preferences"

    # Seats
    COLLECT_SEAT_FLOW = "collect_seat_flow"
    SEAT_ASSIGNMENT = "seat_assignment"
    COLLECT_MANUAL_CHOICE = "collect_manual_choice"

    # Terminal state (seat selection reopens only on a conflict at payment)
    COMPLETED = "completed"


# Valid stage transitions (staying in the same stage is always allowed)
VALID_TRANSITIONS: dict[BookingStage, Set[BookingStage]] = {
    BookingStage.COLLECT_NAME: {
        BookingStage.COLLECT_AGE,
    },
    BookingStage.COLLECT_AGE: {
        BookingStage.COLLECT_GENDER,
    },
    BookingStage.COLLECT_GENDER: {
        BookingStage.COLLECT_NAME,  # Next passenger
        BookingStage.COLLECT_SEAT_PREFERENCES,
    },
    BookingStage.COLLECT_SEAT_PREFERENCES: {
        BookingStage.COLLECT_SEAT_FLOW,
    },
    BookingStage.COLLECT_SEAT_FLOW: {
        BookingStage.SEAT_ASSIGNMENT,
        BookingStage.COLLECT_MANUAL_CHOICE,
    },
    BookingStage.SEAT_ASSIGNMENT: {
        BookingStage.COLLECT_MANUAL_CHOICE,
        BookingStage.COMPLETED,
    },
    BookingStage.COLLECT_MANUAL_CHOICE: {
        BookingStage.SEAT_ASSIGNMENT,
        BookingStage.COMPLETED,
    },
    BookingStage.COMPLETED: {
        BookingStage.COLLECT_MANUAL_CHOICE,  # Seat taken before payment
    },
}

STAGE_FIELDS: dict[BookingStage, str] = {
    BookingStage.COLLECT_NAME: "full name",
    BookingStage.COLLECT_AGE: "age",
    BookingStage.COLLECT_GENDER: "gender",
    BookingStage.COLLECT_SEAT_PREFERENCES: "seat preference",
    BookingStage.COLLECT_SEAT_FLOW: "seat assignment choice",
    BookingStage.SEAT_ASSIGNMENT: "seat confirmation",
    BookingStage.COLLECT_MANUAL_CHOICE: "seat selection",
}


def can_transition(from_stage: BookingStage, to_stage: BookingStage) -> bool:
    """Check if a stage transition is valid."""
    if from_stage == to_stage:
        return True
    return to_stage in VALID_TRANSITIONS.get(from_stage, set())


def is_terminal_stage(stage: BookingStage) -> bool:
    """Check if stage is terminal."""
    return stage == BookingStage.COMPLETED


def is_collecting_stage(stage: BookingStage) -> bool:
    """Check if stage collects per-passenger details."""
    return stage in {
        BookingStage.COLLECT_NAME,
        BookingStage.COLLECT_AGE,
        BookingStage.COLLECT_GENDER,
        BookingStage.COLLECT_SEAT_PREFERENCES,
    }


def field_for_stage(stage: BookingStage) -> str:
    """Human-readable name of what a stage is waiting for."""
    return STAGE_FIELDS.get(stage, "booking details")
