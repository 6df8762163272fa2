"""
Booking Flow.

Pure stage transitions for a booking draft. Each transition takes the
current draft and the user's text and returns a FlowStep: the new draft,
the reply to send and, where a collaborator is needed (seat allocation,
persistence), an action for the caller to perform. Input drafts are
never mutated.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from app.core.flights.formatting import flight_label, format_price
from app.core.flights.types import FlightRecord
from .draft import BookingDraft
from .extractors import (
    detect_seat_flow_choice,
    extract_age,
    extract_gender,
    extract_name,
    extract_passenger_count,
    extract_seat_preference,
    extract_travel_class,
    is_confirmation,
)
from .state import (
    BookingStage,
    can_transition,
    field_for_stage,
    is_collecting_stage,
)

logger = logging.getLogger(__name__)

SEAT_SELECTION_PATH = "/seat-booking"
PAYMENT_PATH = "/payment"

SEAT_PREFERENCE_HINT = (
    "Seat type: window / aisle / middle, and area: front / back / "
    "near wings / near exit (or 'no preference')."
)
SEAT_FLOW_PROMPT = (
    "Would you like me to auto-assign seats based on these preferences, "
    "or would you rather choose them yourself? Reply 'auto' or 'manual'."
)


class FlowAction(str, Enum):
    """Side effects the caller performs before applying the follow-up transition."""

    ALLOCATE_SEATS = "allocate_seats"
    PERSIST_BOOKING = "persist_booking"


@dataclass
class FlowStep:
    """Result of one booking-flow transition."""

    draft: Optional[BookingDraft]
    reply: str
    action: Optional[FlowAction] = None
    navigate_to: Optional[dict] = None


def _move(draft: BookingDraft, stage: BookingStage) -> None:
    if not can_transition(draft.stage, stage):
        raise ValueError(f"Invalid booking stage transition {draft.stage.value} -> {stage.value}")
    draft.stage = stage


def _seat_selection_navigation(draft: BookingDraft) -> dict:
    return {
        "path": SEAT_SELECTION_PATH,
        "state": {
            "flight": draft.flight.to_dict(),
            "passengers": draft.expected_passengers,
            "travelClass": draft.travel_class,
            "bookingDraft": draft.to_dict(),
        },
    }


def _payment_navigation(draft: BookingDraft, requires_login: bool = False) -> dict:
    state = {
        "bookingId": draft.booking_id,
        "amount": draft.total_amount,
        "bookingDraft": draft.to_dict(),
    }
    if requires_login:
        state["requiresLogin"] = True
    return {"path": PAYMENT_PATH, "state": state}


def _seat_summary(draft: BookingDraft) -> str:
    lines = []
    for number, (passenger, seat) in enumerate(zip(draft.passengers, draft.selected_seats), start=1):
        lines.append(f"{number}. {passenger.full_name or f'Passenger #{number}'}: {seat}")
    return "\n".join(lines)


def _incomplete_reply(draft: BookingDraft) -> str:
    return (
        f"I still need complete details. We're at {field_for_stage(draft.stage)} "
        f"for passenger #{draft.passenger_number}."
    )


# === Start ===


def start_booking(
    flight: FlightRecord,
    text: str,
    max_passengers: int,
    default_class: str = "Economy",
) -> FlowStep:
    """Create a draft from the passenger-count reply.

    Returns a FlowStep without a draft when the count is missing or out
    of range, so the caller keeps waiting for a count.
    """
    count = extract_passenger_count(text)
    if count is None or not 1 <= count <= max_passengers:
        return FlowStep(
            draft=None,
            reply=f"How many passengers are travelling? Please reply with a number from 1 to {max_passengers}.",
        )

    travel_class = extract_travel_class(text) or default_class
    draft = BookingDraft.new(flight, count, travel_class)
    logger.debug(f"Draft started for {flight.flight_number}: {count} passenger(s), {travel_class}")
    noun = "passenger" if count == 1 else "passengers"
    return FlowStep(
        draft=draft,
        reply=(
            f"Great, I'll collect details for {count} {noun} on {flight_label(flight)} "
            f"({travel_class}). Passenger #1: what's the full name?"
        ),
    )


# === Stage Transitions ===


def advance(draft: BookingDraft, text: str) -> FlowStep:
    """Apply one user message to the draft's current stage."""
    if is_collecting_stage(draft.stage) and is_confirmation(text):
        return FlowStep(draft=draft, reply=_incomplete_reply(draft))

    handlers = {
        BookingStage.COLLECT_NAME: _collect_name,
        BookingStage.COLLECT_AGE: _collect_age,
        BookingStage.COLLECT_GENDER: _collect_gender,
        BookingStage.COLLECT_SEAT_PREFERENCES: _collect_seat_preference,
        BookingStage.COLLECT_SEAT_FLOW: _collect_seat_flow,
        BookingStage.SEAT_ASSIGNMENT: _seat_assignment,
        BookingStage.COLLECT_MANUAL_CHOICE: _manual_choice,
        BookingStage.COMPLETED: _completed,
    }
    return handlers[draft.stage](draft, text)


def _collect_name(draft: BookingDraft, text: str) -> FlowStep:
    name = extract_name(text)
    if name is None:
        return FlowStep(
            draft=draft,
            reply=f"Please enter a valid full name for passenger #{draft.passenger_number}.",
        )

    new = draft.copy()
    new.current_passenger.full_name = name
    _move(new, BookingStage.COLLECT_AGE)
    return FlowStep(draft=new, reply=f"Thanks, {name}. Age for passenger #{new.passenger_number}?")


def _collect_age(draft: BookingDraft, text: str) -> FlowStep:
    age = extract_age(text)
    if age is None:
        return FlowStep(
            draft=draft,
            reply=f"Please provide a valid age (1-120) for passenger #{draft.passenger_number}.",
        )

    new = draft.copy()
    new.current_passenger.age = age
    _move(new, BookingStage.COLLECT_GENDER)
    return FlowStep(
        draft=new,
        reply=f"Gender for passenger #{new.passenger_number}? (Male / Female / Other)",
    )


def _collect_gender(draft: BookingDraft, text: str) -> FlowStep:
    gender = extract_gender(text)
    if gender is None:
        return FlowStep(
            draft=draft,
            reply=f"Please reply Male, Female or Other for passenger #{draft.passenger_number}.",
        )

    new = draft.copy()
    new.current_passenger.gender = gender

    if new.current_index + 1 < new.expected_passengers:
        new.current_index += 1
        _move(new, BookingStage.COLLECT_NAME)
        return FlowStep(
            draft=new,
            reply=f"Got it. Passenger #{new.passenger_number}: what's the full name?",
        )

    new.current_index = 0
    _move(new, BookingStage.COLLECT_SEAT_PREFERENCES)
    return FlowStep(
        draft=new,
        reply=(
            "All passenger details collected. Any seat preference for "
            f"passenger #1 ({new.passengers[0].full_name})? {SEAT_PREFERENCE_HINT}"
        ),
    )


def _collect_seat_preference(draft: BookingDraft, text: str) -> FlowStep:
    new = draft.copy()
    new.current_passenger.seat_pref = extract_seat_preference(text)

    if new.current_index + 1 < new.expected_passengers:
        new.current_index += 1
        passenger = new.current_passenger
        return FlowStep(
            draft=new,
            reply=(
                f"Noted. Seat preference for passenger #{new.passenger_number} "
                f"({passenger.full_name})?"
            ),
        )

    _move(new, BookingStage.COLLECT_SEAT_FLOW)
    return FlowStep(draft=new, reply=f"Preferences saved. {SEAT_FLOW_PROMPT}")


def _collect_seat_flow(draft: BookingDraft, text: str) -> FlowStep:
    choice = detect_seat_flow_choice(text)

    if choice == "auto":
        new = draft.copy()
        new.seat_flow = "auto"
        return FlowStep(draft=new, reply="", action=FlowAction.ALLOCATE_SEATS)

    if choice == "manual":
        return open_manual_selection(draft)

    return FlowStep(draft=draft, reply=SEAT_FLOW_PROMPT)


def _seat_assignment(draft: BookingDraft, text: str) -> FlowStep:
    if is_confirmation(text):
        return confirm(draft)

    if detect_seat_flow_choice(text) == "manual":
        return open_manual_selection(draft)

    return FlowStep(
        draft=draft,
        reply=(
            f"Your seats:\n{_seat_summary(draft)}\n"
            "Reply 'confirm' to proceed to payment or 'change seats' to pick them yourself."
        ),
    )


def _manual_choice(draft: BookingDraft, text: str) -> FlowStep:
    if is_confirmation(text):
        if not draft.seats_complete():
            return FlowStep(
                draft=draft,
                reply=(
                    f"Please pick {draft.expected_passengers} seat(s) first. "
                    "Reply 'choose seats' to open seat selection."
                ),
            )
        return confirm(draft)

    choice = detect_seat_flow_choice(text)
    if choice == "auto":
        new = draft.copy()
        new.seat_flow = "auto"
        return FlowStep(draft=new, reply="", action=FlowAction.ALLOCATE_SEATS)

    if choice == "manual":
        return open_manual_selection(draft)

    return FlowStep(
        draft=draft,
        reply="Reply 'choose seats' to pick seats yourself, or 'auto' to let me assign them.",
    )


def _completed(draft: BookingDraft, text: str) -> FlowStep:
    if draft.booking_id:
        reply = f"Your booking {draft.booking_id} is awaiting payment."
    else:
        reply = "Your booking is ready. Please log in to complete payment."
    return FlowStep(draft=draft, reply=reply)


# === Seats ===


def open_manual_selection(draft: BookingDraft, reason: Optional[str] = None) -> FlowStep:
    """Hand off to the seat-selection surface."""
    new = draft.copy()
    new.seat_flow = "manual"
    new.selected_seats = []
    new.ready_for_payment = False
    new.total_amount = new.compute_total()
    _move(new, BookingStage.COLLECT_MANUAL_CHOICE)

    reply = f"Opening seat selection. Please choose {new.expected_passengers} seat(s)."
    if reason:
        reply = f"{reason} {reply}"
    return FlowStep(draft=new, reply=reply, navigate_to=_seat_selection_navigation(new))


def apply_auto_allocation(draft: BookingDraft, seats: Optional[Sequence[str]]) -> FlowStep:
    """Apply the allocator's result; no seats means fall back to manual selection."""
    if seats is None:
        return open_manual_selection(
            draft, reason="I couldn't auto-assign seats for everyone in your group."
        )

    new = draft.copy()
    new.seat_flow = "auto"
    new.selected_seats = list(seats)
    new.total_amount = new.compute_total()
    new.ready_for_payment = False
    _move(new, BookingStage.SEAT_ASSIGNMENT)
    return FlowStep(
        draft=new,
        reply=(
            f"Seats assigned:\n{_seat_summary(new)}\n"
            f"Total: {format_price(new.total_amount)}\n"
            "Reply 'confirm' to proceed to payment or 'change seats' to pick them yourself."
        ),
    )


def apply_manual_seats(draft: BookingDraft, seats: Sequence[str]) -> FlowStep:
    """Store seats chosen on the seat-selection surface."""
    new = draft.copy()
    new.seat_flow = "manual"
    new.selected_seats = list(seats)
    new.total_amount = new.compute_total()
    new.ready_for_payment = False
    _move(new, BookingStage.SEAT_ASSIGNMENT)
    return FlowStep(
        draft=new,
        reply=(
            f"Seats selected:\n{_seat_summary(new)}\n"
            f"Total: {format_price(new.total_amount)}\n"
            "Reply 'confirm' to proceed to payment."
        ),
    )


# === Confirmation ===


def confirm(draft: BookingDraft) -> FlowStep:
    """Explicit go-ahead: mark ready for payment and ask the caller to persist."""
    if not draft.all_passengers_complete():
        for index, passenger in enumerate(draft.passengers):
            if not passenger.is_complete():
                return FlowStep(
                    draft=draft,
                    reply=f"I still need complete details for passenger #{index + 1}.",
                )
    if not draft.seats_complete():
        return FlowStep(
            draft=draft,
            reply=f"Please pick {draft.expected_passengers} seat(s) before confirming.",
        )

    new = draft.copy()
    new.ready_for_payment = True
    new.total_amount = new.compute_total()
    return FlowStep(draft=new, reply="", action=FlowAction.PERSIST_BOOKING)


def mark_persisted(draft: BookingDraft, booking_id: str) -> FlowStep:
    """Booking stored as Pending: send the traveler to payment."""
    new = draft.copy()
    new.booking_id = booking_id
    new.ready_for_payment = True
    _move(new, BookingStage.COMPLETED)
    return FlowStep(
        draft=new,
        reply=(
            f"Booking created! Total {format_price(new.total_amount)}. "
            "Redirecting you to payment."
        ),
        navigate_to=_payment_navigation(new),
    )


def mark_awaiting_login(draft: BookingDraft) -> FlowStep:
    """Confirmed but anonymous: payment requires logging in first."""
    new = draft.copy()
    new.booking_id = None
    new.ready_for_payment = True
    _move(new, BookingStage.COMPLETED)
    return FlowStep(
        draft=new,
        reply=(
            f"Your booking is ready (total {format_price(new.total_amount)}). "
            "Please log in to complete payment."
        ),
        navigate_to=_payment_navigation(new, requires_login=True),
    )