"""Tests for the booking draft flow."""

import pytest

from app.core.booking.draft import BookingDraft, Passenger
from app.core.booking.extractors import (
    detect_seat_flow_choice,
    extract_age,
    extract_gender,
    extract_name,
    extract_passenger_count,
    extract_seat_preference,
    extract_travel_class,
    is_confirmation,
)
from app.core.booking.flow import (
    FlowAction,
    PAYMENT_PATH,
    SEAT_SELECTION_PATH,
    advance,
    apply_auto_allocation,
    apply_manual_seats,
    mark_awaiting_login,
    mark_persisted,
    open_manual_selection,
    start_booking,
)
from app.core.booking.state import BookingStage, can_transition, is_terminal_stage
from app.core.flights.types import FlightRecord
from app.core.seating.allocator import SeatLocation, SeatType


@pytest.fixture
def flight():
    """Flight being booked."""
    return FlightRecord(
        id="f1",
        airline="IndiGo",
        flight_number="6E201",
        departure_city_code="MAA",
        arrival_city_code="DEL",
        departure_time="06:30",
        arrival_time="09:15",
        price=4500,
        seats={"economy": 180},
        aircraft={"make": "Airbus", "model": "A320"},
    )


def _run(draft: BookingDraft, *messages: str) -> BookingDraft:
    for message in messages:
        draft = advance(draft, message).draft
    return draft


class TestStartBooking:
    """Test draft creation from the passenger count."""

    def test_valid_count(self, flight):
        """Test draft sized to the count with fare total."""
        step = start_booking(flight, "2 passengers", max_passengers=20)

        assert step.draft.expected_passengers == 2
        assert step.draft.stage == BookingStage.COLLECT_NAME
        assert step.draft.total_amount == 9000
        assert "Passenger #1" in step.reply

    def test_word_count_and_class(self, flight):
        """Test spelled-out count with cabin class."""
        step = start_booking(flight, "three in business", max_passengers=20)

        assert step.draft.expected_passengers == 3
        assert step.draft.travel_class == "Business"

    @pytest.mark.parametrize("text", ["0", "25", "lots of us"])
    def test_invalid_count(self, flight, text):
        """Test out-of-range or missing count re-prompts without a draft."""
        step = start_booking(flight, text, max_passengers=20)

        assert step.draft is None
        assert "1 to 20" in step.reply


class TestPassengerCollection:
    """Test the per-passenger collection loop."""

    @pytest.fixture
    def draft(self, flight):
        """Draft for two passengers."""
        return BookingDraft.new(flight, 2)

    def test_name_then_age(self, draft):
        """Test name advances to age."""
        step = advance(draft, "my name is asha rao")

        assert step.draft.passengers[0].full_name == "Asha Rao"
        assert step.draft.stage == BookingStage.COLLECT_AGE

    def test_input_draft_not_mutated(self, draft):
        """Test transitions return a new draft."""
        advance(draft, "Asha Rao")

        assert draft.passengers[0].full_name is None
        assert draft.stage == BookingStage.COLLECT_NAME

    def test_invalid_age_keeps_stage(self, draft):
        """Test invalid age re-prompts."""
        draft = _run(draft, "Asha Rao")
        step = advance(draft, "abc")

        assert step.draft.stage == BookingStage.COLLECT_AGE
        assert step.draft.current_index == 0
        assert "valid age" in step.reply

    def test_confirm_during_collection(self, draft):
        """Test confirm word before details are complete."""
        draft = _run(draft, "Asha Rao", "29", "F")
        step = advance(draft, "confirm")

        assert step.reply == (
            "I still need complete details. We're at full name for passenger #2."
        )
        assert step.draft.stage == BookingStage.COLLECT_NAME
        assert step.action is None

    def test_loops_over_passengers(self, draft):
        """Test the second passenger is collected after the first."""
        draft = _run(draft, "Asha Rao", "29", "female", "Ravi Kumar", "31", "m")

        assert [p.full_name for p in draft.passengers] == ["Asha Rao", "Ravi Kumar"]
        assert [p.gender for p in draft.passengers] == ["Female", "Male"]
        assert draft.all_passengers_complete()
        assert draft.stage == BookingStage.COLLECT_SEAT_PREFERENCES
        assert draft.current_index == 0

    def test_seat_preferences_then_flow_choice(self, draft):
        """Test seat preferences per passenger, then auto/manual prompt."""
        draft = _run(
            draft,
            "Asha Rao", "29", "female", "Ravi Kumar", "31", "m",
            "window front", "no preference",
        )

        assert draft.stage == BookingStage.COLLECT_SEAT_FLOW
        assert draft.passengers[0].seat_pref.seat_type == SeatType.WINDOW
        assert draft.passengers[0].seat_pref.location == SeatLocation.FRONT
        assert draft.passengers[1].seat_pref.seat_type == SeatType.NO_PREF

        step = advance(draft, "auto assign")
        assert step.action == FlowAction.ALLOCATE_SEATS

        step = advance(draft, "I'll choose myself")
        assert step.draft.stage == BookingStage.COLLECT_MANUAL_CHOICE
        assert step.navigate_to["path"] == SEAT_SELECTION_PATH


class TestSeatsAndConfirmation:
    """Test seat assignment and confirmation."""

    @pytest.fixture
    def draft(self, flight):
        """Draft with one complete passenger awaiting seat choice."""
        draft = BookingDraft.new(flight, 1)
        return _run(draft, "Asha Rao", "29", "F", "aisle")

    def test_auto_allocation_applied(self, draft):
        """Test allocator seats move the draft to seat assignment."""
        step = apply_auto_allocation(draft, ["E1C"])

        assert step.draft.stage == BookingStage.SEAT_ASSIGNMENT
        assert step.draft.selected_seats == ["E1C"]
        assert step.draft.seat_flow == "auto"
        assert "Total: ₹4500" in step.reply

    def test_auto_allocation_failure_falls_back_to_manual(self, draft):
        """Test allocator failure opens manual selection."""
        step = apply_auto_allocation(draft, None)

        assert step.draft.stage == BookingStage.COLLECT_MANUAL_CHOICE
        assert step.navigate_to["path"] == SEAT_SELECTION_PATH
        assert step.navigate_to["state"]["passengers"] == 1

    def test_confirm_requests_persistence(self, draft):
        """Test confirm marks ready and asks caller to persist."""
        draft = apply_auto_allocation(draft, ["E1C"]).draft
        step = advance(draft, "Confirm!")

        assert step.action == FlowAction.PERSIST_BOOKING
        assert step.draft.ready_for_payment
        assert not draft.ready_for_payment

    def test_change_seats(self, draft):
        """Test 'change seats' reopens manual selection and clears seats."""
        draft = apply_auto_allocation(draft, ["E1C"]).draft
        step = advance(draft, "change seats")

        assert step.draft.stage == BookingStage.COLLECT_MANUAL_CHOICE
        assert step.draft.selected_seats == []

    def test_manual_confirm_without_seats(self, draft):
        """Test confirm in manual choice needs seats first."""
        draft = open_manual_selection(draft).draft
        step = advance(draft, "confirm")

        assert step.action is None
        assert "pick 1 seat(s)" in step.reply

    def test_manual_seats_then_confirm(self, draft):
        """Test manual seats awaiting confirmation."""
        draft = open_manual_selection(draft).draft
        draft = apply_manual_seats(draft, ["E5D"]).draft

        assert draft.stage == BookingStage.SEAT_ASSIGNMENT
        assert draft.seat_flow == "manual"
        assert advance(draft, "yes").action == FlowAction.PERSIST_BOOKING

    def test_mark_persisted(self, draft):
        """Test persisted booking completes with payment navigation."""
        draft = apply_auto_allocation(draft, ["E1C"]).draft
        draft = advance(draft, "confirm").draft
        step = mark_persisted(draft, "bk-1")

        assert step.draft.stage == BookingStage.COMPLETED
        assert step.draft.booking_id == "bk-1"
        assert step.navigate_to["path"] == PAYMENT_PATH
        assert step.navigate_to["state"]["bookingId"] == "bk-1"

    def test_mark_awaiting_login(self, draft):
        """Test anonymous confirmation requires login for payment."""
        draft = apply_auto_allocation(draft, ["E1C"]).draft
        draft = advance(draft, "confirm").draft
        step = mark_awaiting_login(draft)

        assert step.draft.stage == BookingStage.COMPLETED
        assert step.draft.booking_id is None
        assert step.draft.ready_for_payment
        assert step.navigate_to["state"]["requiresLogin"] is True

    def test_draft_round_trip(self, draft):
        """Test camelCase payload reloads to an equal draft."""
        draft = apply_auto_allocation(draft, ["E1C"]).draft

        assert BookingDraft.from_dict(draft.to_dict()) == draft


class TestBookingStage:
    """Test stage transition table."""

    def test_valid_transitions(self):
        """Test allowed moves."""
        assert can_transition(BookingStage.COLLECT_NAME, BookingStage.COLLECT_AGE)
        assert can_transition(BookingStage.COLLECT_GENDER, BookingStage.COLLECT_NAME)
        assert can_transition(BookingStage.SEAT_ASSIGNMENT, BookingStage.COMPLETED)
        assert can_transition(BookingStage.COMPLETED, BookingStage.COLLECT_MANUAL_CHOICE)

    def test_invalid_transitions(self):
        """Test disallowed moves."""
        assert not can_transition(BookingStage.COLLECT_NAME, BookingStage.COMPLETED)
        assert not can_transition(BookingStage.COMPLETED, BookingStage.COLLECT_NAME)

    def test_terminal(self):
        """Test completed is terminal."""
        assert is_terminal_stage(BookingStage.COMPLETED)
        assert not is_terminal_stage(BookingStage.SEAT_ASSIGNMENT)


class TestExtractors:
    """Test passenger field extraction."""

    def test_passenger_count(self):
        assert extract_passenger_count("3") == 3
        assert extract_passenger_count("two adults") == 2
        assert extract_passenger_count("none") is None

    def test_name(self):
        assert extract_name("Asha Rao (adult)") == "Asha Rao"
        assert extract_name("MADONNA") == "Madonna"
        assert extract_name("x") is None
        assert extract_name("123") is None

    def test_name_keeps_all_words(self):
        assert extract_name("Mary Anne Smith") == "Mary Anne Smith"
        assert extract_name("my name is mary anne smith, 34") == "Mary Anne Smith"
        assert extract_name("Mary Anne Smith (adult)") == "Mary Anne Smith"

    def test_age(self):
        assert extract_age("29 years") == 29
        assert extract_age("age 45") == 45
        assert extract_age("0") is None
        assert extract_age("150") is None

    def test_gender(self):
        assert extract_gender("F") == "Female"
        assert extract_gender("woman") == "Female"
        assert extract_gender("Other") == "Other"
        assert extract_gender("xyz") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I'm female", "Female"),
            ("she is a woman", "Female"),
            ("male please", "Male"),
            ("non-binary", "Other"),
            ("fem", "Female"),
            ("m", "Male"),
            ("no idea", None),
            ("no", None),
            ("not sure", None),
        ],
    )
    def test_gender_in_sentence(self, text, expected):
        assert extract_gender(text) == expected

    def test_seat_preference(self):
        pref = extract_seat_preference("window seat near the wings")

        assert pref.seat_type == SeatType.WINDOW
        assert pref.location == SeatLocation.NEAR_WINGS

    def test_seat_flow_choice(self):
        assert detect_seat_flow_choice("assign them") == "auto"
        assert detect_seat_flow_choice("pick seats") == "manual"
        assert detect_seat_flow_choice("hmm") is None

    def test_confirmation(self):
        assert is_confirmation("Confirm!")
        assert is_confirmation("checkout")
        assert not is_confirmation("confirm it later")

    def test_travel_class(self):
        assert extract_travel_class("2 first class") == "First"
        assert extract_travel_class("first of all, 2") is None


class TestPassenger:
    """Test passenger typing."""

    @pytest.mark.parametrize("age,expected", [(1, "infant"), (5, "child"), (12, "adult"), (None, "adult")])
    def test_type(self, age, expected):
        assert Passenger(full_name="A B", age=age).type == expected
