"""Conversation scenarios for the assistant engine."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app.core.assistant.engine import (
    CLARIFY_MESSAGE,
    FAILURE_MESSAGE,
    WELCOME_MESSAGE,
    AssistantEngine,
    AuthenticationRequiredError,
    NoActiveDraftError,
    SeatSelectionError,
)
from app.core.booking.state import BookingStage
from app.core.booking.store import BookingRecord, InMemoryBookingStore, SeatConflictError
from app.core.flights.lookup import FlightLookup, FlightLookupError, InMemoryFlightLookup
from app.core.flights.types import FlightRecord
from app.core.intelligence.session.manager import SessionManager
from app.infra.llm import HelpResponder
from app.models.database import PaymentStatus


def _flight(id, number, airline, departure, price, origin="MAA", destination="DEL") -> FlightRecord:
    return FlightRecord(
        id=id,
        airline=airline,
        flight_number=number,
        departure_city_code=origin,
        arrival_city_code=destination,
        departure_time=departure,
        arrival_time="23:00",
        price=price,
        seats={"economy": 180, "business": 12},
        aircraft={"make": "Airbus", "model": "A320"},
    )


FLIGHTS = [
    _flight("f1", "6E201", "IndiGo", "06:30", 4500),
    _flight("f2", "AI540", "Air India", "13:15", 6200),
    _flight("f3", "UK820", "Vistara", "19:45", 5200),
    _flight("f4", "SG100", "SpiceJet", "10:00", 3000, origin="BOM", destination="GOI"),
]

SEARCH = "Flights from Chennai to Delhi tomorrow"
DETAILS = ["Asha Rao", "29", "F", "Ravi Kumar", "31", "M", "window front", "aisle"]


class FailingLookup(FlightLookup):
    """Flight store that is always down."""

    async def find_by_route(self, origin_iata, destination_iata):
        raise FlightLookupError("flight store unavailable")

    async def find_by_code(self, code):
        raise FlightLookupError("flight store unavailable")


class SlowLookup(InMemoryFlightLookup):
    """Flight store that takes a while to answer route queries."""

    async def find_by_route(self, origin_iata, destination_iata):
        await asyncio.sleep(0.05)
        return await super().find_by_route(origin_iata, destination_iata)


@pytest.fixture
def store():
    """In-memory booking store."""
    return InMemoryBookingStore()


@pytest.fixture
def sessions():
    """Session manager on the in-memory fallback."""
    with patch(
        "app.core.intelligence.session.manager.get_redis",
        return_value=None,
    ):
        yield SessionManager()


@pytest.fixture
def engine(store, sessions):
    """Engine over fixture flights, without a help responder."""
    return AssistantEngine(
        flight_lookup=InMemoryFlightLookup(FLIGHTS),
        booking_store=store,
        session_manager=sessions,
        use_default_help=False,
    )


async def _say(engine, session_id, *messages, user_id=None):
    result = None
    for message in messages:
        result = await engine.process(message, session_id=session_id, user_id=user_id)
    return result


class TestSearch:
    """Test search, selection and result refinement."""

    @pytest.mark.asyncio
    async def test_greeting(self, engine):
        """Test greeting creates a session."""
        result = await engine.process("hi")

        assert result.reply == WELCOME_MESSAGE
        assert result.session_id
        assert result.to_dict() == {"reply": WELCOME_MESSAGE, "sessionId": result.session_id}

    @pytest.mark.asyncio
    async def test_search_lists_flights(self, engine):
        """Test a complete route returns numbered results."""
        result = await engine.process(SEARCH, session_id="s1")

        assert result.intent == "search"
        assert result.results_count == 3
        assert result.reply.startswith("Found 3 flight(s) from Chennai (MAA) to Delhi (DEL) on ")
        assert "1. ✈️ IndiGo 6E201" in result.reply

        session = await engine.get_session("s1")
        assert session.context.to_city.iata == "DEL"
        assert session.context.date is not None
        assert len(session.history) == 2

    @pytest.mark.asyncio
    async def test_search_no_flights(self, engine):
        """Test a route without flights."""
        result = await engine.process("flights from delhi to chennai", session_id="s1")

        assert result.results_count == 0
        assert result.reply.startswith("I couldn't find any flights from Delhi (DEL)")

    @pytest.mark.asyncio
    async def test_same_city(self, engine):
        """Test identical origin and destination asks again."""
        result = await engine.process("from delhi to delhi", session_id="s1")

        assert "both Delhi" in result.reply

    @pytest.mark.asyncio
    async def test_incomplete_route_clarifies(self, engine):
        """Test unresolvable messages get the canned clarification."""
        result = await engine.process("can you help", session_id="s1")

        assert result.reply == CLARIFY_MESSAGE

    @pytest.mark.asyncio
    async def test_date_only_reuses_context(self, engine):
        """Test a bare date re-runs the previous route."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("tomorrow", session_id="s1")

        assert result.results_count == 3

    @pytest.mark.asyncio
    async def test_filter_narrows_results(self, engine):
        """Test a filter replaces the result set."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("under 5000", session_id="s1")

        assert result.intent == "filter"
        assert result.results_count == 1
        session = await engine.get_session("s1")
        assert [f.flight_number for f in session.last_search_results] == ["6E201"]

    @pytest.mark.asyncio
    async def test_new_route_with_results_is_search(self, engine):
        """Test "<city> to <city>" with a date word starts a new search."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("Mumbai to Goa today", session_id="s1")

        assert result.intent == "search"
        assert result.results_count == 1
        assert "SpiceJet SG100" in result.reply
        session = await engine.get_session("s1")
        assert session.context.from_city.iata == "BOM"
        assert session.context.to_city.iata == "GOI"

    @pytest.mark.asyncio
    async def test_empty_filter_keeps_results(self, engine):
        """Test a filter matching nothing leaves results untouched."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("under 1000", session_id="s1")

        assert result.results_count == 0
        assert "previous results are unchanged" in result.reply
        session = await engine.get_session("s1")
        assert len(session.last_search_results) == 3

    @pytest.mark.asyncio
    async def test_suggest(self, engine):
        """Test recommendations over the current results."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("which should I pick?", session_id="s1")

        assert result.reply.startswith("Here's what I'd consider:")
        assert "Cheapest: ✈️ IndiGo 6E201" in result.reply

    @pytest.mark.asyncio
    async def test_book_by_number(self, engine):
        """Test picking a result by number."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("2", session_id="s1")

        assert "AI540" in result.reply
        assert result.reply.endswith("How many passengers?")
        session = await engine.get_session("s1")
        assert session.selected_flight.id == "f2"

    @pytest.mark.asyncio
    async def test_book_by_number_out_of_range(self, engine):
        """Test numbers outside the result list."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("9", session_id="s1")

        assert result.reply == "Please pick a number between 1 and 3."

    @pytest.mark.asyncio
    async def test_book_by_code_outside_results(self, engine):
        """Test a flight number not in the results is looked up."""
        await engine.process(SEARCH, session_id="s1")
        found = await engine.process("book SG100", session_id="s1")

        assert "SpiceJet SG100" in found.reply

    @pytest.mark.asyncio
    async def test_book_by_unknown_code(self, engine):
        """Test unknown flight numbers."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("book XY999", session_id="s1")

        assert result.reply.startswith("I couldn't find flight XY999")

    @pytest.mark.asyncio
    async def test_select_by_bare_code(self, engine):
        """Test a bare code from the results selects it."""
        await engine.process(SEARCH, session_id="s1")
        result = await engine.process("uk 820", session_id="s1")

        assert result.intent == "select_by_code"
        assert "Vistara UK820" in result.reply


class TestConversationControl:
    """Test cancel, reset and failure handling."""

    @pytest.mark.asyncio
    async def test_cancel_keeps_results(self, engine):
        """Test cancel drops the booking but not the results."""
        await _say(engine, "s1", SEARCH, "1", "2")
        result = await engine.process("cancel booking", session_id="s1")

        assert result.reply.startswith("Alright, booking cancelled.")
        session = await engine.get_session("s1")
        assert session.selected_flight is None
        assert session.booking_draft is None
        assert len(session.last_search_results) == 3

    @pytest.mark.asyncio
    async def test_cancel_without_booking(self, engine):
        """Test cancel with nothing in progress."""
        result = await engine.process("cancel", session_id="s1")

        assert result.reply.startswith("There's no booking in progress")

    @pytest.mark.asyncio
    async def test_reset_clears_session(self, engine):
        """Test reset keeps the id but drops all state."""
        await _say(engine, "s1", SEARCH, "1")
        result = await engine.process("start over", session_id="s1")

        assert result.session_id == "s1"
        session = await engine.get_session("s1")
        assert session.last_search_results == []
        assert session.selected_flight is None
        assert session.history == [{"role": "assistant", "content": result.reply}]

    @pytest.mark.asyncio
    async def test_failure_leaves_session_unchanged(self, store, sessions):
        """Test collaborator errors give a failure reply without saving."""
        engine = AssistantEngine(
            flight_lookup=FailingLookup(),
            booking_store=store,
            session_manager=sessions,
            use_default_help=False,
        )
        await engine.process("hi", session_id="s1")
        result = await engine.process(SEARCH, session_id="s1")

        assert result.failed
        assert result.reply == FAILURE_MESSAGE
        session = await engine.get_session("s1")
        assert len(session.history) == 2

    @pytest.mark.asyncio
    async def test_concurrent_turns_are_serialized(self, store, sessions):
        """Test two turns for one session run one after the other."""
        engine = AssistantEngine(
            flight_lookup=SlowLookup(FLIGHTS),
            booking_store=store,
            session_manager=sessions,
            use_default_help=False,
        )

        first, second = await asyncio.gather(
            engine.process(SEARCH, session_id="s1"),
            engine.process("under 5000", session_id="s1"),
        )

        assert first.results_count == 3
        assert second.intent == "filter"
        assert second.results_count == 1
        session = await engine.get_session("s1")
        assert [turn["content"] for turn in session.history if turn["role"] == "user"] == [
            SEARCH,
            "under 5000",
        ]
        assert len(session.history) == 4

    @pytest.mark.asyncio
    async def test_help_responder_used_for_clarification(self, store, sessions):
        """Test free-text help replaces the canned clarification."""
        help_client = MagicMock(spec=HelpResponder)
        help_client.ask = AsyncMock(return_value="Where would you like to go?")
        engine = AssistantEngine(
            flight_lookup=InMemoryFlightLookup(FLIGHTS),
            booking_store=store,
            session_manager=sessions,
            help_client=help_client,
        )

        result = await engine.process("can you help", session_id="s1")

        assert result.reply == "Where would you like to go?"
        system_prompt, user_text, context = help_client.ask.call_args.args
        assert user_text == "can you help"
        assert set(context) == {"history", "search"}

    @pytest.mark.asyncio
    async def test_help_responder_failure_falls_back(self, store, sessions):
        """Test a help responder returning nothing."""
        help_client = MagicMock(spec=HelpResponder)
        help_client.ask = AsyncMock(return_value=None)
        engine = AssistantEngine(
            flight_lookup=InMemoryFlightLookup(FLIGHTS),
            booking_store=store,
            session_manager=sessions,
            help_client=help_client,
        )

        result = await engine.process("can you help", session_id="s1")

        assert result.reply == CLARIFY_MESSAGE


class TestBookingScenario:
    """Test the booking flow end to end."""

    @pytest.mark.asyncio
    async def test_passenger_count_starts_draft(self, engine):
        """Test the count after selection starts a draft."""
        result = await _say(engine, "s1", SEARCH, "1", "2")

        assert result.intent == "booking_step"
        assert result.booking_draft["expectedPassengers"] == 2
        assert result.booking_draft["totalAmount"] == 9000

    @pytest.mark.asyncio
    async def test_invalid_count_reprompts(self, engine):
        """Test an out-of-range count keeps waiting."""
        result = await _say(engine, "s1", SEARCH, "1", "50")

        assert "1 to 20" in result.reply
        assert result.booking_draft is None

    @pytest.mark.asyncio
    async def test_auto_assign_and_confirm(self, engine, store):
        """Test auto seats, confirmation and payment for a logged-in traveler."""
        result = await _say(engine, "s1", SEARCH, "1", "2", *DETAILS, "auto", user_id="u1")

        assert result.booking_draft["selectedSeats"] == ["E1A", "E1C"]
        assert result.booking_draft["stage"] == BookingStage.SEAT_ASSIGNMENT.value

        result = await engine.process("confirm", session_id="s1", user_id="u1")

        assert result.navigate_to["path"] == "/payment"
        booking_id = result.navigate_to["state"]["bookingId"]
        assert store.bookings[0].booking_id == booking_id
        assert store.bookings[0].payment_status == PaymentStatus.PENDING

        record = await engine.confirm_payment("s1", {"reference": "pay_1"})

        assert record.booking_id == booking_id
        assert record.payment_status == PaymentStatus.PAID
        assert await engine.get_session("s1") is None

    @pytest.mark.asyncio
    async def test_anonymous_confirmation_needs_login(self, engine, store):
        """Test anonymous travelers log in before the booking is created."""
        await _say(engine, "s1", SEARCH, "1", "2", *DETAILS, "auto")
        result = await engine.process("confirm", session_id="s1")

        assert result.navigate_to["state"]["requiresLogin"] is True
        assert store.bookings == []

        with pytest.raises(AuthenticationRequiredError):
            await engine.confirm_payment("s1")

        record = await engine.confirm_payment("s1", user_id="u1")

        assert record.payment_status == PaymentStatus.PAID
        assert record.user_id == "u1"
        assert record.seats == ["E1A", "E1C"]

    @pytest.mark.asyncio
    async def test_seat_taken_before_anonymous_payment(self, engine, store):
        """Test a conflict at payment reopens manual selection instead of stranding the draft."""
        await _say(engine, "s1", SEARCH, "1", "2", *DETAILS, "auto", "confirm")
        store._bookings["other"] = BookingRecord(
            booking_id="other",
            flight_id="f1",
            travel_class="Economy",
            passengers=[],
            seats=["E1A"],
            total_amount=4500,
        )

        with pytest.raises(SeatConflictError):
            await engine.confirm_payment("s1", user_id="u1")

        session = await engine.get_session("s1")
        assert session.booking_draft.stage == BookingStage.COLLECT_MANUAL_CHOICE
        assert session.booking_draft.selected_seats == []
        assert not session.booking_draft.ready_for_payment
        assert session.history[-1]["content"].startswith("Sorry, seat(s) E1A were just taken.")

        result = await engine.process("change seats", session_id="s1")
        assert result.intent == "booking_step"
        assert result.navigate_to["path"] == "/seat-booking"

        await engine.submit_seats("s1", ["E5D", "E5E"])
        await engine.process("confirm", session_id="s1")
        record = await engine.confirm_payment("s1", user_id="u1")

        assert record.seats == ["E5D", "E5E"]
        assert record.payment_status == PaymentStatus.PAID

    @pytest.mark.asyncio
    async def test_confirm_payment_without_draft(self, engine):
        """Test payment with nothing confirmed."""
        await engine.process(SEARCH, session_id="s1")

        with pytest.raises(NoActiveDraftError):
            await engine.confirm_payment("s1", user_id="u1")

    @pytest.mark.asyncio
    async def test_seat_taken_before_persist(self, engine, store):
        """Test a conflict at confirmation reopens manual selection."""
        await _say(engine, "s1", SEARCH, "1", "2", *DETAILS, "auto", user_id="u1")
        store._bookings["other"] = BookingRecord(
            booking_id="other",
            flight_id="f1",
            travel_class="Economy",
            passengers=[],
            seats=["E1A"],
            total_amount=4500,
        )

        result = await engine.process("confirm", session_id="s1", user_id="u1")

        assert result.reply.startswith("Sorry, seat(s) E1A were just taken.")
        assert result.navigate_to["path"] == "/seat-booking"
        assert result.booking_draft["selectedSeats"] == []
        assert len(store.bookings) == 1

    @pytest.mark.asyncio
    async def test_details_not_treated_as_search(self, engine):
        """Test passenger details are never routed as searches or filters."""
        result = await _say(engine, "s1", SEARCH, "1", "1", "Delhi Mumbai")

        assert result.intent == "booking_step"
        assert result.booking_draft["passengerData"][0]["fullName"] == "Delhi Mumbai"


class TestManualSeats:
    """Test seat submission from the seat-selection surface."""

    async def _open_selection(self, engine):
        result = await _say(engine, "s1", SEARCH, "1", "2", *DETAILS, "manual")
        assert result.navigate_to["path"] == "/seat-booking"

    @pytest.mark.asyncio
    async def test_submit_seats(self, engine):
        """Test valid seats move the draft to confirmation."""
        await self._open_selection(engine)

        result = await engine.submit_seats("s1", [" e5d", "E5E"])

        assert result.booking_draft["selectedSeats"] == ["E5D", "E5E"]
        assert result.booking_draft["seatFlow"] == "manual"
        session = await engine.get_session("s1")
        assert session.booking_draft.stage == BookingStage.SEAT_ASSIGNMENT

    @pytest.mark.asyncio
    async def test_submit_seats_without_draft(self, engine):
        """Test submission with no booking in progress."""
        with pytest.raises(NoActiveDraftError):
            await engine.submit_seats("missing", ["E1A"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "seats",
        [["E5D"], ["E5D", "E5D"], ["E5D", "E99A"], ["E5D", "B1A"]],
    )
    async def test_invalid_seats(self, engine, seats):
        """Test wrong count, duplicates and seats outside the cabin."""
        await self._open_selection(engine)

        with pytest.raises(SeatSelectionError):
            await engine.submit_seats("s1", seats)

    @pytest.mark.asyncio
    async def test_booked_seat(self, engine, store):
        """Test seats already booked on the flight."""
        await self._open_selection(engine)
        store._bookings["other"] = BookingRecord(
            booking_id="other",
            flight_id="f1",
            travel_class="Economy",
            passengers=[],
            seats=["E5D"],
            total_amount=4500,
        )

        with pytest.raises(SeatConflictError) as exc_info:
            await engine.submit_seats("s1", ["E5D", "E5E"])

        assert exc_info.value.seats == ["E5D"]

    @pytest.mark.asyncio
    async def test_submit_before_seat_stage(self, engine):
        """Test submission while details are still being collected."""
        await _say(engine, "s1", SEARCH, "1", "2")

        with pytest.raises(SeatSelectionError):
            await engine.submit_seats("s1", ["E5D", "E5E"])
