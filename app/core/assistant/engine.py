"""
Assistant Engine.

Main orchestrator for the conversational booking assistant. One call to
process() handles one user turn to completion:

1. Take the per-session lock
2. Load (or create) the session
3. Decode the intent (fixed precedence, see intent.decoder)
4. Run the intent handler, calling flight lookup, booking store,
   seat allocator and the optional help responder as needed
5. Save the session and return the reply

Collaborator failures produce a generic failure reply and the session is
not saved, so the next turn sees the state from before the failed one.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from app.config import settings
from app.core.booking.draft import BookingDraft
from app.core.booking.flow import (
    FlowAction,
    FlowStep,
    advance,
    apply_auto_allocation,
    apply_manual_seats,
    mark_awaiting_login,
    mark_persisted,
    open_manual_selection,
    start_booking,
)
from app.core.booking.state import BookingStage
from app.core.booking.store import (
    BookingRecord,
    BookingStore,
    SeatConflictError,
    get_booking_store,
)
from app.core.flights.advice import suggest_flights
from app.core.flights.filters import apply_filters
from app.core.flights.formatting import (
    flight_label,
    format_advice,
    format_flights_short,
    format_price,
)
from app.core.flights.lookup import FlightLookup, get_flight_lookup
from app.core.flights.types import FlightRecord
from app.core.intelligence.dates import parse_relative_date
from app.core.intelligence.intent.decoder import IntentDecoder, RoutingState, get_intent_decoder
from app.core.intelligence.intent.types import Intent, IntentResult
from app.core.intelligence.session.manager import SessionManager, get_session_manager
from app.core.intelligence.session.models import SearchContext, SessionData
from app.core.seating.allocator import SeatAllocator, SeatPreference
from app.infra.llm import HelpResponder, get_help_client
from app.models.database import PaymentStatus
from .route import extract_route

logger = logging.getLogger(__name__)


WELCOME_MESSAGE = (
    "Hi! I'm TripNBook, your travel assistant. Tell me where you'd like to fly, "
    "for example 'Flights from Chennai to Delhi tomorrow'. I can narrow results "
    "(under 5000, morning, only IndiGo), suggest a pick and book seats for your group."
)
RESET_MESSAGE = "All set, I've cleared our conversation. " + WELCOME_MESSAGE
FAILURE_MESSAGE = "Sorry, the assistant failed to complete that request. Please try again."
CLARIFY_MESSAGE = (
    "I couldn't detect both origin and destination. Try something like "
    "'Flights from Mumbai to Goa next Friday'."
)

SYSTEM_PROMPT = """You are TripNBook's travel assistant for domestic flights in India.

Keep replies short and friendly (two or three sentences).
You cannot search flights or make bookings yourself. When the traveler
seems to want flights, ask for the departure city, destination and date,
and suggest a phrasing like "Flights from Chennai to Delhi tomorrow".
Never invent flight numbers, prices or availability."""


def _compact_code(code: str) -> str:
    """Flight number without spaces or hyphens, uppercased."""
    return re.sub(r"[\s-]", "", code).upper()


class AssistantError(Exception):
    """Base exception for assistant operations."""
    pass


class NoActiveDraftError(AssistantError):
    """Raised when an operation needs a booking draft and there is none."""
    pass


class AuthenticationRequiredError(AssistantError):
    """Raised when a booking can only be completed by a logged-in traveler."""
    pass


class SeatSelectionError(AssistantError):
    """Raised when manually selected seats are invalid."""
    pass


@dataclass
class TurnResult:
    """Reply for one assistant turn."""

    reply: str
    session_id: str
    intent: Optional[str] = None
    navigate_to: Optional[dict] = None
    booking_draft: Optional[dict] = None
    results_count: Optional[int] = None
    failed: bool = False
    processing_time_ms: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        result = {
            "reply": self.reply,
            "sessionId": self.session_id,
        }
        if self.navigate_to:
            result["navigateTo"] = self.navigate_to
        if self.booking_draft:
            result["bookingDraft"] = self.booking_draft
        if self.results_count is not None:
            result["resultsCount"] = self.results_count
        return result


@dataclass
class _Outcome:
    """What an intent handler produced."""

    reply: str
    navigate_to: Optional[dict] = None
    results_count: Optional[int] = None
    reset: bool = False


class AssistantEngine:
    """
    Dialogue engine for flight search and booking.

    Collaborators are injected for tests and otherwise resolved lazily
    from their module singletons.
    """

    def __init__(
        self,
        flight_lookup: Optional[FlightLookup] = None,
        booking_store: Optional[BookingStore] = None,
        session_manager: Optional[SessionManager] = None,
        help_client: Optional[HelpResponder] = None,
        allocator: Optional[SeatAllocator] = None,
        decoder: Optional[IntentDecoder] = None,
        use_default_help: bool = True,
    ):
        self._lookup = flight_lookup
        self._store = booking_store
        self._session_mgr = session_manager
        self._help = help_client
        self._use_default_help = use_default_help
        self._allocator = allocator
        self._decoder = decoder

    # === Lazy Initialization ===

    def _get_lookup(self) -> FlightLookup:
        if self._lookup is None:
            self._lookup = get_flight_lookup()
        return self._lookup

    def _get_store(self) -> BookingStore:
        if self._store is None:
            self._store = get_booking_store()
        return self._store

    async def _get_session_manager(self) -> SessionManager:
        if self._session_mgr is None:
            self._session_mgr = await get_session_manager()
        return self._session_mgr

    def _get_help(self) -> Optional[HelpResponder]:
        if self._help is None and self._use_default_help:
            self._help = get_help_client()
        return self._help

    def _get_allocator(self) -> SeatAllocator:
        if self._allocator is None:
            self._allocator = SeatAllocator()
        return self._allocator

    def _get_decoder(self) -> IntentDecoder:
        if self._decoder is None:
            self._decoder = get_intent_decoder()
        return self._decoder

    # === Main Processing ===

    async def process(
        self,
        message: str,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Process one user message.

        Args:
            message: User's message
            session_id: Existing session ID (a new one is created if unknown)
            user_id: Authenticated traveler, None when anonymous

        Returns:
            TurnResult with reply and optional navigation/draft payloads
        """
        start_time = time.time()
        session_mgr = await self._get_session_manager()
        session_id = session_id or str(uuid4())
        lock = session_mgr.lock_for(session_id)

        async with lock:
            try:
                session = await session_mgr.get_or_create(session_id)
                intent = self._get_decoder().decode(message, RoutingState.from_session(session))
                logger.info(f"Session {session_id}: intent={intent.intent.value}")

                outcome = await self._dispatch(intent, session, message, user_id)

                if outcome.reset:
                    await session_mgr.delete(session_id)
                    session = await session_mgr.create(session_id)
                    session.add_turn("assistant", outcome.reply)
                else:
                    session.add_turn("user", message)
                    session.add_turn("assistant", outcome.reply)
                await session_mgr.save(session)

                return TurnResult(
                    reply=outcome.reply,
                    session_id=session.session_id,
                    intent=intent.intent.value,
                    navigate_to=outcome.navigate_to,
                    booking_draft=session.booking_draft.to_dict() if session.booking_draft else None,
                    results_count=outcome.results_count,
                    processing_time_ms=(time.time() - start_time) * 1000,
                )

            except Exception as e:
                logger.exception(f"Error processing message for session {session_id}: {e}")
                return TurnResult(
                    reply=FAILURE_MESSAGE,
                    session_id=session_id,
                    failed=True,
                    processing_time_ms=(time.time() - start_time) * 1000,
                )

    async def _dispatch(
        self,
        intent: IntentResult,
        session: SessionData,
        message: str,
        user_id: Optional[str],
    ) -> _Outcome:
        """Run the handler for a decoded intent."""
        match intent.intent:
            case Intent.GREETING:
                return _Outcome(WELCOME_MESSAGE)

            case Intent.RESET:
                return _Outcome(RESET_MESSAGE, reset=True)

            case Intent.CANCEL_BOOKING:
                return self._handle_cancel(session)

            case Intent.SUGGEST:
                return self._handle_suggest(session)

            case Intent.BOOKING_STEP:
                return await self._handle_booking_step(session, message, user_id)

            case Intent.BOOK_BY_NUMBER:
                return self._handle_book_by_number(session, intent.index)

            case Intent.BOOK_BY_CODE | Intent.SELECT_BY_CODE:
                return await self._handle_book_by_code(session, intent.code)

            case Intent.FILTER:
                return self._handle_filter(session, message)

            case _:
                return await self._handle_search(session, message)

    # === Handlers ===

    def _handle_cancel(self, session: SessionData) -> _Outcome:
        if session.selected_flight is None and session.booking_draft is None:
            return _Outcome("There's no booking in progress. Tell me where you'd like to fly.")

        session.clear_booking()
        if session.last_search_results:
            return _Outcome(
                "Alright, booking cancelled. Your last results are still here; "
                "reply with a number to pick another flight or start a new search."
            )
        return _Outcome("Alright, booking cancelled. Where would you like to fly?")

    def _handle_suggest(self, session: SessionData) -> _Outcome:
        advice = suggest_flights(session.last_search_results)
        if advice.is_empty:
            return _Outcome("I don't have enough details on these flights to recommend one.")
        return _Outcome(
            f"Here's what I'd consider:\n{format_advice(advice)}\n"
            "Reply with a flight number from the list to book."
        )

    def _select(self, session: SessionData, flight: FlightRecord) -> _Outcome:
        session.selected_flight = flight
        session.booking_draft = None
        return _Outcome(
            f"You picked {flight_label(flight)} "
            f"({flight.departure_time or '--:--'} → {flight.arrival_time or '--:--'}, "
            f"{format_price(flight.price)} per passenger). How many passengers?"
        )

    def _handle_book_by_number(self, session: SessionData, index: Optional[int]) -> _Outcome:
        results = session.last_search_results
        if index is None or not 1 <= index <= len(results):
            return _Outcome(f"Please pick a number between 1 and {len(results)}.")
        return self._select(session, results[index - 1])

    async def _handle_book_by_code(self, session: SessionData, code: Optional[str]) -> _Outcome:
        wanted = _compact_code(code or "")
        for flight in session.last_search_results:
            if _compact_code(flight.flight_number) == wanted:
                return self._select(session, flight)

        flight = await self._get_lookup().find_by_code(wanted)
        if flight is None:
            return _Outcome(f"I couldn't find flight {wanted}. Please check the flight number.")
        return self._select(session, flight)

    def _handle_filter(self, session: SessionData, message: str) -> _Outcome:
        filtered = apply_filters(session.last_search_results, message)
        if not filtered:
            return _Outcome(
                "No flights match that. Your previous results are unchanged; "
                "try a different filter or say 'cheapest'.",
                results_count=0,
            )

        session.last_search_results = filtered
        return _Outcome(
            f"Here are {len(filtered)} matching flight(s):\n"
            f"{format_flights_short(filtered)}\n"
            "Reply with a number to book.",
            results_count=len(filtered),
        )

    async def _handle_search(self, session: SessionData, message: str) -> _Outcome:
        route = extract_route(message, session.context)
        date = parse_relative_date(message)

        if not route.is_complete or (not route.from_message and date is None):
            return await self._clarify(session, message)

        if route.origin.iata == route.destination.iata:
            return _Outcome(
                f"Origin and destination are both {route.origin.city}. "
                "Where would you like to fly to?"
            )

        flights = await self._get_lookup().find_by_route(route.origin.iata, route.destination.iata)

        context = SearchContext(
            from_city=route.origin,
            to_city=route.destination,
            date=date or session.context.date,
        )
        session.start_search(context, flights)

        route_text = f"{route.origin.city} ({route.origin.iata}) to {route.destination.city} ({route.destination.iata})"
        if not flights:
            return _Outcome(
                f"I couldn't find any flights from {route_text}. "
                "Try another route or date.",
                results_count=0,
            )

        on_date = f" on {context.date}" if context.date else ""
        return _Outcome(
            f"Found {len(flights)} flight(s) from {route_text}{on_date}:\n"
            f"{format_flights_short(flights)}\n"
            "Reply with a number to book, or refine (e.g. 'under 5000', 'morning', "
            "'only IndiGo', 'cheapest').",
            results_count=len(flights),
        )

    async def _clarify(self, session: SessionData, message: str) -> _Outcome:
        """Ask the help responder, or fall back to a canned prompt."""
        help_client = self._get_help()
        if help_client is not None:
            reply = await help_client.ask(
                SYSTEM_PROMPT,
                message,
                {
                    "history": session.recent_history(settings.help_history_turns),
                    "search": session.context.to_dict(),
                },
            )
            if reply:
                return _Outcome(reply)
        return _Outcome(CLARIFY_MESSAGE)

    # === Booking Flow ===

    async def _handle_booking_step(
        self,
        session: SessionData,
        message: str,
        user_id: Optional[str],
    ) -> _Outcome:
        if session.booking_draft is None:
            step = start_booking(
                session.selected_flight,
                message,
                max_passengers=settings.max_passengers,
                default_class=settings.default_travel_class,
            )
            if step.draft is not None:
                session.booking_draft = step.draft
            return _Outcome(step.reply)

        step = advance(session.booking_draft, message)
        step = await self._perform(step, user_id)
        session.booking_draft = step.draft
        return _Outcome(step.reply, navigate_to=step.navigate_to)

    async def _perform(self, step: FlowStep, user_id: Optional[str]) -> FlowStep:
        """Carry out a step's side effect and apply the follow-up transition."""
        if step.action == FlowAction.ALLOCATE_SEATS:
            return await self._auto_assign(step.draft)
        if step.action == FlowAction.PERSIST_BOOKING:
            return await self._persist(step.draft, user_id)
        return step

    async def _auto_assign(self, draft: BookingDraft) -> FlowStep:
        booked = await self._get_store().list_booked_seats(draft.flight.id, draft.travel_class)
        preferences = [p.seat_pref or SeatPreference() for p in draft.passengers]
        seats = self._get_allocator().allocate(
            draft.flight,
            preferences,
            booked_seats=booked,
            travel_class=draft.travel_class,
        )
        return apply_auto_allocation(draft, seats)

    async def _persist(self, draft: BookingDraft, user_id: Optional[str]) -> FlowStep:
        if not user_id:
            return mark_awaiting_login(draft)

        try:
            record = await self._get_store().create_booking(draft, user_id=user_id)
        except SeatConflictError as e:
            logger.info(f"Seat conflict on flight {draft.flight.id}: {e.seats}")
            return open_manual_selection(
                draft,
                reason=f"Sorry, seat(s) {', '.join(e.seats)} were just taken.",
            )
        return mark_persisted(draft, record.booking_id)

    # === Seat Selection and Payment ===

    async def submit_seats(self, session_id: str, seats: list[str]) -> TurnResult:
        """
        Apply seats chosen on the seat-selection surface.

        Raises:
            NoActiveDraftError: If the session has no booking draft
            SeatSelectionError: If the seats are invalid for this draft
            SeatConflictError: If any seat is already booked
        """
        session_mgr = await self._get_session_manager()
        lock = session_mgr.lock_for(session_id)

        async with lock:
            session = await session_mgr.get(session_id)
            if session is None or session.booking_draft is None:
                raise NoActiveDraftError("No booking in progress for this session")

            draft = session.booking_draft
            if draft.stage not in (BookingStage.COLLECT_MANUAL_CHOICE, BookingStage.SEAT_ASSIGNMENT):
                raise SeatSelectionError(
                    f"Seat selection is not open (booking is at {draft.stage.value})"
                )

            chosen = [seat.strip().upper() for seat in seats]
            if len(chosen) != draft.expected_passengers:
                raise SeatSelectionError(
                    f"Expected {draft.expected_passengers} seat(s), got {len(chosen)}"
                )
            if len(set(chosen)) != len(chosen):
                raise SeatSelectionError("Each passenger needs a different seat")

            cabin = self._get_allocator().cabin_for(draft.flight, draft.travel_class).seat_ids()
            unknown = [seat for seat in chosen if seat not in cabin]
            if unknown:
                raise SeatSelectionError(
                    f"Unknown seat(s) for {draft.travel_class}: {', '.join(unknown)}"
                )

            booked = set(
                await self._get_store().list_booked_seats(draft.flight.id, draft.travel_class)
            )
            taken = [seat for seat in chosen if seat in booked]
            if taken:
                raise SeatConflictError(taken)

            step = apply_manual_seats(draft, chosen)
            session.booking_draft = step.draft
            session.add_turn("assistant", step.reply)
            await session_mgr.save(session)

            return TurnResult(
                reply=step.reply,
                session_id=session_id,
                booking_draft=step.draft.to_dict(),
            )

    async def confirm_payment(
        self,
        session_id: str,
        payment_result: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> BookingRecord:
        """
        Record a successful payment for the session's confirmed booking.

        A draft that was persisted at confirmation is marked Paid. A draft
        confirmed anonymously is created now, already Paid, which requires
        an authenticated traveler. The session is deleted afterwards.

        Raises:
            NoActiveDraftError: If nothing is awaiting payment
            AuthenticationRequiredError: If the booking must be created and
                the caller is anonymous
            SeatConflictError: If a seat was booked by someone else in the
                meantime; seat selection is reopened before raising
        """
        session_mgr = await self._get_session_manager()
        lock = session_mgr.lock_for(session_id)

        async with lock:
            session = await session_mgr.get(session_id)
            draft = session.booking_draft if session else None
            if draft is None or not draft.ready_for_payment:
                raise NoActiveDraftError("No confirmed booking is awaiting payment")

            store = self._get_store()
            if draft.booking_id:
                record = await store.update_payment_status(
                    draft.booking_id, PaymentStatus.PAID, payment_result
                )
            else:
                if not user_id:
                    raise AuthenticationRequiredError("Please log in to complete payment")
                try:
                    record = await store.create_booking(
                        draft,
                        user_id=user_id,
                        payment_status=PaymentStatus.PAID,
                        payment_result=payment_result,
                    )
                except SeatConflictError as e:
                    logger.info(f"Seat conflict at payment on flight {draft.flight.id}: {e.seats}")
                    step = open_manual_selection(
                        draft,
                        reason=f"Sorry, seat(s) {', '.join(e.seats)} were just taken.",
                    )
                    session.booking_draft = step.draft
                    session.add_turn("assistant", step.reply)
                    await session_mgr.save(session)
                    raise

            await session_mgr.delete(session_id)
            logger.info(f"Payment confirmed for booking {record.booking_id}")
            return record

    # === Session Management ===

    async def get_session(self, session_id: str) -> Optional[SessionData]:
        """Get session by ID."""
        session_mgr = await self._get_session_manager()
        return await session_mgr.get(session_id)

    async def reset_session(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed."""
        session_mgr = await self._get_session_manager()
        return await session_mgr.delete(session_id)


# Singleton
_engine: Optional[AssistantEngine] = None


def get_assistant_engine() -> AssistantEngine:
    """Get singleton AssistantEngine."""
    global _engine
    if _engine is None:
        _engine = AssistantEngine()
    return _engine
