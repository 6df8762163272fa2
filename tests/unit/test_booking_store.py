"""Tests for the in-memory booking store."""

import pytest

from app.core.booking.draft import BookingDraft, Passenger
from app.core.booking.state import BookingStage
from app.core.booking.store import (
    BookingNotFoundError,
    BookingStoreError,
    InMemoryBookingStore,
    SeatConflictError,
)
from app.core.flights.types import FlightRecord
from app.models.database import PaymentStatus


def _draft(seats: list[str], travel_class: str = "Economy", ready: bool = True) -> BookingDraft:
    flight = FlightRecord(
        id="f1",
        airline="IndiGo",
        flight_number="6E201",
        departure_city_code="MAA",
        arrival_city_code="DEL",
        price=4500,
    )
    draft = BookingDraft.new(flight, len(seats), travel_class)
    draft.passengers = [
        Passenger(full_name=f"Traveler {i}", age=30, gender="Female")
        for i in range(len(seats))
    ]
    draft.selected_seats = list(seats)
    draft.stage = BookingStage.SEAT_ASSIGNMENT
    draft.ready_for_payment = ready
    return draft


class TestInMemoryBookingStore:
    """Test booking persistence and seat conflicts."""

    @pytest.fixture
    def store(self):
        """Fresh store."""
        return InMemoryBookingStore()

    @pytest.mark.asyncio
    async def test_create_booking_pending(self, store):
        """Test a confirmed draft is stored as Pending."""
        record = await store.create_booking(_draft(["E1A", "E1B"]), user_id="u1")

        assert record.payment_status == PaymentStatus.PENDING
        assert record.seats == ["E1A", "E1B"]
        assert record.total_amount == 9000
        assert record.user_id == "u1"
        assert record.passengers[0]["fullName"] == "Traveler 0"
        assert store.bookings == [record]

    @pytest.mark.asyncio
    async def test_list_booked_seats(self, store):
        """Test booked seats are unique and filterable by class."""
        await store.create_booking(_draft(["E1A", "E1B"]))
        await store.create_booking(_draft(["B1A"], travel_class="Business"))

        assert await store.list_booked_seats("f1") == ["E1A", "E1B", "B1A"]
        assert await store.list_booked_seats("f1", "business") == ["B1A"]
        assert await store.list_booked_seats("other") == []

    @pytest.mark.asyncio
    async def test_seat_conflict(self, store):
        """Test already booked seats are rejected."""
        await store.create_booking(_draft(["E1A"]))

        with pytest.raises(SeatConflictError) as exc_info:
            await store.create_booking(_draft(["E1B", "E1A"]))

        assert exc_info.value.seats == ["E1A"]
        assert len(store.bookings) == 1

    @pytest.mark.asyncio
    async def test_unconfirmed_draft_rejected(self, store):
        """Test a draft not marked ready is not persisted."""
        with pytest.raises(BookingStoreError):
            await store.create_booking(_draft(["E1A"], ready=False))

    @pytest.mark.asyncio
    async def test_missing_seats_rejected(self, store):
        """Test a draft without one seat per passenger is not persisted."""
        draft = _draft(["E1A", "E1B"])
        draft.selected_seats = ["E1A"]

        with pytest.raises(BookingStoreError):
            await store.create_booking(draft)

    @pytest.mark.asyncio
    async def test_update_payment_status(self, store):
        """Test marking a booking paid."""
        record = await store.create_booking(_draft(["E1A"]))

        updated = await store.update_payment_status(
            record.booking_id, PaymentStatus.PAID, {"reference": "pay_1"}
        )

        assert updated.payment_status == PaymentStatus.PAID
        assert updated.to_dict()["paymentStatus"] == PaymentStatus.PAID.value
        assert updated.to_dict()["paymentResult"] == {"reference": "pay_1"}

    @pytest.mark.asyncio
    async def test_update_unknown_booking(self, store):
        """Test unknown booking id."""
        with pytest.raises(BookingNotFoundError):
            await store.update_payment_status("missing", PaymentStatus.PAID)
