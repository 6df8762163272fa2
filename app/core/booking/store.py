"""
Booking Store collaborator.

Persists confirmed drafts and reports seats already taken on a flight.
The SQL implementation backs the API; the in-memory one serves local
development and tests.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.models.database import Booking, PaymentStatus
from .draft import BookingDraft

logger = logging.getLogger(__name__)


class BookingStoreError(Exception):
    """Base exception for booking persistence."""
    pass


class SeatConflictError(BookingStoreError):
    """Raised when requested seats are already booked on the flight."""

    def __init__(self, seats: list[str]):
        self.seats = list(seats)
        super().__init__(f"Seats already booked: {', '.join(self.seats)}")


class BookingNotFoundError(BookingStoreError):
    """Raised when a booking id does not exist."""
    pass


@dataclass
class BookingRecord:
    """Persisted booking as seen by the assistant."""

    booking_id: str
    flight_id: str
    travel_class: str
    passengers: list[dict]
    seats: list[str]
    total_amount: float
    payment_status: PaymentStatus = PaymentStatus.PENDING
    user_id: Optional[str] = None
    payment_result: Optional[dict] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "bookingId": self.booking_id,
            "flightId": self.flight_id,
            "travelClass": self.travel_class,
            "passengers": self.passengers,
            "seats": self.seats,
            "totalAmount": self.total_amount,
            "paymentStatus": self.payment_status.value,
            "userId": self.user_id,
            "paymentResult": self.payment_result,
        }

    @classmethod
    def from_model(cls, booking: Booking) -> "BookingRecord":
        """Create from an ORM row."""
        return cls(
            booking_id=str(booking.id),
            flight_id=booking.flight_id,
            travel_class=booking.travel_class,
            passengers=list(booking.passengers or []),
            seats=list(booking.seats or []),
            total_amount=float(booking.total_amount or 0),
            payment_status=booking.payment_status,
            user_id=str(booking.user_id) if booking.user_id else None,
            payment_result=booking.payment_result,
        )


def _passenger_payload(draft: BookingDraft) -> list[dict]:
    return [p.to_dict() for p in draft.passengers]


def _check_persistable(draft: BookingDraft) -> None:
    if not draft.ready_for_payment:
        raise BookingStoreError("Draft has not been confirmed")
    if not draft.is_confirmable():
        raise BookingStoreError("Draft is missing passenger details or seats")


class BookingStore(ABC):
    """Contract for booking persistence."""

    @abstractmethod
    async def list_booked_seats(
        self,
        flight_id: str,
        travel_class: Optional[str] = None,
    ) -> list[str]:
        """Unique seat ids already booked on a flight, optionally for one class."""
        pass

    @abstractmethod
    async def create_booking(
        self,
        draft: BookingDraft,
        user_id: Optional[str] = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        """Persist a confirmed draft.

        Raises:
            SeatConflictError: If any selected seat is already booked
            BookingStoreError: If the draft is not confirmed or storage fails
        """
        pass

    @abstractmethod
    async def update_payment_status(
        self,
        booking_id: str,
        status: PaymentStatus,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        """Set a booking's payment status.

        Raises:
            BookingNotFoundError: If the booking does not exist
        """
        pass


class InMemoryBookingStore(BookingStore):
    """Booking store kept in process memory."""

    def __init__(self):
        self._bookings: dict[str, BookingRecord] = {}

    @property
    def bookings(self) -> list[BookingRecord]:
        return list(self._bookings.values())

    async def list_booked_seats(
        self,
        flight_id: str,
        travel_class: Optional[str] = None,
    ) -> list[str]:
        seats: list[str] = []
        for booking in self._bookings.values():
            if booking.flight_id != flight_id:
                continue
            if travel_class and booking.travel_class.lower() != travel_class.lower():
                continue
            for seat in booking.seats:
                if seat not in seats:
                    seats.append(seat)
        return seats

    async def create_booking(
        self,
        draft: BookingDraft,
        user_id: Optional[str] = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        _check_persistable(draft)

        taken = set(await self.list_booked_seats(draft.flight.id))
        conflicts = [seat for seat in draft.selected_seats if seat in taken]
        if conflicts:
            raise SeatConflictError(conflicts)

        record = BookingRecord(
            booking_id=str(uuid.uuid4()),
            flight_id=draft.flight.id,
            travel_class=draft.travel_class,
            passengers=_passenger_payload(draft),
            seats=list(draft.selected_seats),
            total_amount=draft.total_amount,
            payment_status=payment_status,
            user_id=user_id,
            payment_result=payment_result,
        )
        self._bookings[record.booking_id] = record
        logger.info(f"Booking {record.booking_id} created for flight {record.flight_id}")
        return record

    async def update_payment_status(
        self,
        booking_id: str,
        status: PaymentStatus,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        record = self._bookings.get(booking_id)
        if record is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        record.payment_status = status
        record.payment_result = payment_result
        return record


class SqlBookingStore(BookingStore):
    """Booking store backed by the bookings table."""

    async def list_booked_seats(
        self,
        flight_id: str,
        travel_class: Optional[str] = None,
    ) -> list[str]:
        from app.infra.database import get_db_context

        query = select(Booking.seats).where(Booking.flight_id == flight_id)
        if travel_class:
            query = query.where(Booking.travel_class == travel_class)

        try:
            async with get_db_context() as db:
                result = await db.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Booked-seat lookup for flight {flight_id} failed: {e}")
            raise BookingStoreError(f"Booked-seat lookup failed: {e}") from e

        seats: list[str] = []
        for row in rows:
            for seat in row or []:
                if seat not in seats:
                    seats.append(seat)
        return seats

    async def create_booking(
        self,
        draft: BookingDraft,
        user_id: Optional[str] = None,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        from app.infra.database import get_db_context

        _check_persistable(draft)

        taken = set(await self.list_booked_seats(draft.flight.id))
        conflicts = [seat for seat in draft.selected_seats if seat in taken]
        if conflicts:
            raise SeatConflictError(conflicts)

        booking = Booking(
            user_id=uuid.UUID(user_id) if user_id else None,
            flight_id=draft.flight.id,
            travel_class=draft.travel_class,
            passengers=_passenger_payload(draft),
            seats=list(draft.selected_seats),
            total_amount=draft.total_amount,
            payment_status=payment_status,
            payment_result=payment_result,
        )
        try:
            async with get_db_context() as db:
                db.add(booking)
                await db.flush()
                record = BookingRecord.from_model(booking)
        except SQLAlchemyError as e:
            logger.error(f"Creating booking for flight {draft.flight.id} failed: {e}")
            raise BookingStoreError(f"Booking creation failed: {e}") from e

        logger.info(f"Booking {record.booking_id} created for flight {record.flight_id}")
        return record

    async def update_payment_status(
        self,
        booking_id: str,
        status: PaymentStatus,
        payment_result: Optional[dict] = None,
    ) -> BookingRecord:
        from app.infra.database import get_db_context

        try:
            key = uuid.UUID(booking_id)
        except ValueError:
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        try:
            async with get_db_context() as db:
                booking = await db.get(Booking, key)
                if booking is None:
                    raise BookingNotFoundError(f"Booking {booking_id} not found")
                booking.payment_status = status
                booking.payment_result = payment_result
                await db.flush()
                return BookingRecord.from_model(booking)
        except SQLAlchemyError as e:
            logger.error(f"Updating payment status of {booking_id} failed: {e}")
            raise BookingStoreError(f"Payment status update failed: {e}") from e


# Singleton
_store: Optional[BookingStore] = None


def get_booking_store() -> BookingStore:
    """Get singleton BookingStore for the configured backend."""
    global _store
    if _store is None:
        if settings.store_backend == "memory":
            _store = InMemoryBookingStore()
        else:
            _store = SqlBookingStore()
    return _store
