"""Booking draft and passenger records."""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

from app.core.flights.types import FlightRecord
from app.core.seating.allocator import SeatPreference
from .state import BookingStage


@dataclass
class Passenger:
    """One traveler, filled in progressively during collection."""

    full_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None  # Male / Female / Other
    seat_pref: Optional[SeatPreference] = None

    @property
    def type(self) -> str:
        """adult, child (2-11) or infant (under 2)."""
        if self.age is None:
            return "adult"
        if self.age < 2:
            return "infant"
        if self.age < 12:
            return "child"
        return "adult"

    def is_complete(self) -> bool:
        """Check that name, age and gender are all present."""
        return bool(self.full_name) and self.age is not None and bool(self.gender)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data: dict[str, Any] = {"type": self.type}
        if self.full_name is not None:
            data["fullName"] = self.full_name
        if self.age is not None:
            data["age"] = self.age
        if self.gender is not None:
            data["gender"] = self.gender
        if self.seat_pref is not None:
            data["seatPref"] = self.seat_pref.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Passenger":
        """Create from dictionary."""
        seat_pref = data.get("seatPref")
        return cls(
            full_name=data.get("fullName"),
            age=data.get("age"),
            gender=data.get("gender"),
            seat_pref=SeatPreference.from_dict(seat_pref) if seat_pref else None,
        )


@dataclass
class BookingDraft:
    """In-progress booking for one selected flight.

    The passenger list is sized once, at creation, to the expected
    passenger count and never grows or shrinks afterwards.
    """

    flight: FlightRecord
    passengers: list[Passenger]
    stage: BookingStage = BookingStage.COLLECT_NAME
    current_index: int = 0
    travel_class: str = "Economy"
    seat_flow: Optional[str] = None  # auto / manual
    selected_seats: list[str] = field(default_factory=list)
    total_amount: float = 0.0
    ready_for_payment: bool = False
    booking_id: Optional[str] = None

    @classmethod
    def new(
        cls,
        flight: FlightRecord,
        passenger_count: int,
        travel_class: str = "Economy",
    ) -> "BookingDraft":
        """Start a draft with empty passenger slots."""
        draft = cls(
            flight=copy.deepcopy(flight),
            passengers=[Passenger() for _ in range(passenger_count)],
            travel_class=travel_class,
        )
        draft.total_amount = draft.compute_total()
        return draft

    @property
    def expected_passengers(self) -> int:
        return len(self.passengers)

    @property
    def current_passenger(self) -> Passenger:
        return self.passengers[self.current_index]

    @property
    def passenger_number(self) -> int:
        """1-based number of the passenger being collected."""
        return self.current_index + 1

    def compute_total(self) -> float:
        """Fare times passenger count (missing fare counts as zero)."""
        return float(self.flight.price or 0) * self.expected_passengers

    def all_passengers_complete(self) -> bool:
        return all(p.is_complete() for p in self.passengers)

    def seats_complete(self) -> bool:
        """One distinct seat per passenger."""
        return (
            len(self.selected_seats) == self.expected_passengers
            and len(set(self.selected_seats)) == len(self.selected_seats)
        )

    def is_confirmable(self) -> bool:
        """All passenger details present and every passenger seated."""
        return self.all_passengers_complete() and self.seats_complete()

    def copy(self) -> "BookingDraft":
        """Deep copy, so transitions never mutate their input."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to the camelCase payload returned to clients."""
        return {
            "flight": self.flight.to_dict(),
            "passengerData": [p.to_dict() for p in self.passengers],
            "expectedPassengers": self.expected_passengers,
            "currentIndex": self.current_index,
            "stage": self.stage.value,
            "travelClass": self.travel_class,
            "seatFlow": self.seat_flow,
            "selectedSeats": list(self.selected_seats),
            "totalAmount": self.total_amount,
            "readyForPayment": self.ready_for_payment,
            "bookingId": self.booking_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BookingDraft":
        """Create from dictionary."""
        return cls(
            flight=FlightRecord.from_dict(data["flight"]),
            passengers=[Passenger.from_dict(p) for p in data.get("passengerData", [])],
            stage=BookingStage(data.get("stage", BookingStage.COLLECT_NAME.value)),
            current_index=data.get("currentIndex", 0),
            travel_class=data.get("travelClass", "Economy"),
            seat_flow=data.get("seatFlow"),
            selected_seats=list(data.get("selectedSeats") or []),
            total_amount=float(data.get("totalAmount") or 0),
            ready_for_payment=data.get("readyForPayment", False),
            booking_id=data.get("bookingId"),
        )
