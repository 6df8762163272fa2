"""Tests for seat allocation."""

import pytest

from app.core.flights.types import FlightRecord
from app.core.seating import (
    CabinLayout,
    LayoutCatalog,
    SeatAllocator,
    SeatLocation,
    SeatPreference,
    SeatType,
)


def _flight(aircraft: dict, seats: dict) -> FlightRecord:
    return FlightRecord(
        id="f1",
        airline="IndiGo",
        flight_number="6E201",
        departure_city_code="MAA",
        arrival_city_code="DEL",
        price=4500,
        seats=seats,
        aircraft=aircraft,
    )


class TestSeatAllocator:
    """Test greedy seat assignment."""

    @pytest.fixture
    def allocator(self):
        """Allocator over the built-in layouts."""
        return SeatAllocator(LayoutCatalog())

    @pytest.fixture
    def a320(self):
        """Narrow-body flight: 30 rows of six in economy."""
        return _flight({"make": "Airbus", "model": "A320"}, {"economy": 180, "business": 12})

    # === Cabin Resolution ===

    def test_cabin_for_known_aircraft(self, allocator, a320):
        """Test layout and row count from seat capacity."""
        grid = allocator.cabin_for(a320, "Economy")

        assert grid.columns == ("A", "B", "C", "D", "E", "F")
        assert grid.row_count == 30
        assert len(grid.seat_ids()) == 180

    def test_cabin_for_wide_body_first(self, allocator):
        """Test class-specific layout."""
        flight = _flight({"make": "Boeing", "model": "787 Dreamliner"}, {"first": 8})
        grid = allocator.cabin_for(flight, "First")

        assert grid.columns == ("A", "D", "G", "J")
        assert grid.row_count == 2

    def test_cabin_for_unknown_aircraft_is_generic(self, allocator):
        """Test generic six-abreast fallback."""
        flight = _flight({"make": "Acme", "model": "X1"}, {})
        grid = allocator.cabin_for(flight, "Economy")

        assert len(grid.columns) == 6
        assert grid.row_count == 30

    def test_seat_types(self, allocator, a320):
        """Test window / aisle / middle classification."""
        grid = allocator.cabin_for(a320, "Economy")

        assert grid.seat_type(0) == SeatType.WINDOW
        assert grid.seat_type(1) == SeatType.MIDDLE
        assert grid.seat_type(2) == SeatType.AISLE
        assert grid.seat_type(3) == SeatType.AISLE
        assert grid.seat_type(5) == SeatType.WINDOW

    # === Allocation ===

    def test_window_front(self, allocator, a320):
        """Test a window-front preference gets the first window seat."""
        seats = allocator.allocate(
            a320, [SeatPreference(SeatType.WINDOW, SeatLocation.FRONT)]
        )

        assert seats == ["E1A"]

    def test_group_stays_together(self, allocator, a320):
        """Test later passengers are seated near earlier ones."""
        seats = allocator.allocate(
            a320,
            [
                SeatPreference(SeatType.WINDOW, SeatLocation.FRONT),
                SeatPreference(SeatType.AISLE),
            ],
        )

        assert seats == ["E1A", "E1C"]

    def test_booked_seats_skipped(self, allocator, a320):
        """Test already booked seats are never assigned."""
        seats = allocator.allocate(
            a320,
            [SeatPreference(SeatType.WINDOW, SeatLocation.FRONT)],
            booked_seats=["E1A"],
        )

        assert seats == ["E1F"]

    def test_back_and_wings(self, allocator, a320):
        """Test zone preferences."""
        back = allocator.allocate(a320, [SeatPreference(SeatType.WINDOW, SeatLocation.BACK)])
        wings = allocator.allocate(a320, [SeatPreference(SeatType.WINDOW, SeatLocation.NEAR_WINGS)])

        assert back == ["E23A"]
        assert wings == ["E10A"]

    def test_business_prefix(self, allocator, a320):
        """Test seat ids carry the class initial."""
        seats = allocator.allocate(a320, [SeatPreference()], travel_class="Business")

        assert seats == ["B1A"]

    def test_distinct_and_free(self, allocator, a320):
        """Test every assigned seat is distinct and not booked."""
        booked = ["E1A", "E1B", "E1C"]
        seats = allocator.allocate(a320, [SeatPreference()] * 10, booked_seats=booked)

        assert len(seats) == 10
        assert len(set(seats)) == 10
        assert not set(seats) & set(booked)

    def test_exhausted_returns_none(self, allocator):
        """Test no partial allocation when the cabin is full."""
        flight = _flight({"make": "Airbus", "model": "A320"}, {"economy": 6})

        assert allocator.allocate(flight, [SeatPreference()] * 7) is None

    def test_custom_catalog(self):
        """Test layouts from a supplied catalog."""
        catalog = LayoutCatalog({"Tiny Jet": {"economy": CabinLayout(("A", "B"), 2)}})
        flight = _flight({"make": "Tiny", "model": "Jet"}, {"economy": 4})

        seats = SeatAllocator(catalog).allocate(flight, [SeatPreference()] * 4)

        assert sorted(seats) == ["E1A", "E1B", "E2A", "E2B"]


class TestSeatPreference:
    """Test preference serialization."""

    def test_from_dict_unknown_values(self):
        """Test unknown values mean no preference."""
        pref = SeatPreference.from_dict({"seatType": "sky", "location": "roof"})

        assert pref.seat_type == SeatType.NO_PREF
        assert pref.location == SeatLocation.NO_PREF

    def test_to_dict(self):
        """Test camelCase payload."""
        pref = SeatPreference(SeatType.AISLE, SeatLocation.NEAR_EXIT)

        assert pref.to_dict() == {"seatType": "aisle", "location": "near_exit"}
