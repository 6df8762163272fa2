"""
Seat Allocator.

Greedy, order-sensitive seat assignment. Each passenger, in input order,
gets the highest-scoring free seat at the time of their turn:

    seat type match (+10) or no preference (+1)
  + zone match: front/back (+8), near_wings (+9), near_exit (+6),
    or no preference (+1)
  + proximity to seats already assigned in this booking
  + a tiny bias toward lower row numbers

There is no backtracking. A group can fail to be seated even when a
feasible assignment exists; callers fall back to manual selection.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from app.core.flights.types import FlightRecord
from .layouts import CabinLayout, LayoutCatalog, get_layout_catalog

logger = logging.getLogger(__name__)

GENERIC_COLUMNS = ("A", "B", "C", "D", "E", "F")
DEFAULT_ROWS = 30

SEAT_TYPE_MATCH = 10.0
FRONT_BACK_MATCH = 8.0
WINGS_MATCH = 9.0
EXIT_MATCH = 6.0
NO_PREF_SCORE = 1.0
ROW_BIAS = 0.01
PROXIMITY_RANGE = 10
PROXIMITY_STEP = 0.02


class SeatType(str, Enum):
    """Seat position within a row."""

    WINDOW = "window"
    AISLE = "aisle"
    MIDDLE = "middle"
    NO_PREF = "no_pref"


class SeatLocation(str, Enum):
    """Cabin zone."""

    FRONT = "front"
    BACK = "back"
    NEAR_WINGS = "near_wings"
    NEAR_EXIT = "near_exit"
    NO_PREF = "no_pref"


@dataclass
class SeatPreference:
    """A passenger's seat wishes."""

    seat_type: SeatType = SeatType.NO_PREF
    location: SeatLocation = SeatLocation.NO_PREF

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"seatType": self.seat_type.value, "location": self.location.value}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SeatPreference":
        """Create from dictionary (missing or unknown values mean no preference)."""
        data = data or {}
        try:
            seat_type = SeatType(data.get("seatType", data.get("seat_type", "no_pref")))
        except ValueError:
            seat_type = SeatType.NO_PREF
        try:
            location = SeatLocation(data.get("location", "no_pref"))
        except ValueError:
            location = SeatLocation.NO_PREF
        return cls(seat_type=seat_type, location=location)


@dataclass(frozen=True)
class CabinGrid:
    """Concrete seat grid of one cabin on one flight."""

    travel_class: str
    columns: tuple[str, ...]
    row_count: int

    def seat_id(self, row: int, column_index: int) -> str:
        """Seat identifier, e.g. "E12A" (class initial, row, column)."""
        return f"{self.travel_class[0].upper()}{row}{self.columns[column_index]}"

    def seat_type(self, column_index: int) -> SeatType:
        """Classify a column as window, aisle or middle."""
        last = len(self.columns) - 1
        if column_index == 0 or column_index == last:
            return SeatType.WINDOW
        aisle = len(self.columns) // 2
        if column_index in (aisle - 1, aisle):
            return SeatType.AISLE
        return SeatType.MIDDLE

    def seat_ids(self) -> set[str]:
        """Every seat identifier in the cabin."""
        return {
            self.seat_id(row, column_index)
            for row in range(1, self.row_count + 1)
            for column_index in range(len(self.columns))
        }

    @property
    def front_rows(self) -> range:
        return range(1, max(1, math.ceil(self.row_count * 0.25)) + 1)

    @property
    def back_rows(self) -> range:
        start = max(1, math.floor(self.row_count * 0.75) + 1)
        return range(start, self.row_count + 1)

    @property
    def wing_rows(self) -> range:
        start = max(1, math.floor(self.row_count * 0.35))
        end = min(self.row_count, math.ceil(self.row_count * 0.65))
        return range(start, end + 1)

    def in_location(self, row: int, location: SeatLocation) -> bool:
        """Check whether a row belongs to a cabin zone."""
        if location == SeatLocation.FRONT:
            return row in self.front_rows
        if location == SeatLocation.BACK:
            return row in self.back_rows
        if location == SeatLocation.NEAR_WINGS:
            return row in self.wing_rows
        if location == SeatLocation.NEAR_EXIT:
            return row <= self.front_rows.stop - 1 or row in self.wing_rows
        return False


def score_seat(grid: CabinGrid, row: int, column_index: int, pref: SeatPreference) -> float:
    """Preference score of one seat (without the group proximity bonus)."""
    score = 0.0

    if pref.seat_type == SeatType.NO_PREF:
        score += NO_PREF_SCORE
    elif pref.seat_type == grid.seat_type(column_index):
        score += SEAT_TYPE_MATCH

    if pref.location == SeatLocation.NO_PREF:
        score += NO_PREF_SCORE
    elif grid.in_location(row, pref.location):
        if pref.location == SeatLocation.NEAR_WINGS:
            score += WINGS_MATCH
        elif pref.location == SeatLocation.NEAR_EXIT:
            score += EXIT_MATCH
        else:
            score += FRONT_BACK_MATCH

    score += max(0.0, (grid.row_count - row) * ROW_BIAS)
    return score


def _proximity_bonus(row: int, assigned_rows: list[int]) -> float:
    if not assigned_rows:
        return 0.0
    distance = min(abs(assigned - row) for assigned in assigned_rows)
    return max(0.0, (PROXIMITY_RANGE - distance) * PROXIMITY_STEP)


class SeatAllocator:
    """Assigns one seat per passenger from a cabin layout."""

    def __init__(self, catalog: Optional[LayoutCatalog] = None):
        self._catalog = catalog

    def _get_catalog(self) -> LayoutCatalog:
        if self._catalog is None:
            self._catalog = get_layout_catalog()
        return self._catalog

    def cabin_for(self, flight: FlightRecord, travel_class: str = "Economy") -> CabinGrid:
        """Resolve the seat grid for a flight and class.

        Uses the aircraft-specific layout when known, otherwise a generic
        six-abreast cabin sized to the class's seat count.
        """
        layout: Optional[CabinLayout] = self._get_catalog().get(flight.aircraft_name, travel_class)
        if layout is None:
            logger.debug(
                f"No layout for '{flight.aircraft_name}' {travel_class}, using generic cabin"
            )
            layout = CabinLayout(GENERIC_COLUMNS, len(GENERIC_COLUMNS))

        per_row = layout.seats_per_row or len(layout.columns)
        capacity = flight.seat_capacity(travel_class) or per_row * DEFAULT_ROWS
        return CabinGrid(
            travel_class=travel_class,
            columns=layout.columns,
            row_count=math.ceil(capacity / per_row),
        )

    def allocate(
        self,
        flight: FlightRecord,
        preferences: Sequence[SeatPreference],
        booked_seats: Iterable[str] = (),
        travel_class: str = "Economy",
    ) -> Optional[list[str]]:
        """Assign seats to passengers in order.

        Args:
            flight: Flight being booked
            preferences: One preference per passenger, in passenger order
            booked_seats: Seat identifiers already taken on this flight
            travel_class: Cabin class

        Returns:
            Seat identifiers in passenger order, or None if anyone cannot
            be seated (partial allocations are never returned)
        """
        grid = self.cabin_for(flight, travel_class)
        used = set(booked_seats)
        assigned: list[str] = []
        assigned_rows: list[int] = []

        for pref in preferences:
            best_seat: Optional[str] = None
            best_row = 0
            best_score = float("-inf")

            for row in range(1, grid.row_count + 1):
                bonus = _proximity_bonus(row, assigned_rows)
                for column_index in range(len(grid.columns)):
                    seat = grid.seat_id(row, column_index)
                    if seat in used:
                        continue
                    score = score_seat(grid, row, column_index, pref) + bonus
                    if score > best_score:
                        best_seat, best_row, best_score = seat, row, score

            if best_seat is None:
                logger.info(
                    f"Seat allocation exhausted on flight {flight.flight_number} "
                    f"after {len(assigned)} of {len(preferences)} passengers"
                )
                return None

            assigned.append(best_seat)
            assigned_rows.append(best_row)
            used.add(best_seat)

        return assigned


def allocate_seats(
    flight: FlightRecord,
    preferences: Sequence[SeatPreference],
    booked_seats: Iterable[str] = (),
    travel_class: str = "Economy",
) -> Optional[list[str]]:
    """Convenience function using the default layout catalog."""
    return SeatAllocator().allocate(flight, preferences, booked_seats, travel_class)
