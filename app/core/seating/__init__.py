"""Cabin layouts and seat allocation."""

from .layouts import CabinLayout, LayoutCatalog, get_layout_catalog
from .allocator import (
    CabinGrid,
    SeatAllocator,
    SeatLocation,
    SeatPreference,
    SeatType,
    allocate_seats,
    score_seat,
)

__all__ = [
    # Layouts
    "CabinLayout",
    "LayoutCatalog",
    "get_layout_catalog",
    # Allocation
    "CabinGrid",
    "SeatAllocator",
    "SeatLocation",
    "SeatPreference",
    "SeatType",
    "allocate_seats",
    "score_seat",
]
