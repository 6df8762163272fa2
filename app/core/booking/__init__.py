"""Booking draft, passenger-collection flow and booking persistence."""

from .state import BookingStage, VALID_TRANSITIONS, can_transition, is_collecting_stage
from .draft import BookingDraft, Passenger
from .flow import FlowAction, FlowStep, advance, start_booking
from .store import (
    BookingNotFoundError,
    BookingRecord,
    BookingStore,
    BookingStoreError,
    InMemoryBookingStore,
    SeatConflictError,
    SqlBookingStore,
    get_booking_store,
)

__all__ = [
    # State
    "BookingStage",
    "VALID_TRANSITIONS",
    "can_transition",
    "is_collecting_stage",
    # Draft
    "BookingDraft",
    "Passenger",
    # Flow
    "FlowAction",
    "FlowStep",
    "advance",
    "start_booking",
    # Store
    "BookingNotFoundError",
    "BookingRecord",
    "BookingStore",
    "BookingStoreError",
    "InMemoryBookingStore",
    "SeatConflictError",
    "SqlBookingStore",
    "get_booking_store",
]
