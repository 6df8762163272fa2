"""
Database Models

SQLAlchemy ORM models for flights, traveler accounts and bookings.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List

from sqlalchemy import (
    DateTime, Float, ForeignKey, Index, String,
    Enum as SQLEnum, text
)
from sqlalchemy.dialects.postgresql import UUID, JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from app.core.flights.types import FlightRecord


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class PaymentStatus(str, Enum):
    """Booking payment status enumeration."""
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class User(Base, TimestampMixin):
    """
    Traveler account.

    Only the hash of the bearer token is stored; token issuance lives
    outside this service.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    token_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        nullable=True
    )

    bookings: Mapped[List["Booking"]] = relationship("Booking", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Flight(Base, TimestampMixin):
    """
    Scheduled flight with per-class seat capacity.

    Seat capacity is a JSON object ({"economy": 180, "business": 12,
    "first": 0}) and aircraft is {"make": ..., "model": ...}.
    """

    __tablename__ = "flights"
    __table_args__ = (
        Index("idx_flight_route", "departure_city_code", "arrival_city_code"),
        Index("idx_flight_number", "flight_number"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    flight_number: Mapped[str] = mapped_column(String(20), nullable=False)
    airline: Mapped[str] = mapped_column(String(100), nullable=False)
    logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    departure_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    departure_city_code: Mapped[str] = mapped_column(String(3), nullable=False)
    arrival_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    arrival_city_code: Mapped[str] = mapped_column(String(3), nullable=False)
    departure_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    arrival_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    seats: Mapped[dict] = mapped_column(JSON, default=dict)
    aircraft: Mapped[dict] = mapped_column(JSON, default=dict)
    terminal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    gate: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    bookings: Mapped[List["Booking"]] = relationship("Booking", back_populates="flight")

    def to_record(self) -> FlightRecord:
        """Convert to the assistant's flight record."""
        return FlightRecord(
            id=self.id,
            airline=self.airline,
            flight_number=self.flight_number,
            departure_city_code=self.departure_city_code,
            arrival_city_code=self.arrival_city_code,
            departure_time=self.departure_time,
            arrival_time=self.arrival_time,
            price=self.price,
            seats=dict(self.seats or {}),
            aircraft=dict(self.aircraft or {}),
            departure_city=self.departure_city,
            arrival_city=self.arrival_city,
            duration=self.duration,
            terminal=self.terminal,
            gate=self.gate,
            logo=self.logo,
        )

    def __repr__(self) -> str:
        return (
            f"<Flight(id={self.id}, number='{self.flight_number}', "
            f"route={self.departure_city_code}->{self.arrival_city_code})>"
        )


class Booking(Base, TimestampMixin):
    """
    Flight booking created from a confirmed assistant draft.

    Passengers and seats are stored as JSON arrays in passenger order.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        Index("idx_booking_flight", "flight_id"),
        Index("idx_booking_user", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    flight_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("flights.id", ondelete="CASCADE"),
        nullable=False
    )
    travel_class: Mapped[str] = mapped_column(String(20), default="Economy")
    passengers: Mapped[list] = mapped_column(JSON, default=list)
    seats: Mapped[list] = mapped_column(JSON, default=list)
    total_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING
    )
    payment_result: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    user: Mapped[Optional["User"]] = relationship("User", back_populates="bookings")
    flight: Mapped["Flight"] = relationship("Flight", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, flight_id={self.flight_id}, "
            f"status={self.payment_status.value})>"
        )
