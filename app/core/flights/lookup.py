"""
Flight Lookup collaborator.

Read-only access to flights by route and by flight number. The SQL
implementation backs the API; the in-memory one serves fixtures,
local development and tests.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from .types import FlightRecord

logger = logging.getLogger(__name__)


class FlightLookupError(Exception):
    """Raised when the flight store cannot be queried."""
    pass


class FlightLookup(ABC):
    """Contract for flight lookup services."""

    @abstractmethod
    async def find_by_route(self, origin_iata: str, destination_iata: str) -> list[FlightRecord]:
        """List flights between two airports (codes matched case-insensitively)."""
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[FlightRecord]:
        """Find a flight by flight number (case-insensitive)."""
        pass


class InMemoryFlightLookup(FlightLookup):
    """Flight lookup over a fixed list of records."""

    def __init__(self, flights: Iterable[FlightRecord] = ()):
        self._flights = list(flights)

    @classmethod
    def from_file(cls, path: str) -> "InMemoryFlightLookup":
        """Load flights from a JSON array of flight documents."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        flights = [FlightRecord.from_dict(item) for item in raw]
        logger.info(f"Loaded {len(flights)} flights from {path}")
        return cls(flights)

    def add(self, flight: FlightRecord) -> None:
        self._flights.append(flight)

    async def find_by_route(self, origin_iata: str, destination_iata: str) -> list[FlightRecord]:
        origin = origin_iata.upper()
        destination = destination_iata.upper()
        return [
            f for f in self._flights
            if f.departure_city_code.upper() == origin
            and f.arrival_city_code.upper() == destination
        ]

    async def find_by_code(self, code: str) -> Optional[FlightRecord]:
        wanted = code.strip().upper()
        for flight in self._flights:
            if flight.flight_number.upper() == wanted:
                return flight
        return None


class SqlFlightLookup(FlightLookup):
    """Flight lookup backed by the flights table."""

    async def find_by_route(self, origin_iata: str, destination_iata: str) -> list[FlightRecord]:
        from app.infra.database import get_db_context
        from app.models.database import Flight

        query = (
            select(Flight)
            .where(func.upper(Flight.departure_city_code) == origin_iata.upper())
            .where(func.upper(Flight.arrival_city_code) == destination_iata.upper())
            .order_by(Flight.departure_time)
        )
        try:
            async with get_db_context() as db:
                result = await db.execute(query)
                return [row.to_record() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Route lookup {origin_iata}->{destination_iata} failed: {e}")
            raise FlightLookupError(f"Route lookup failed: {e}") from e

    async def find_by_code(self, code: str) -> Optional[FlightRecord]:
        from app.infra.database import get_db_context
        from app.models.database import Flight

        query = (
            select(Flight)
            .where(func.upper(Flight.flight_number) == code.strip().upper())
            .limit(1)
        )
        try:
            async with get_db_context() as db:
                result = await db.execute(query)
                row = result.scalars().first()
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            logger.error(f"Flight code lookup '{code}' failed: {e}")
            raise FlightLookupError(f"Flight code lookup failed: {e}") from e


# Singleton
_lookup: Optional[FlightLookup] = None


def get_flight_lookup() -> FlightLookup:
    """Get singleton FlightLookup for the configured backend."""
    global _lookup
    if _lookup is None:
        if settings.store_backend == "memory":
            if settings.flights_fixture_path:
                _lookup = InMemoryFlightLookup.from_file(settings.flights_fixture_path)
            else:
                _lookup = InMemoryFlightLookup()
        else:
            _lookup = SqlFlightLookup()
    return _lookup
