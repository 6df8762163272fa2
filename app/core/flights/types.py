"""Flight record shared by lookup, filtering, advice and seating."""

from dataclasses import dataclass, field
from typing import Any, Optional


def _number(value: Any) -> Optional[float]:
    """Coerce a price-like value to float, None when absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return None


@dataclass
class FlightRecord:
    """Flight as returned by the flight lookup service (read-only to the assistant)."""

    id: str
    airline: str
    flight_number: str
    departure_city_code: str
    arrival_city_code: str
    departure_time: Optional[str] = None  # "06:30", "6:30 pm", ...
    arrival_time: Optional[str] = None
    price: Optional[float] = None
    seats: dict = field(default_factory=dict)  # {"economy": 180, "business": 12, "first": 0}
    aircraft: dict = field(default_factory=dict)  # {"make": "Airbus", "model": "A320"}
    departure_city: Optional[str] = None
    arrival_city: Optional[str] = None
    duration: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    logo: Optional[str] = None

    @property
    def aircraft_name(self) -> str:
        """Layout catalog key, e.g. "Airbus A320"."""
        make = (self.aircraft or {}).get("make") or ""
        model = (self.aircraft or {}).get("model") or ""
        return f"{make} {model}".strip()

    def seat_capacity(self, travel_class: str) -> Optional[int]:
        """Number of seats in a cabin, None when unknown."""
        value = (self.seats or {}).get(travel_class.lower())
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_dict(cls, data: dict) -> "FlightRecord":
        """Create from a store document (camelCase or snake_case keys)."""
        return cls(
            id=str(data.get("id", data.get("_id", ""))),
            airline=data.get("airline", ""),
            flight_number=data.get("flightNumber", data.get("flight_number", "")),
            departure_city_code=data.get(
                "departureCityCode", data.get("departure_city_code", "")
            ),
            arrival_city_code=data.get(
                "arrivalCityCode", data.get("arrival_city_code", "")
            ),
            departure_time=data.get("departureTime", data.get("departure_time")),
            arrival_time=data.get("arrivalTime", data.get("arrival_time")),
            price=_number(data.get("price")),
            seats=dict(data.get("seats") or {}),
            aircraft=dict(data.get("aircraft") or {}),
            departure_city=data.get("from", data.get("departure_city")),
            arrival_city=data.get("to", data.get("arrival_city")),
            duration=data.get("duration"),
            terminal=data.get("terminal"),
            gate=data.get("gate"),
            logo=data.get("logo"),
        )

    def to_dict(self) -> dict:
        """Convert to the camelCase shape used in replies and navigation state."""
        return {
            "id": self.id,
            "airline": self.airline,
            "flightNumber": self.flight_number,
            "from": self.departure_city,
            "departureCityCode": self.departure_city_code,
            "to": self.arrival_city,
            "arrivalCityCode": self.arrival_city_code,
            "departureTime": self.departure_time,
            "arrivalTime": self.arrival_time,
            "duration": self.duration,
            "price": self.price,
            "seats": dict(self.seats),
            "aircraft": dict(self.aircraft),
            "terminal": self.terminal,
            "gate": self.gate,
            "logo": self.logo,
        }
