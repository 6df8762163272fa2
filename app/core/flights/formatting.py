"""Reply text for flight lists and suggestions."""

from typing import Optional, Sequence

from app.config import settings
from .advice import FlightAdvice
from .types import FlightRecord


def format_price(value: Optional[float]) -> str:
    """Rupee amount without trailing decimals for whole numbers."""
    if value is None:
        return "₹—"
    if float(value).is_integer():
        return f"₹{int(value)}"
    return f"₹{value:.2f}"


def flight_label(flight: FlightRecord) -> str:
    """Short "✈️ IndiGo 6E201" label."""
    return f"✈️ {flight.airline} {flight.flight_number}"


def format_flights_short(flights: Sequence[FlightRecord], limit: Optional[int] = None) -> str:
    """Numbered flight list used in search and filter replies."""
    limit = limit or settings.max_listed_flights
    lines = []
    for index, flight in enumerate(flights[:limit], start=1):
        lines.append(
            f"{index}. {flight_label(flight)}\n"
            f"   {flight.departure_time or '--:--'} → {flight.arrival_time or '--:--'}\n"
            f"   {format_price(flight.price)} · id:{flight.id}"
        )
    if len(flights) > limit:
        lines.append(f"…and {len(flights) - limit} more.")
    return "\n".join(lines)


def format_advice(advice: FlightAdvice) -> str:
    """Cheapest / earliest / balanced summary lines."""
    parts = []
    if advice.cheapest:
        parts.append(
            f"• Cheapest: {flight_label(advice.cheapest)} at {format_price(advice.cheapest.price)}"
        )
    if advice.earliest:
        parts.append(
            f"• Earliest: {flight_label(advice.earliest)} departing {advice.earliest.departure_time}"
        )
    if advice.balanced:
        parts.append(
            f"• Best balance of price and timing: {flight_label(advice.balanced)} "
            f"({format_price(advice.balanced.price)}, {advice.balanced.departure_time or 'time n/a'})"
        )
    return "\n".join(parts)
