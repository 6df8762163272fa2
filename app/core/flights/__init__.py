"""
Flight records and result-set operations.

Usage:
    from app.core.flights import apply_filters, suggest_flights

    cheaper = apply_filters(results, "evening flights under 6000")
    advice = suggest_flights(results)
"""

from .types import FlightRecord
from .filters import apply_filters, departure_hour, has_filter_directive, parse_hour
from .advice import FlightAdvice, suggest_flights
from .formatting import format_advice, format_flights_short, format_price

__all__ = [
    "FlightRecord",
    # Filtering
    "apply_filters",
    "departure_hour",
    "has_filter_directive",
    "parse_hour",
    # Advice
    "FlightAdvice",
    "suggest_flights",
    # Formatting
    "format_advice",
    "format_flights_short",
    "format_price",
]
