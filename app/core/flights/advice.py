"""Advice Engine: cheapest, earliest and balanced picks over a result set."""

from dataclasses import dataclass
from typing import Optional, Sequence

from .filters import departure_hour
from .types import FlightRecord

PRICE_WEIGHT = 0.6
TIME_WEIGHT = 0.4
NEUTRAL_TIME_SCORE = 0.5


@dataclass
class FlightAdvice:
    """Recommended flights for a suggestion request."""

    cheapest: Optional[FlightRecord] = None
    earliest: Optional[FlightRecord] = None
    balanced: Optional[FlightRecord] = None

    @property
    def is_empty(self) -> bool:
        return self.cheapest is None and self.earliest is None and self.balanced is None


def _median_price(flights: Sequence[FlightRecord]) -> Optional[float]:
    prices = sorted(f.price for f in flights if f.price is not None)
    if not prices:
        return None
    return prices[len(prices) // 2]


def suggest_flights(flights: Sequence[FlightRecord]) -> FlightAdvice:
    """Compute cheapest / earliest / balanced recommendations.

    - cheapest: lowest price, first encountered on ties
    - earliest: lowest departure hour among flights with a parsable time
    - balanced: best 0.6 * price score + 0.4 * time score, where the
      price score measures closeness to the median price and the time
      score closeness to midday

    Args:
        flights: Result set to analyse

    Returns:
        FlightAdvice (all fields None for an empty result set)
    """
    advice = FlightAdvice()
    if not flights:
        return advice

    best_price = float("inf")
    best_hour: Optional[int] = None
    for flight in flights:
        price = flight.price if flight.price is not None else float("inf")
        if advice.cheapest is None or price < best_price:
            advice.cheapest = flight
            best_price = price

        hour = departure_hour(flight)
        if hour is not None and (best_hour is None or hour < best_hour):
            advice.earliest = flight
            best_hour = hour

    median = _median_price(flights)
    if median is None:
        return advice

    divisor = median or 1
    best_score = float("-inf")
    for flight in flights:
        price = flight.price if flight.price is not None else median
        price_score = 1 - abs(price - median) / divisor

        hour = departure_hour(flight)
        time_score = NEUTRAL_TIME_SCORE if hour is None else 1 - abs(hour - 12) / 12

        score = PRICE_WEIGHT * price_score + TIME_WEIGHT * time_score
        if score > best_score:
            advice.balanced = flight
            best_score = score

    return advice
