"""Tests for result filtering."""

import pytest

from app.core.flights.filters import (
    apply_filters,
    departure_hour,
    has_filter_directive,
    parse_hour,
)
from app.core.flights.types import FlightRecord


def _flight(id: str, airline: str, number: str, departure: str, price) -> FlightRecord:
    return FlightRecord(
        id=id,
        airline=airline,
        flight_number=number,
        departure_city_code="MAA",
        arrival_city_code="DEL",
        departure_time=departure,
        price=price,
    )


class TestApplyFilters:
    """Test directive parsing and application."""

    @pytest.fixture
    def flights(self):
        """Four flights with distinct times and prices."""
        return [
            _flight("a", "IndiGo", "6E201", "06:30", 4500),
            _flight("b", "Air India", "AI540", "13:15", 6200),
            _flight("c", "Vistara", "UK820", "19:45", 5200),
            _flight("d", "IndiGo", "6E305", "9:10 pm", 3900),
        ]

    def _ids(self, flights):
        return [f.id for f in flights]

    def test_under_budget(self, flights):
        """Test price ceiling."""
        assert self._ids(apply_filters(flights, "under 5000")) == ["a", "d"]
        assert self._ids(apply_filters(flights, "below ₹5,000")) == ["a", "d"]

    def test_price_range(self, flights):
        """Test price range in either order."""
        assert self._ids(apply_filters(flights, "4000-6000")) == ["a", "c"]
        assert self._ids(apply_filters(flights, "6000 to 4000")) == ["a", "c"]

    def test_clock_range_is_not_budget(self, flights):
        """Test hour ranges are not read as prices."""
        assert self._ids(apply_filters(flights, "morning 7-9 am")) == ["a"]
        assert self._ids(apply_filters(flights, "between 6 to 8 pm")) == ["a", "b", "c", "d"]

    def test_evening(self, flights):
        """Test evening keeps departures from 17:00."""
        assert self._ids(apply_filters(flights, "evening flights")) == ["c", "d"]

    def test_morning(self, flights):
        """Test morning keeps departures before noon."""
        assert self._ids(apply_filters(flights, "morning")) == ["a"]

    def test_after_and_before(self, flights):
        """Test hour bounds."""
        assert self._ids(apply_filters(flights, "after 6pm")) == ["c", "d"]
        assert self._ids(apply_filters(flights, "before 14:00")) == ["a", "b"]

    def test_airline_only_and_exclude(self, flights):
        """Test airline inclusion and exclusion."""
        assert self._ids(apply_filters(flights, "only indigo")) == ["a", "d"]
        assert self._ids(apply_filters(flights, "no indigo please")) == ["b", "c"]

    def test_cheapest_sort(self, flights):
        """Test price sort."""
        assert self._ids(apply_filters(flights, "cheapest")) == ["d", "a", "c", "b"]

    def test_earliest_sort(self, flights):
        """Test departure sort."""
        assert self._ids(apply_filters(flights, "earliest")) == ["a", "b", "c", "d"]

    def test_filters_then_sort(self, flights):
        """Test sorts apply after all filters."""
        result = apply_filters(flights, "evening under 6000 cheapest")

        assert self._ids(result) == ["d", "c"]

    def test_input_not_modified(self, flights):
        """Test the input sequence is untouched."""
        before = list(flights)
        apply_filters(flights, "cheapest under 5000")

        assert flights == before

    def test_result_is_subset(self, flights):
        """Test filters never add flights."""
        for text in ("under 6000", "evening", "only vistara", "cheapest", "nothing"):
            result = apply_filters(flights, text)
            assert all(f in flights for f in result)

    def test_filter_idempotent(self, flights):
        """Test applying the same directive twice changes nothing."""
        for text in ("under 5000", "evening", "no indigo", "after 1pm cheapest"):
            once = apply_filters(flights, text)
            assert apply_filters(once, text) == once

    def test_missing_price_excluded_from_budget(self, flights):
        """Test flights without a price fail a budget filter."""
        flights.append(_flight("e", "SpiceJet", "SG100", "10:00", None))

        assert "e" not in self._ids(apply_filters(flights, "under 9000"))


class TestHourParsing:
    """Test hour parsing helpers."""

    @pytest.mark.parametrize(
        "text,expected",
        [("7pm", 19), ("19:30", 19), ("7:30 am", 7), ("12am", 0), ("12pm", 12), ("abc", None)],
    )
    def test_parse_hour(self, text, expected):
        """Test clock phrases."""
        assert parse_hour(text) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("06:30", 6), ("6:30 PM", 18), ("12:15 am", 0), ("21", 21), (None, None), ("late", None)],
    )
    def test_departure_hour(self, value, expected):
        """Test departure time formats."""
        flight = _flight("x", "IndiGo", "6E1", value, 1000)

        assert departure_hour(flight) == expected

    def test_has_filter_directive(self):
        """Test directive detection."""
        assert has_filter_directive("under 5000")
        assert has_filter_directive("only IndiGo")
        assert not has_filter_directive("hello there")
