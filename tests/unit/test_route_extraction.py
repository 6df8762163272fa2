"""Tests for origin/destination extraction."""

import pytest

from app.core.assistant.route import extract_route
from app.core.intelligence.cities import CityMatch, CityResolver
from app.core.intelligence.session.models import SearchContext


CHENNAI = CityMatch("Chennai", "MAA")
DELHI = CityMatch("Delhi", "DEL")


class TestExtractRoute:
    """Test route extraction from search messages."""

    @pytest.fixture
    def resolver(self):
        """Create resolver with default catalog."""
        return CityResolver(strict_score=80, loose_score=60)

    def test_from_to(self, resolver):
        """Test explicit 'from X to Y' with trailing date."""
        route = extract_route("Flights from Chennai to Delhi tomorrow", resolver=resolver)

        assert route.origin == CHENNAI
        assert route.destination == DELHI
        assert route.from_message
        assert route.is_complete

    def test_x_to_y(self, resolver):
        """Test 'X to Y' without 'from'."""
        route = extract_route("chennai to mumbai on friday", resolver=resolver)

        assert route.origin.iata == "MAA"
        assert route.destination.iata == "BOM"

    def test_codes(self, resolver):
        """Test airport codes in a pair."""
        route = extract_route("BLR to DEL", resolver=resolver)

        assert route.origin.city == "Bengaluru"
        assert route.destination.city == "Delhi"

    def test_token_scan(self, resolver):
        """Test two city names without a connector."""
        route = extract_route("show me delhi mumbai flights", resolver=resolver)

        assert route.origin.iata == "DEL"
        assert route.destination.iata == "BOM"

    def test_single_city_after_to_is_destination(self, resolver):
        """Test 'to <city>' marks the only city as destination."""
        route = extract_route("I want to fly to goa", resolver=resolver)

        assert route.origin is None
        assert route.destination.iata == "GOI"

    def test_missing_origin_from_context(self, resolver):
        """Test missing city is filled from the previous search."""
        context = SearchContext(from_city=CHENNAI, to_city=DELHI)

        route = extract_route("flights to goa", context=context, resolver=resolver)

        assert route.origin == CHENNAI
        assert route.destination.iata == "GOI"
        assert route.from_message

    def test_date_only_uses_context(self, resolver):
        """Test a message without cities reuses both context cities."""
        context = SearchContext(from_city=CHENNAI, to_city=DELHI)

        route = extract_route("what about tomorrow", context=context, resolver=resolver)

        assert route.origin == CHENNAI
        assert route.destination == DELHI
        assert not route.from_message

    def test_no_cities(self, resolver):
        """Test message without any city."""
        route = extract_route("can you help me", resolver=resolver)

        assert not route.is_complete
        assert not route.from_message
