"""
TripNBook Assistant Tests

Unit tests run without external services: Redis is patched out (sessions
use the in-memory fallback) and flights and bookings use the in-memory
collaborators.

Running Tests:
    # Run all tests with pytest
    pytest tests -v

    # Run one module
    pytest tests/unit/test_assistant_engine.py -v

Test Coverage:
    - City resolution, route and date extraction
    - Result filtering and suggestions
    - Seat allocation
    - Booking flow and booking store
    - Intent decoding and session management
    - Assistant conversation scenarios
    - HTTP endpoints and authentication
"""
