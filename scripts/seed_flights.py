#!/usr/bin/env python3
"""
Flight Seeding Script

Loads a JSON array of flight records into the database so the SQL
flight lookup has something to search. Existing flights with the same
id are updated in place.

Usage:
    python scripts/seed_flights.py data/flights.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()


def print_header(title: str) -> None:
    """Print section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_result(name: str, success: bool, message: str = "") -> None:
    """Print check result."""
    status = "[PASS]" if success else "[FAIL]"
    color = "\033[92m" if success else "\033[91m"
    reset = "\033[0m"
    msg = f" - {message}" if message else ""
    print(f"  {color}{status}{reset} {name}{msg}")


def load_records(path: Path) -> list[dict]:
    """Read and sanity-check the flight documents."""
    with path.open(encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of flight records")
    return data


async def seed(records: list[dict]) -> tuple[int, int]:
    """
    Upsert flight records.

    Returns:
        (stored, skipped) counts
    """
    from app.core.flights.types import FlightRecord
    from app.infra.database import get_db_context, init_db
    from app.models.database import Flight

    await init_db()

    stored = 0
    skipped = 0
    async with get_db_context() as db:
        for raw in records:
            record = FlightRecord.from_dict(raw)
            if not record.id or not record.flight_number:
                print_result(str(raw.get("flightNumber", "?")), False, "missing id or flightNumber")
                skipped += 1
                continue

            await db.merge(
                Flight(
                    id=record.id,
                    flight_number=record.flight_number,
                    airline=record.airline,
                    logo=record.logo,
                    departure_city=record.departure_city,
                    departure_city_code=record.departure_city_code.upper(),
                    arrival_city=record.arrival_city,
                    arrival_city_code=record.arrival_city_code.upper(),
                    departure_time=record.departure_time,
                    arrival_time=record.arrival_time,
                    duration=record.duration,
                    price=record.price,
                    seats=record.seats,
                    aircraft=record.aircraft,
                    terminal=record.terminal,
                    gate=record.gate,
                )
            )
            stored += 1

    return stored, skipped


async def main() -> int:
    parser = argparse.ArgumentParser(description="Seed flight records into the database")
    parser.add_argument("path", type=Path, help="JSON file with an array of flight records")
    args = parser.parse_args()

    print("\n" + "="*60)
    print(" TripNBook - Flight Seeding")
    print("="*60)

    print_header("Input")
    try:
        records = load_records(args.path)
    except (OSError, ValueError) as e:
        print_result(str(args.path), False, str(e)[:80])
        return 1
    print_result(str(args.path), True, f"{len(records)} record(s)")

    print_header("Database")
    try:
        stored, skipped = await seed(records)
    except Exception as e:
        print_result("Seeding", False, str(e)[:80])
        return 1
    finally:
        from app.infra.database import close_db
        await close_db()

    print_result("Seeding", True, f"{stored} stored, {skipped} skipped")
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
