#!/usr/bin/env python3
"""Verify connectivity to the configured geocoding and routing providers."""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from fieldroute.config import settings
from fieldroute.errors import AddressNotFound, ProviderUnavailable
from fieldroute.models.domain import Coordinate
from fieldroute.services.routing.planner import build_planner


async def _run(address: str) -> int:
    print("1. Building planner from configuration...")
    try:
        planner = build_planner()
    except ValueError as e:
        print(f"   [ERROR] {e}")
        print("   Set FIELDROUTE_GOOGLE_MAPS_API_KEY / FIELDROUTE_OSRM_BASE_URL in your .env file")
        return 1
    print(f"   [OK] Geocoding provider: {settings.geocoding_provider}")
    print(f"   [OK] Routing provider: {settings.routing_provider}")
    print()

    print(f"2. Resolving '{address}'...")
    try:
        resolved = await planner.resolver.resolve(address)
    except (AddressNotFound, ProviderUnavailable) as e:
        print(f"   [ERROR] {e}")
        return 1
    print(f"   [OK] {resolved.formatted_address} -> {resolved.coordinate.as_tuple()}")
    print()

    if planner.directions is None:
        print("3. Routing provider disabled, skipping directions check")
        return 0

    print("3. Requesting directions between two nearby points...")
    origin = resolved.coordinate
    destination = Coordinate(
        latitude=min(90.0, origin.latitude + 0.01),
        longitude=origin.longitude,
    )
    try:
        directions = await planner.directions.fetch_path(origin, destination, [])
    except ProviderUnavailable as e:
        print(f"   [ERROR] {e}")
        return 1
    if directions is None:
        print("   [WARN] Provider answered but found no route between the test points")
    else:
        print(f"   [OK] Path with {len(directions.path.coordinates)} points, {directions.path.distance_m} m")
    return 0


def main() -> int:
    address = " ".join(sys.argv[1:]) or "1600 Amphitheatre Parkway, Mountain View, CA"
    return asyncio.run(_run(address))


if __name__ == "__main__":
    sys.exit(main())
