"""
Coordinate Resolver

Fallback coordinates for regions whose reports carry no latitude/longitude.
Only major cities are known; anything else stays unmapped.
"""

from typing import NamedTuple, Optional


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


CITY_COORDINATES: dict[str, Coordinates] = {
    "mumbai": Coordinates(19.0760, 72.8777),
    "delhi": Coordinates(28.6139, 77.2090),
    "delhinn": Coordinates(28.6139, 77.2090),  # common misspelling in submitted data
    "bangalore": Coordinates(12.9716, 77.5946),
    "bengaluru": Coordinates(12.9716, 77.5946),
    "chennai": Coordinates(13.0827, 80.2707),
    "kolkata": Coordinates(22.5726, 88.3639),
    "hyderabad": Coordinates(17.3850, 78.4867),
    "pune": Coordinates(18.5204, 73.8567),
    "ahmedabad": Coordinates(23.0225, 72.5714),
    "jaipur": Coordinates(26.9124, 75.7873),
    "lucknow": Coordinates(26.8467, 80.9462),
    "bhopal": Coordinates(23.2599, 77.4126),
    "patna": Coordinates(25.5941, 85.1376),
    "kochi": Coordinates(9.9312, 76.2673),
    "goa": Coordinates(15.2993, 74.1240),
    "chandigarh": Coordinates(30.7333, 76.7794),
    "indore": Coordinates(22.7196, 75.8577),
    "nagpur": Coordinates(21.1458, 79.0882),
    "visakhapatnam": Coordinates(17.6868, 83.2185),
    "surat": Coordinates(21.1702, 72.8311),
}


def resolve_coordinates(region: Optional[str]) -> Optional[Coordinates]:
    """Look up a region by trimmed, lowercased name. None if unknown."""
    if not region:
        return None
    return CITY_COORDINATES.get(region.strip().lower())
