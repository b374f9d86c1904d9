"""Great-circle distance between profile locations."""

import math
from typing import Optional

from .schema import Location

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles between two coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


def distance_between(a: Optional[Location], b: Optional[Location]) -> Optional[float]:
    """
    Distance in miles between two locations.

    Returns None when either side lacks coordinates; callers treat that as
    an unknown distance.
    """
    if a is None or b is None or not a.has_coordinates or not b.has_coordinates:
        return None
    return round(haversine_miles(a.latitude, a.longitude, b.latitude, b.longitude), 1)
