import math
from typing import Callable

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_MILE = 1609.344
MILES_PER_DEGREE = 69.0

DistanceFn = Callable[[float, float, float, float], float]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two lat/lng points, in meters.

    Args:
        lat1, lng1: First point in decimal degrees.
        lat2, lng2: Second point in decimal degrees.

    Returns:
        float: Distance in meters on a sphere of radius EARTH_RADIUS_M.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # Rounding can push `a` slightly outside [0, 1] near antipodes
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometers."""
    return haversine_distance(lat1, lng1, lat2, lng2) / 1000.0


def planar_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Flat-earth approximation treating one degree of latitude or longitude as
    69 miles, in meters. Overstates east-west distances away from the equator;
    only use where a rough bound is acceptable.
    """
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    return math.sqrt(dlat * dlat + dlng * dlng) * MILES_PER_DEGREE * METERS_PER_MILE
