"""Great-circle distance between two coordinates."""

from __future__ import annotations

import math

from vocbridge._constants import KM_PER_DEGREE


def distance_km(
    lat1: float | None,
    lon1: float | None,
    lat2: float | None,
    lon2: float | None,
) -> float:
    """Distance in kilometres using the spherical law of cosines.

    Returns ``0`` when any coordinate is missing or exactly zero.
    """
    if not lat1 or not lon1 or not lat2 or not lon2:
        return 0.0

    radlat1 = math.radians(lat1)
    radlat2 = math.radians(lat2)
    radtheta = math.radians(lon1 - lon2)
    cosine = math.sin(radlat1) * math.sin(radlat2) + math.cos(radlat1) * math.cos(radlat2) * math.cos(radtheta)
    # Rounding can push identical points just past 1.0.
    cosine = max(-1.0, min(1.0, cosine))
    return math.degrees(math.acos(cosine)) * KM_PER_DEGREE
