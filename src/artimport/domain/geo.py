"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from artimport.domain.model import Location

EARTH_RADIUS_METERS = 6_371_000.0


def haversine_distance(origin: Location, target: Location) -> float:
    """Distance in meters between two points on a spherical earth."""

    lat1 = math.radians(origin.lat)
    lat2 = math.radians(target.lat)
    delta_lat = lat2 - lat1
    delta_lon = math.radians(target.lon - origin.lon)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
