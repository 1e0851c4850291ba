"""Great-circle distances between the user and outlets."""

import math
from collections.abc import Iterable

import constants
from models.records import Outlet
from models.requests import UserLocation


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute great-circle distance in kilometers on a spherical Earth."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * constants.EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def nearest_outlets(
    outlets: Iterable[Outlet],
    location: UserLocation,
    limit: int = constants.RAG_NEAREST_OUTLETS,
) -> list[tuple[Outlet, float]]:
    """Return outlets closest to the location with their distance in km.

    Outlets without coordinates are skipped.
    """
    distances = [
        (
            outlet,
            haversine_km(
                location.lat,
                location.lng,
                outlet.latitude,  # type: ignore[arg-type]
                outlet.longitude,  # type: ignore[arg-type]
            ),
        )
        for outlet in outlets
        if outlet.has_coordinates
    ]
    distances.sort(key=lambda item: item[1])
    return distances[:limit]
