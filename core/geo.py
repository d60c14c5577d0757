"""
Great-circle geometry helpers.

All distances are in meters; coordinates are decimal degrees (WGS84).
"""

import math
import logging
from typing import Iterable, List, Optional

from core.models import GeoReport

log = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000  # Mean Earth radius


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def is_valid_coordinate(lat: Optional[float], lon: Optional[float]) -> bool:
    """True for finite coordinates inside [-90, 90] x [-180, 180]."""
    if lat is None or lon is None:
        return False
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def filter_within_radius(
    reports: Iterable[GeoReport],
    center_lat: float,
    center_lon: float,
    radius_km: float,
) -> List[GeoReport]:
    """
    Keep reports within ``radius_km`` of a center point.

    Args:
        reports: Reports to filter
        center_lat: Latitude of the center (usually the user's location)
        center_lon: Longitude of the center
        radius_km: Search radius in kilometers

    Returns:
        Matching reports in their original order
    """
    limit = radius_km * 1000
    kept = [
        r for r in reports
        if distance_meters(center_lat, center_lon, r.latitude, r.longitude) <= limit
    ]
    log.debug(f"Radius filter kept {len(kept)} reports within {radius_km}km of ({center_lat:.4f}, {center_lon:.4f})")
    return kept
