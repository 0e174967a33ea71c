import math
from typing import Dict, Tuple

from app.core.errors import ValidationError

# Radius MongoDB uses for spherical geometry on 2dsphere indexes
EARTH_RADIUS_KM = 6378.1


def calculate_distance(
    location1: Dict[str, float],
    location2: Dict[str, float],
    radius_km: float = EARTH_RADIUS_KM
) -> float:
    """
    Calculate the distance between two geographic points using the Haversine formula.

    Args:
        location1: Dictionary with 'lat' and 'lng' keys (in degrees)
        location2: Dictionary with 'lat' and 'lng' keys (in degrees)
        radius_km: Sphere radius; defaults to the one the geospatial index uses

    Returns:
        Distance in kilometers
    """
    lat1 = math.radians(location1["lat"])
    lon1 = math.radians(location1["lng"])
    lat2 = math.radians(location2["lat"])
    lon2 = math.radians(location2["lng"])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return radius_km * c


def parse_location(loc: str) -> Tuple[float, float]:
    """
    Parse a "lat,lng" query string into a (lat, lng) tuple.

    Raises:
        ValidationError: if the string is not two comma-separated floats
            within latitude/longitude range
    """
    if not loc or not loc.strip():
        raise ValidationError("Invalid location", errors=["loc: Location is required"])

    parts = loc.split(",")
    if len(parts) != 2:
        raise ValidationError("Invalid location", errors=["loc: Location must be 'lat,lng'"])

    try:
        lat, lng = (float(part.strip()) for part in parts)
    except ValueError:
        raise ValidationError("Invalid location", errors=["loc: Coordinates must be numbers"])

    errors = []
    if not math.isfinite(lat) or not -90 <= lat <= 90:
        errors.append("loc: Latitude must be between -90 and 90")
    if not math.isfinite(lng) or not -180 <= lng <= 180:
        errors.append("loc: Longitude must be between -180 and 180")
    if errors:
        raise ValidationError("Invalid location", errors=errors)

    return lat, lng
