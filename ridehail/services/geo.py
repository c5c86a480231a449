"""
Spherical geometry used by matching and validation.

Earth is modelled as a sphere of radius 6371 km, the same approximation a
``$centerSphere`` query makes.
"""
import math
from dataclasses import dataclass

from ridehail.exceptions import InvalidInput

EARTH_RADIUS_KM = 6371.0
# Slack on the angular comparison so points sitting exactly on the radius survive float error.
ANGLE_TOLERANCE_RAD = 1e-9


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        for name in ("lat", "lng"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInput(f"Coordinate {name} must be a finite number")
        if not -90 <= self.lat <= 90:
            raise InvalidInput("Latitude must be between -90 and 90")
        if not -180 <= self.lng <= 180:
            raise InvalidInput("Longitude must be between -180 and 180")

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


def central_angle(a: Coordinate, b: Coordinate) -> float:
    """Great-circle angle between two points, in radians (haversine form)."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * math.asin(math.sqrt(min(1.0, h)))


def great_circle_km(a: Coordinate, b: Coordinate) -> float:
    return central_angle(a, b) * EARTH_RADIUS_KM


def within_radius(point: Coordinate, center: Coordinate, radius_km: float) -> bool:
    """True when ``point`` lies inside the spherical cap of ``radius_km`` around ``center``."""
    return central_angle(point, center) <= radius_km / EARTH_RADIUS_KM + ANGLE_TOLERANCE_RAD


def validate_radius(radius_km: float) -> float:
    if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)):
        raise InvalidInput("Radius must be a number")
    if not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidInput("Radius must be a positive finite number of kilometres")
    return float(radius_km)
