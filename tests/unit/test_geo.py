"""
Unit tests for coordinates and great-circle math.
"""
import math
import pytest

from ridehail.exceptions import InvalidInput
from ridehail.services.geo import (
    EARTH_RADIUS_KM, Coordinate, central_angle, great_circle_km, validate_radius, within_radius,
)

CENTER = Coordinate(lat=12.97, lng=77.59)


def north_of(center: Coordinate, km: float) -> Coordinate:
    return Coordinate(lat=center.lat + math.degrees(km / EARTH_RADIUS_KM), lng=center.lng)


class TestCoordinate:
    @pytest.mark.parametrize("lat,lng", [(math.nan, 0), (0, math.inf), (91, 0), (0, -180.5), ("12", 77)])
    def test_rejects_invalid(self, lat, lng):
        with pytest.raises(InvalidInput):
            Coordinate(lat=lat, lng=lng)

    def test_rejects_bool(self):
        with pytest.raises(InvalidInput):
            Coordinate(lat=True, lng=0)

    def test_accepts_ints_and_edges(self):
        assert Coordinate(lat=90, lng=-180).as_dict() == {"lat": 90, "lng": -180}


class TestGreatCircle:
    def test_same_point_is_zero(self):
        assert central_angle(CENTER, CENTER) == 0

    def test_meridian_distance(self):
        assert great_circle_km(CENTER, north_of(CENTER, 2.0)) == pytest.approx(2.0, rel=1e-9)

    def test_known_city_pair(self):
        # Bengaluru -> Chennai, roughly 290 km
        chennai = Coordinate(lat=13.0827, lng=80.2707)
        assert great_circle_km(Coordinate(lat=12.9716, lng=77.5946), chennai) == pytest.approx(290, abs=5)

    def test_symmetric(self):
        other = Coordinate(lat=12.93, lng=77.62)
        assert central_angle(CENTER, other) == central_angle(other, CENTER)


class TestWithinRadius:
    def test_boundary_is_included(self):
        assert within_radius(north_of(CENTER, 2.0), CENTER, 2.0)

    def test_just_outside_is_excluded(self):
        assert not within_radius(north_of(CENTER, 2.001), CENTER, 2.0)

    def test_inside(self):
        assert within_radius(north_of(CENTER, 0.5), CENTER, 2.0)


class TestValidateRadius:
    @pytest.mark.parametrize("radius", [0, -1, math.nan, math.inf, "2", None])
    def test_rejects(self, radius):
        with pytest.raises(InvalidInput):
            validate_radius(radius)

    def test_accepts_positive(self):
        assert validate_radius(2) == 2.0
