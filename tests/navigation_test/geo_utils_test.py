import pytest

from rover_nav.navigation.geo_utils import (
    calculate_bearing, destination_point, haversine_distance, normalize_bearing,
)


def test_haversine_one_degree_of_latitude():
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)


def test_bearing_cardinal_directions():
    assert calculate_bearing(43.0, -79.0, 44.0, -79.0) == pytest.approx(0.0, abs=1e-6)
    assert calculate_bearing(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0, abs=1e-6)
    assert calculate_bearing(0.0, 0.0, -1.0, 0.0) == pytest.approx(180.0, abs=1e-6)


def test_destination_point_lands_at_requested_distance():
    lat, lon = destination_point(43.6532, -79.3832, 45.0, 250.0, radius_m=6_371_000.0)
    assert haversine_distance(43.6532, -79.3832, lat, lon) == pytest.approx(250.0, rel=1e-6)
    assert calculate_bearing(43.6532, -79.3832, lat, lon) == pytest.approx(45.0, abs=0.01)


def test_destination_point_wraps_longitude():
    _, lon = destination_point(0.0, 179.9999, 90.0, 1000.0)
    assert -180.0 <= lon < 180.0


@pytest.mark.parametrize("raw, expected", [(-90, 270), (360, 0), (725, 5), (0, 0)])
def test_normalize_bearing(raw, expected):
    assert normalize_bearing(raw) == pytest.approx(expected)
    assert 0 <= normalize_bearing(raw) < 360
