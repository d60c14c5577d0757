import math
import pytest
from datetime import datetime
from core.geo import distance_meters, is_valid_coordinate, filter_within_radius, EARTH_RADIUS_METERS
from core.models import GeoReport, IssueCategory


def _report(report_id, lat, lon):
    return GeoReport(report_id, lat, lon, IssueCategory.POTHOLE, datetime(2024, 1, 1))


def test_distance_identity():
    """Identical points are zero meters apart."""
    assert distance_meters(12.9716, 77.5946, 12.9716, 77.5946) == 0.0
    assert distance_meters(-33.9, 151.2, -33.9, 151.2) == 0.0

@pytest.mark.parametrize("a,b", [
    ((12.9716, 77.5946), (13.0, 77.6)),
    ((36.97, -122.03), (-33.86, 151.21)),
    ((0.0, 179.9), (0.0, -179.9)),
])
def test_distance_symmetry(a, b):
    assert distance_meters(*a, *b) == distance_meters(*b, *a)

def test_distance_one_degree_latitude():
    """One degree of latitude is R * pi / 180 meters."""
    expected = EARTH_RADIUS_METERS * math.pi / 180
    assert distance_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)

def test_distance_known_pairs():
    """Bangalore fixtures: ~1.5m and ~3.2km apart."""
    near = distance_meters(12.9716, 77.5946, 12.97161, 77.59461)
    far = distance_meters(12.9716, 77.5946, 13.0, 77.6)
    assert 1.0 < near < 2.0
    assert 3000 < far < 3500

@pytest.mark.parametrize("lat,lon,valid", [
    (12.97, 77.59, True),
    (90.0, 180.0, True),
    (-90.0, -180.0, True),
    (90.1, 0.0, False),
    (0.0, -180.5, False),
    (float("nan"), 0.0, False),
    (0.0, float("inf"), False),
    (None, 77.59, False),
    ("abc", 77.59, False),
])
def test_is_valid_coordinate(lat, lon, valid):
    assert is_valid_coordinate(lat, lon) is valid

def test_filter_within_radius():
    """Only reports inside the radius survive, order preserved."""
    reports = [
        _report("near", 12.9716, 77.5946),
        _report("far", 13.9716, 77.5946),  # ~111km north
        _report("edge", 12.9806, 77.5946),  # ~1km north
    ]
    kept = filter_within_radius(reports, 12.9716, 77.5946, radius_km=5)
    assert [r.id for r in kept] == ["near", "edge"]
