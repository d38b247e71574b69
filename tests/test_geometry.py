import pytest

from tracematch.geometry import (
    GpsPoint,
    PointIndex,
    bounds_overlap,
    compute_center,
    haversine_distance,
    route_distance,
)


def make_point(lat, lng):
    return GpsPoint(lat, lng)


def test_haversine_distance_london_paris():
    p1 = make_point(51.5074, -0.1278)
    p2 = make_point(48.8566, 2.3522)
    dist = haversine_distance(p1, p2)
    assert 340_000.0 < dist < 350_000.0


def test_haversine_is_symmetric_and_zero_on_same_point():
    p1 = make_point(46.23, 7.36)
    p2 = make_point(46.24, 7.37)
    assert haversine_distance(p1, p1) == 0.0
    assert haversine_distance(p1, p2) == pytest.approx(haversine_distance(p2, p1))


def test_haversine_one_degree_latitude():
    dist = haversine_distance(make_point(0.0, 0.0), make_point(1.0, 0.0))
    assert dist == pytest.approx(111_195, rel=1e-3)


def test_compute_center():
    center = compute_center([make_point(0.0, 0.0), make_point(2.0, 2.0)])
    assert abs(center.latitude - 1.0) < 0.001
    assert abs(center.longitude - 1.0) < 0.001


def test_compute_center_empty_raises():
    with pytest.raises(ValueError):
        compute_center([])


def test_route_distance_short_inputs():
    assert route_distance([]) == 0.0
    assert route_distance([make_point(1.0, 1.0)]) == 0.0


def test_route_distance_is_sum_of_legs():
    a, b, c = make_point(46.0, 7.0), make_point(46.01, 7.0), make_point(46.02, 7.0)
    total = route_distance([a, b, c])
    assert total == pytest.approx(haversine_distance(a, c), rel=1e-6)


def test_bounds_overlap_nearby_tracks():
    a = [make_point(46.0, 7.0), make_point(46.01, 7.01)]
    b = [make_point(46.005, 7.005), make_point(46.02, 7.02)]
    assert bounds_overlap(a, b, 50.0) is True


def test_bounds_overlap_within_threshold_margin():
    a = [make_point(46.0, 7.0), make_point(46.0, 7.01)]
    b = [make_point(46.0003, 7.0), make_point(46.0003, 7.01)]
    assert bounds_overlap(a, b, 50.0) is True
    assert bounds_overlap(a, b, 0.0) is False


def test_bounds_overlap_far_tracks():
    a = [make_point(51.5, -0.12), make_point(51.51, -0.11)]
    b = [make_point(40.7, -74.0), make_point(40.71, -73.99)]
    assert bounds_overlap(a, b, 50.0) is False


def test_bounds_overlap_empty():
    assert bounds_overlap([], [make_point(1.0, 1.0)], 50.0) is False


def test_point_index_empty_returns_none():
    assert PointIndex([]).nearest(1.0, 1.0) is None


def test_point_index_nearest_exact_hit():
    points = [make_point(46.0 + i * 0.001, 7.0 + (i % 3) * 0.001) for i in range(50)]
    index = PointIndex(points)
    assert len(index) == 50
    hit = index.nearest(points[17].latitude, points[17].longitude)
    assert hit.index == 17
    assert hit.distance_sq == 0.0


def test_point_index_nearest_known_answer():
    points = [make_point(0.0, 0.0), make_point(1.0, 1.0), make_point(5.0, 5.0), make_point(-3.0, 2.0)]
    index = PointIndex(points)
    hit = index.nearest(4.0, 4.5)
    assert hit.index == 2
    assert hit.distance_sq == pytest.approx(1.25)
    hit = index.nearest(-2.0, 1.0)
    assert hit.index == 3
    assert hit.distance_sq == pytest.approx(2.0)