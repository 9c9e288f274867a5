"""
Tests for location filtering and distance accumulation.
"""

import pytest
from datetime import datetime, timedelta

from crdo.config import TrackingConfig
from crdo.geo import haversine_distance, offset_coordinate, encode_route, decode_route
from crdo.models import LocationSample, RoutePoint
from crdo.tracking import LocationFilter, RouteAccumulator


BASE_LAT = 37.7749
BASE_LON = -122.4194
T0 = datetime(2024, 1, 1, 8, 0)


def sample_at(north_m, seconds, accuracy=5.0):
    """Sample north_m meters north of the base point, seconds after T0."""
    lat, lon = offset_coordinate(BASE_LAT, BASE_LON, north_m, 0.0)
    return LocationSample(
        latitude=lat,
        longitude=lon,
        timestamp=T0 + timedelta(seconds=seconds),
        horizontal_accuracy_m=accuracy,
    )


class TestGeo:
    """Tests for geodesic helpers."""

    def test_haversine_known_distance(self):
        """Test one degree of latitude is about 111 km."""
        assert haversine_distance(0, 0, 1, 0) == pytest.approx(111_195, rel=0.001)

    def test_haversine_same_point(self):
        """Test zero distance for identical points."""
        assert haversine_distance(BASE_LAT, BASE_LON, BASE_LAT, BASE_LON) == 0.0

    def test_offset_coordinate(self):
        """Test offsets move by the requested meters."""
        lat, lon = offset_coordinate(BASE_LAT, BASE_LON, 30.0, 40.0)
        assert haversine_distance(BASE_LAT, BASE_LON, lat, lon) == pytest.approx(50.0, rel=0.01)

    def test_route_polyline(self):
        """Test routes survive polyline encoding at 5 decimal places."""
        route = [RoutePoint(37.77490, -122.41940), RoutePoint(37.77520, -122.41900)]

        decoded = decode_route(encode_route(route))

        assert len(decoded) == 2
        for got, expected in zip(decoded, route):
            assert got.latitude == pytest.approx(expected.latitude)
            assert got.longitude == pytest.approx(expected.longitude)

    def test_decode_empty(self):
        """Test empty polyline decodes to an empty route."""
        assert decode_route("") == []


class TestLocationFilter:
    """Tests for LocationFilter accept rules."""

    def test_rejects_poor_accuracy(self):
        """Test fixes worse than 20 m are rejected."""
        f = LocationFilter()
        assert f.accept(None, sample_at(0, 0, accuracy=20.5)) is False
        assert f.accept(None, sample_at(0, 0, accuracy=20.0)) is True

    def test_rejects_invalid_accuracy(self):
        """Test negative accuracy marks an invalid fix."""
        assert LocationFilter().accept(None, sample_at(0, 0, accuracy=-1)) is False

    def test_first_sample_accepted(self):
        """Test a good fix with no previous sample is accepted."""
        assert LocationFilter().accept(None, sample_at(0, 0)) is True

    def test_rejects_jitter(self):
        """Test fixes under 3 m from the previous one are rejected."""
        f = LocationFilter()
        previous = sample_at(0, 0)
        assert f.accept(previous, sample_at(2.0, 1)) is False
        assert f.accept(previous, sample_at(4.0, 1)) is True

    def test_custom_thresholds(self):
        """Test thresholds come from configuration."""
        f = LocationFilter(TrackingConfig(max_horizontal_accuracy_m=50.0))
        assert f.accept(None, sample_at(0, 0, accuracy=40.0)) is True


class TestRouteInclusion:
    """Tests for LocationFilter route rule."""

    def _route(self, *points):
        return [RoutePoint.from_sample(s) for s in points]

    def test_first_two_points_always_kept(self):
        """Test routes with fewer than two points take any sample."""
        f = LocationFilter()
        assert f.include_in_route([], sample_at(0, 0)) is True
        assert f.include_in_route(self._route(sample_at(0, 0)), sample_at(1, 0)) is True

    def test_normal_running_speed(self):
        """Test a point 20 m on at 2 m/s is kept."""
        route = self._route(sample_at(0, 0), sample_at(20, 10))
        assert LocationFilter().include_in_route(route, sample_at(40, 20)) is True

    def test_too_close(self):
        """Test points under 5 m from the last route point are dropped."""
        route = self._route(sample_at(0, 0), sample_at(20, 10))
        assert LocationFilter().include_in_route(route, sample_at(24, 12)) is False

    def test_teleport(self):
        """Test implied speed above 10 m/s is dropped."""
        route = self._route(sample_at(0, 0), sample_at(20, 10))
        assert LocationFilter().include_in_route(route, sample_at(90, 11)) is False

    def test_stationary_drift(self):
        """Test implied speed below 0.5 m/s is dropped."""
        route = self._route(sample_at(0, 0), sample_at(20, 10))
        assert LocationFilter().include_in_route(route, sample_at(30, 40)) is False

    def test_no_elapsed_time(self):
        """Test identical timestamps never divide by zero."""
        route = self._route(sample_at(0, 0), sample_at(20, 10))
        assert LocationFilter().include_in_route(route, sample_at(30, 10)) is False


class TestRouteAccumulator:
    """Tests for RouteAccumulator."""

    def test_accumulates_distance(self):
        """Test distance is the sum of valid increments."""
        acc = RouteAccumulator()
        for i in range(5):
            acc.add(sample_at(20 * i, 10 * i))

        assert acc.distance_meters == pytest.approx(80.0, rel=0.001)
        assert len(acc.route) == 5

    def test_first_sample_adds_nothing(self):
        """Test the first sample only sets the reference point."""
        acc = RouteAccumulator()
        assert acc.add(sample_at(0, 0)) == 0.0
        assert acc.distance_meters == 0.0
        assert acc.last_sample is not None

    def test_duplicate_sample_counted_once(self):
        """Test feeding the same sample twice accumulates at most once."""
        acc = RouteAccumulator()
        acc.add(sample_at(0, 0))
        second = sample_at(20, 10)

        first_increment = acc.add(second)
        repeat_increment = acc.add(second)

        assert first_increment == pytest.approx(20.0, rel=0.001)
        assert repeat_increment == 0.0
        assert acc.distance_meters == pytest.approx(20.0, rel=0.001)

    def test_glitch_increment_discarded(self):
        """Test jumps of 100 m or more do not advance the distance."""
        acc = RouteAccumulator()
        acc.add(sample_at(0, 0))
        acc.add(sample_at(150, 10))

        assert acc.distance_meters == 0.0
        # the glitch sample still becomes the reference point
        acc.add(sample_at(170, 20))
        assert acc.distance_meters == pytest.approx(20.0, rel=0.001)

    def test_inaccurate_sample_ignored(self):
        """Test rejected samples change nothing."""
        acc = RouteAccumulator()
        acc.add(sample_at(0, 0))
        acc.add(sample_at(20, 10, accuracy=50.0))

        assert acc.distance_meters == 0.0
        assert len(acc.route) == 1

    def test_teleport_counts_distance_not_route(self):
        """Test a fast jump under 100 m adds distance but skips the route."""
        acc = RouteAccumulator()
        acc.add(sample_at(0, 0))
        acc.add(sample_at(20, 10))
        acc.add(sample_at(90, 11))

        assert acc.distance_meters == pytest.approx(90.0, rel=0.001)
        assert len(acc.route) == 2

    def test_monotonic(self):
        """Test distance never decreases across noisy input."""
        acc = RouteAccumulator()
        positions = [0, 1, 20, 19, 60, 300, 310, 305, 330, 330, 200, 215]
        last = 0.0
        for i, north in enumerate(positions):
            acc.add(sample_at(north, 10 * i, accuracy=5.0 if i % 4 else 25.0))
            assert acc.distance_meters >= last
            last = acc.distance_meters

    def test_reset(self):
        """Test reset clears route and distance."""
        acc = RouteAccumulator()
        acc.add(sample_at(0, 0))
        acc.add(sample_at(20, 10))
        acc.reset()

        assert acc.distance_meters == 0.0
        assert acc.route == []
        assert acc.last_sample is None
