"""
Location sample filtering and distance accumulation.

Raw position fixes are cleaned by LocationFilter before RouteAccumulator
integrates them into the session distance and route.
"""

import logging
from typing import List, Optional, Sequence

from .config import TrackingConfig
from .geo import distance_between
from .models import LocationSample, RoutePoint


logger = logging.getLogger(__name__)


class LocationFilter:
    """Accuracy and jitter based rejection of location samples."""

    def __init__(self, config: Optional[TrackingConfig] = None):
        self._config = config or TrackingConfig()

    def accept(
        self, previous: Optional[LocationSample], candidate: LocationSample
    ) -> bool:
        """
        Decide whether a raw sample is accepted.

        Parameters:
            previous: Last accepted sample, or None.
            candidate: New raw sample.

        Returns:
            True when the sample passes the accuracy and jitter rules.
        """
        accuracy = candidate.horizontal_accuracy_m
        # negative accuracy marks an invalid fix
        if accuracy < 0 or accuracy > self._config.max_horizontal_accuracy_m:
            return False

        if previous is not None:
            if distance_between(previous, candidate) < self._config.min_sample_distance_m:
                return False

        return True

    def include_in_route(
        self, route: Sequence[RoutePoint], candidate: LocationSample
    ) -> bool:
        """
        Decide whether an accepted sample is retained in the route.

        The first two points are always kept. After that a point must be at
        least min_route_distance_m from the last route point and the implied
        speed must lie within the configured walking-to-cycling band.
        """
        if len(route) < 2:
            return True

        last = route[-1]
        distance = distance_between(last, candidate)
        if distance < self._config.min_route_distance_m:
            return False

        if last.timestamp is None:
            return False
        elapsed = (candidate.timestamp - last.timestamp).total_seconds()
        if elapsed <= 0:
            return False

        speed = distance / elapsed
        return (
            self._config.min_route_speed_mps
            <= speed
            <= self._config.max_route_speed_mps
        )


class RouteAccumulator:
    """Integrates accepted samples into cumulative distance and a route."""

    def __init__(
        self,
        config: Optional[TrackingConfig] = None,
        location_filter: Optional[LocationFilter] = None,
    ):
        self._config = config or TrackingConfig()
        self._filter = location_filter or LocationFilter(self._config)
        self._previous: Optional[LocationSample] = None
        self._route: List[RoutePoint] = []
        self._distance = 0.0

    @property
    def distance_meters(self) -> float:
        return self._distance

    @property
    def route(self) -> List[RoutePoint]:
        """Copy of the retained route."""
        return list(self._route)

    @property
    def last_sample(self) -> Optional[LocationSample]:
        return self._previous

    def reset(self) -> None:
        """Forget the previous sample, the route and the distance."""
        self._previous = None
        self._route = []
        self._distance = 0.0

    def add(self, sample: LocationSample) -> float:
        """
        Process one raw sample.

        Parameters:
            sample: Raw location sample.

        Returns:
            Distance in meters added to the total, 0.0 when nothing was added.
        """
        if not self._filter.accept(self._previous, sample):
            return 0.0

        increment = 0.0
        if self._previous is not None:
            step = distance_between(self._previous, sample)
            if 0 < step < self._config.max_distance_increment_m:
                increment = step
                self._distance += step
            else:
                logger.debug(f"Discarding distance increment of {step:.1f} m")

        self._previous = sample

        if self._filter.include_in_route(self._route, sample):
            self._route.append(RoutePoint.from_sample(sample))

        return increment
