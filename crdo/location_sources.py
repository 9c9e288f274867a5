"""
Location sources feeding samples to an active session.

A source is started with a sample callback and an error callback and
delivers samples until stopped.
"""

import json
import logging
import math
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .geo import distance_between, offset_coordinate
from .models import LocationSample


logger = logging.getLogger(__name__)


SampleCallback = Callable[[LocationSample], None]
ErrorCallback = Callable[[Exception], None]


class LocationPermissionError(Exception):
    """Location access was denied or restricted."""


class LocationSourceError(Exception):
    """The location source failed while delivering samples."""


class LocationSource:
    """Base class for location sources."""

    def __init__(self):
        self._on_sample: Optional[SampleCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @property
    def is_running(self) -> bool:
        return self._on_sample is not None

    def start(self, on_sample: SampleCallback, on_error: Optional[ErrorCallback] = None) -> None:
        """Subscribe callbacks and begin delivering samples."""
        self._on_sample = on_sample
        self._on_error = on_error

    def stop(self) -> None:
        """Stop delivering samples and drop the callbacks."""
        self._on_sample = None
        self._on_error = None

    def _emit(self, sample: LocationSample) -> None:
        callback = self._on_sample
        if callback is not None:
            callback(sample)

    def _fail(self, error: Exception) -> None:
        callback = self._on_error
        if callback is not None:
            callback(error)
        else:
            logger.error(f"Location source error: {error}")


class NullLocationSource(LocationSource):
    """Source for devices without location access."""

    def start(self, on_sample: SampleCallback, on_error: Optional[ErrorCallback] = None) -> None:
        raise LocationPermissionError("Location services unavailable")


class ReplayLocationSource(LocationSource):
    """Delivers a recorded list of samples on demand."""

    def __init__(self, samples: Iterable[LocationSample]):
        super().__init__()
        self._samples: List[LocationSample] = list(samples)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._samples) - self._position

    def push(self, sample: LocationSample) -> None:
        """Deliver a single sample immediately if running."""
        self._emit(sample)

    def peek(self) -> Optional[LocationSample]:
        if self._position >= len(self._samples):
            return None
        return self._samples[self._position]

    def emit_next(self) -> Optional[LocationSample]:
        """Deliver the next recorded sample. Returns None when exhausted."""
        if self._position >= len(self._samples):
            return None
        sample = self._samples[self._position]
        self._position += 1
        self._emit(sample)
        return sample

    def fail(self, error: Exception) -> None:
        self._fail(error)


class SimulatedLocationSource(LocationSource):
    """
    Background thread moving around a circular path.

    Mirrors the simulator mode of the mobile app: a fix every
    update_interval seconds at constant speed, filtered by a minimum
    distance moved like the platform distance filter.
    """

    def __init__(
        self,
        start_latitude: float = 37.7749,
        start_longitude: float = -122.4194,
        speed_mps: float = 2.8,
        update_interval: float = 2.0,
        distance_filter_m: float = 5.0,
        radius_m: float = 400.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__()
        self.start_latitude = start_latitude
        self.start_longitude = start_longitude
        self.speed_mps = speed_mps
        self.update_interval = update_interval
        self.distance_filter_m = distance_filter_m
        self.radius_m = radius_m
        self._clock = clock or datetime.now
        self._travelled = 0.0
        self._last_emitted: Optional[LocationSample] = None
        self._position_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def sample_at(self, travelled_m: float, timestamp: datetime) -> LocationSample:
        """Position after travelling travelled_m along the circle."""
        angle = travelled_m / self.radius_m
        north = self.radius_m * math.sin(angle)
        east = self.radius_m * (1 - math.cos(angle))
        lat, lon = offset_coordinate(self.start_latitude, self.start_longitude, north, east)
        return LocationSample(
            latitude=lat,
            longitude=lon,
            timestamp=timestamp,
            altitude=10.0,
            horizontal_accuracy_m=5.0,
            speed_mps=self.speed_mps,
            course_degrees=math.degrees(angle) % 360,
        )

    def start(self, on_sample: SampleCallback, on_error: Optional[ErrorCallback] = None) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        previous = self._thread
        if previous is not None and previous is not threading.current_thread():
            previous.join(timeout=self.update_interval + 1.0)
            if previous.is_alive():
                logger.warning("Previous simulated location thread still running")

        super().start(on_sample, on_error)
        stop_event = threading.Event()
        self._stop_event = stop_event
        thread = threading.Thread(
            target=self._run, args=(stop_event,), name="simulated-location", daemon=True
        )
        self._thread = thread
        thread.start()
        logger.info("Started simulated location updates")

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None
        super().stop()

    def _run(self, stop_event: threading.Event) -> None:
        self._emit_position()
        while not stop_event.wait(self.update_interval):
            self._emit_position(self.speed_mps * self.update_interval)

    def _emit_position(self, advance_m: float = 0.0) -> None:
        """Advance along the path and emit the position unless filtered out."""
        with self._position_lock:
            self._travelled += advance_m
            try:
                sample = self.sample_at(self._travelled, self._clock())
            except (ValueError, OverflowError) as e:
                sample = None
                error = e
            else:
                last = self._last_emitted
                if last is not None and distance_between(last, sample) < self.distance_filter_m:
                    return
                self._last_emitted = sample

        if sample is None:
            self._fail(LocationSourceError(str(error)))
            return
        self._emit(sample)


def load_track(path: Path) -> List[LocationSample]:
    """
    Load a recorded track from a JSON file.

    The file holds a list of samples, or an object with a "samples" list.
    Entries that cannot be parsed are skipped.
    """
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("samples", [])

    samples = []
    for item in data:
        try:
            samples.append(LocationSample.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable track sample: {e}")

    samples.sort(key=lambda s: s.timestamp)
    logger.info(f"Loaded {len(samples)} samples from {path}")
    return samples


def synthetic_track(
    start: datetime,
    seconds: int,
    speed_mps: float = 3.0,
    interval: int = 2,
    start_latitude: float = 37.7749,
    start_longitude: float = -122.4194,
) -> List[LocationSample]:
    """Straight northbound track at constant speed, one fix per interval."""
    samples = []
    for t in range(0, seconds + 1, interval):
        lat, lon = offset_coordinate(start_latitude, start_longitude, speed_mps * t, 0.0)
        samples.append(
            LocationSample(
                latitude=lat,
                longitude=lon,
                timestamp=start + timedelta(seconds=t),
                horizontal_accuracy_m=5.0,
                speed_mps=speed_mps,
            )
        )
    return samples
