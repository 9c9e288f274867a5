"""
Workout session lifecycle.

WorkoutSessionManager owns the single active workout. A 1 Hz ticker and a
location source feed it from their own threads; every mutation of session
state happens under one lock.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from .classifier import classify_run
from .config import TrackingConfig
from .goals import DailyGoalTracker
from .location_sources import LocationPermissionError, LocationSource
from .metrics import MetricsCalculator, average_speed_mps
from .models import (
    LiveMetrics,
    LocationSample,
    SessionState,
    WorkoutSession,
    WorkoutType,
)
from .storage import WorkoutHistory
from .tracking import RouteAccumulator


logger = logging.getLogger(__name__)


StateListener = Callable[[SessionState, Optional[WorkoutSession]], None]


class Ticker:
    """Calls a callback every interval seconds on a daemon thread."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self._callback = callback
        self._stop_event: Optional[threading.Event] = None

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        # each run gets its own event so a stopped thread never resumes
        stop_event = threading.Event()
        self._stop_event = stop_event
        thread = threading.Thread(
            target=self._run, args=(stop_event,), name="workout-ticker", daemon=True
        )
        thread.start()

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Workout tick failed")


class ManualTicker:
    """Ticker whose ticks are driven by the caller, used for replays."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self._callback = callback
        self.is_running = False

    def start(self) -> None:
        self.is_running = True

    def stop(self) -> None:
        self.is_running = False

    def fire(self, count: int = 1) -> None:
        for _ in range(count):
            self._callback()


class WorkoutSessionManager:
    """State machine driving one workout at a time."""

    def __init__(
        self,
        location_source: LocationSource,
        history: WorkoutHistory,
        daily_goal: DailyGoalTracker,
        config: Optional[TrackingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ticker_factory: Optional[Callable[[float, Callable[[], None]], Ticker]] = None,
    ):
        self._config = config or TrackingConfig()
        self._source = location_source
        self._history = history
        self._daily_goal = daily_goal
        self._clock = clock or datetime.now
        self._lock = threading.RLock()
        # held while the ticker and location source are started or stopped
        self._acquisition_lock = threading.Lock()
        self._acquisition_stale = False
        self._listeners: List[StateListener] = []

        factory = ticker_factory or Ticker
        self._ticker = factory(self._config.tick_interval_seconds, self.tick)

        self._state = SessionState.IDLE
        self._session: Optional[WorkoutSession] = None
        self._accumulator = RouteAccumulator(self._config)
        self._metrics = MetricsCalculator(
            WorkoutType.RUNNING, self._config.tick_interval_seconds
        )
        self._location_available = True
        self._current_speed = 0.0
        self._elevation = 0.0
        self._heart_rate_total = 0.0
        self._heart_rate_count = 0

    # ------------------------------------------------------------------
    # properties

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_session(self) -> Optional[WorkoutSession]:
        return self._session

    @property
    def location_available(self) -> bool:
        return self._location_available

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked after every state transition."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # transitions

    def start(self, workout_type: WorkoutType = WorkoutType.RUNNING) -> Optional[WorkoutSession]:
        """
        Begin a new workout. No-op unless idle.

        Returns:
            The new session, or None when a workout is already in progress.
        """
        with self._lock:
            if self._state != SessionState.IDLE:
                logger.debug(f"start() ignored in state {self._state.value}")
                return None

            self._reset_counters(workout_type)
            self._session = WorkoutSession(
                workout_type=workout_type, start_time=self._clock()
            )
            self._state = SessionState.ACTIVE
            session = self._session
            logger.info(f"Started {workout_type.value} workout {session.id}")

        self._sync_acquisition()
        self._notify(SessionState.ACTIVE, session)
        return session

    def pause(self) -> bool:
        """Pause the active workout, keeping all accumulated state."""
        with self._lock:
            if self._state != SessionState.ACTIVE:
                logger.debug(f"pause() ignored in state {self._state.value}")
                return False
            self._state = SessionState.PAUSED
            session = self._session

        self._sync_acquisition()
        logger.info("Workout paused")
        self._notify(SessionState.PAUSED, session)
        return True

    def resume(self) -> bool:
        """Resume a paused workout without resetting counters."""
        with self._lock:
            if self._session is None or self._state != SessionState.PAUSED:
                logger.debug(f"resume() ignored in state {self._state.value}")
                return False
            self._state = SessionState.ACTIVE
            session = self._session

        self._sync_acquisition()
        logger.info("Workout resumed")
        self._notify(SessionState.ACTIVE, session)
        return True

    def end(self) -> Optional[WorkoutSession]:
        """
        Complete the workout, append it to history and credit the daily goal.

        Returns:
            The completed session, or None when there was no workout.
        """
        with self._lock:
            if self._session is None or self._state not in (
                SessionState.ACTIVE,
                SessionState.PAUSED,
            ):
                logger.debug(f"end() ignored in state {self._state.value}")
                return None
            self._state = SessionState.COMPLETED

        self._sync_acquisition()

        with self._lock:
            completed = self._freeze(self._session)
            self._session = None
            self._reset_counters()
            self._state = SessionState.IDLE

        logger.info(
            f"Completed workout {completed.id}: {completed.duration_seconds}s, "
            f"{completed.distance_meters:.0f}m, {completed.run_category.value}"
        )

        if not self._history.append(completed):
            logger.warning(f"Workout {completed.id} kept in memory until next write")
        self._daily_goal.credit(completed.duration_seconds)

        self._notify(SessionState.COMPLETED, completed)
        self._notify(SessionState.IDLE, None)
        return completed

    def shutdown(self) -> None:
        """Stop timer and location acquisition, e.g. at app termination."""
        self._end_acquisition()

    # ------------------------------------------------------------------
    # event inputs

    def tick(self) -> None:
        """Advance elapsed time by one tick interval."""
        with self._lock:
            if self._state != SessionState.ACTIVE or self._session is None:
                return
            self._metrics.tick(self._accumulator.distance_meters)
            self._session.duration_seconds = int(self._metrics.elapsed_seconds)
            self._session.calories_burned = self._metrics.calories

    def handle_sample(self, sample: LocationSample) -> None:
        """Feed a raw location sample to the active workout."""
        with self._lock:
            if self._state != SessionState.ACTIVE or self._session is None:
                return
            self._accumulator.add(sample)
            if self._accumulator.last_sample is sample:
                self._current_speed = sample.speed_mps if sample.speed_mps > 0 else 0.0
                self._elevation = sample.altitude
            self._session.distance_meters = self._accumulator.distance_meters

    def handle_heart_rate(self, bpm: float) -> None:
        """Record a heart rate reading for the active workout."""
        with self._lock:
            if self._state != SessionState.ACTIVE or self._session is None or bpm <= 0:
                return
            self._heart_rate_total += bpm
            self._heart_rate_count += 1
            self._session.average_heart_rate = round(
                self._heart_rate_total / self._heart_rate_count, 1
            )
            current_max = self._session.max_heart_rate or 0
            self._session.max_heart_rate = max(current_max, int(bpm))

    def handle_location_error(self, error: Exception) -> None:
        """Location failures are reported and tracking continues."""
        logger.warning(f"Location update failed, distance frozen until it resumes: {error}")

    def snapshot(self) -> LiveMetrics:
        """Current metrics of the workout in progress."""
        with self._lock:
            if self._session is None:
                return LiveMetrics(state=self._state)
            elapsed = self._metrics.elapsed_seconds
            distance = self._accumulator.distance_meters
            return LiveMetrics(
                state=self._state,
                elapsed_seconds=int(elapsed),
                distance_meters=distance,
                calories_burned=self._metrics.calories,
                current_pace=self._metrics.current_pace,
                average_pace=self._metrics.average_pace,
                current_speed_mps=self._current_speed,
                average_speed_mps=average_speed_mps(elapsed, distance),
                elevation_m=self._elevation,
                route_points=len(self._accumulator.route),
            )

    # ------------------------------------------------------------------
    # internals

    def _freeze(self, session: WorkoutSession) -> WorkoutSession:
        session.duration_seconds = int(self._metrics.elapsed_seconds)
        session.distance_meters = self._accumulator.distance_meters
        session.calories_burned = self._metrics.calories
        session.route = self._accumulator.route

        end_time = self._clock()
        if end_time <= session.start_time:
            end_time = session.start_time + timedelta(
                seconds=max(session.duration_seconds, 1)
            )
        session.end_time = end_time
        session.run_category = classify_run(
            session.duration_seconds, session.distance_meters
        )
        session.is_completed = True
        return session

    def _reset_counters(self, workout_type: Optional[WorkoutType] = None) -> None:
        self._accumulator.reset()
        self._metrics.reset(workout_type)
        self._current_speed = 0.0
        self._elevation = 0.0
        self._heart_rate_total = 0.0
        self._heart_rate_count = 0

    def _sync_acquisition(self) -> None:
        """
        Start or stop the ticker and location source to match the state.

        Only one thread drives acquisition at a time. A transition that
        finds another thread already doing so marks acquisition stale and
        returns; that thread re-reads the state before releasing, so the
        last transition always wins without blocking on a source that is
        still starting.
        """
        with self._lock:
            self._acquisition_stale = True

        while self._acquisition_lock.acquire(blocking=False):
            try:
                with self._lock:
                    if not self._acquisition_stale:
                        return
                    self._acquisition_stale = False
                    active = self._state == SessionState.ACTIVE

                if active:
                    self._begin_acquisition()
                else:
                    self._end_acquisition()
            finally:
                self._acquisition_lock.release()

    def _begin_acquisition(self) -> None:
        self._ticker.start()
        try:
            self._source.start(self.handle_sample, self.handle_location_error)
            self._location_available = True
        except LocationPermissionError as e:
            self._location_available = False
            logger.warning(f"Tracking time and calories only, no location: {e}")

    def _end_acquisition(self) -> None:
        self._ticker.stop()
        self._source.stop()

    def _notify(self, state: SessionState, session: Optional[WorkoutSession]) -> None:
        for listener in list(self._listeners):
            try:
                listener(state, session)
            except Exception:
                logger.exception("Session listener failed")
