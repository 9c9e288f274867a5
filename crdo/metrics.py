"""Derived workout metrics: calories, pace and speed."""

from typing import Optional

from .models import WorkoutType


NO_PACE = "--:--"


def calories_burned(elapsed_seconds: float, workout_type: WorkoutType) -> int:
    """Calories for the elapsed time, truncated to an integer."""
    return int((elapsed_seconds / 60) * workout_type.calories_per_minute)


def pace_seconds_per_km(elapsed_seconds: float, distance_meters: float) -> Optional[float]:
    """
    Pace in seconds per kilometer.

    Returns None when no distance has been covered yet.
    """
    if distance_meters <= 0:
        return None
    return elapsed_seconds / (distance_meters / 1000)


def average_speed_mps(elapsed_seconds: float, distance_meters: float) -> float:
    """Average speed in meters per second, 0.0 before any time or distance."""
    if elapsed_seconds <= 0 or distance_meters <= 0:
        return 0.0
    return distance_meters / elapsed_seconds


def format_pace(pace: Optional[float]) -> str:
    """Format pace in seconds per km as m:ss."""
    if pace is None or pace <= 0:
        return NO_PACE
    mins = int(pace // 60)
    secs = int(pace % 60)
    return f"{mins}:{secs:02d}"


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as MM:SS."""
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"


def format_distance_km(distance_meters: float) -> str:
    return f"{distance_meters / 1000:.2f}"


def format_speed_kmh(speed_mps: float) -> str:
    return f"{speed_mps * 3.6:.1f}"


class MetricsCalculator:
    """Per-tick metrics of an active session."""

    def __init__(self, workout_type: WorkoutType, tick_interval: float = 1.0):
        self.workout_type = workout_type
        self.tick_interval = tick_interval
        self.elapsed_seconds = 0.0
        self.calories = 0
        self.current_pace: Optional[float] = None
        self.average_pace: Optional[float] = None

    def reset(self, workout_type: Optional[WorkoutType] = None) -> None:
        if workout_type is not None:
            self.workout_type = workout_type
        self.elapsed_seconds = 0.0
        self.calories = 0
        self.current_pace = None
        self.average_pace = None

    def tick(self, distance_meters: float) -> None:
        """
        Advance elapsed time by one tick and recompute derived metrics.

        Parameters:
            distance_meters: Cumulative session distance.
        """
        self.elapsed_seconds += self.tick_interval
        self.calories = calories_burned(self.elapsed_seconds, self.workout_type)
        self.current_pace = pace_seconds_per_km(self.elapsed_seconds, distance_meters)
        # pace over cumulative distance is already the session average
        self.average_pace = self.current_pace
