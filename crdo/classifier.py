"""Run classification of completed sessions."""

from typing import Callable, List, Tuple

from .models import RunCategory


# (predicate(duration_minutes, pace_min_per_km), category), first match wins
_RULES: List[Tuple[Callable[[float, float], bool], RunCategory]] = [
    (lambda minutes, pace: minutes < 5, RunCategory.SPRINT),
    (lambda minutes, pace: minutes < 15, RunCategory.SHORT_RUN),
    (lambda minutes, pace: pace > 6.5, RunCategory.RECOVERY_RUN),
    (lambda minutes, pace: pace > 5.5, RunCategory.EASY_RUN),
    (lambda minutes, pace: pace > 4.5, RunCategory.TEMPO_RUN),
    (lambda minutes, pace: minutes > 30, RunCategory.LONG_RUN),
]


def pace_minutes_per_km(duration_seconds: float, distance_meters: float) -> float:
    """Pace in minutes per km, 0.0 when no distance was recorded."""
    distance_km = distance_meters / 1000
    if distance_km <= 0:
        return 0.0
    return (duration_seconds / 60) / distance_km


def classify_run(duration_seconds: float, distance_meters: float) -> RunCategory:
    """
    Classify a finished session.

    Rules are evaluated in order and the first match wins, so a short
    session is a sprint or short run regardless of pace, and a session
    without distance skips every pace rule.

    Parameters:
        duration_seconds: Session duration.
        distance_meters: Session distance.

    Returns:
        The run category.
    """
    minutes = duration_seconds / 60
    pace = pace_minutes_per_km(duration_seconds, distance_meters)

    for predicate, category in _RULES:
        if predicate(minutes, pace):
            return category

    return RunCategory.MEDIUM_RUN
