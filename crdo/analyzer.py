"""
Workout history analyzer.

Provides functions for calculating streaks, daily goal progress and
summary statistics from completed workout sessions. Everything here is
recomputed from the history on demand.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Dict, Iterable, Optional
from collections import defaultdict

from .goals import DAILY_GOAL_SECONDS, goal_ratio
from .metrics import format_pace
from .models import StreakMetrics, WorkoutSession, WorkoutSummary


logger = logging.getLogger(__name__)


def _completed(sessions: Iterable[WorkoutSession]) -> List[WorkoutSession]:
    return [s for s in sessions if s.is_completed]


def count_completed_workouts(sessions: Iterable[WorkoutSession]) -> int:
    """Count of completed sessions."""
    return len(_completed(sessions))


def calculate_current_streak(
    sessions: Iterable[WorkoutSession], today: Optional[date] = None
) -> int:
    """
    Count consecutive days with a completed workout, ending today.

    Walks backward from today and stops at the first day without a
    completed workout, so the streak is 0 when today has none.
    """
    if today is None:
        today = datetime.now().date()

    workout_days = {s.date for s in _completed(sessions)}

    streak = 0
    day = today
    while day in workout_days:
        streak += 1
        day -= timedelta(days=1)

    return streak


def calculate_longest_streak(sessions: Iterable[WorkoutSession]) -> int:
    """
    Longest run of consecutive calendar days with a completed workout.

    Several workouts on the same day count as one day and neither extend
    nor break the streak.
    """
    runs = sorted(_completed(sessions), key=lambda s: s.start_time)

    if not runs:
        return 0

    longest = 1
    current = 1

    for i in range(1, len(runs)):
        diff = (runs[i].date - runs[i - 1].date).days
        if diff == 1:
            current += 1
            longest = max(longest, current)
        elif diff > 1:
            current = 1

    return longest


def daily_goal_ratio(
    accumulated_seconds: float, goal_seconds: int = DAILY_GOAL_SECONDS
) -> float:
    """Daily goal progress in [0, 1]."""
    return goal_ratio(accumulated_seconds, goal_seconds)


def calculate_streak_metrics(
    sessions: Iterable[WorkoutSession], today: Optional[date] = None
) -> StreakMetrics:
    """Calculate current streak, longest streak and total workouts."""
    sessions = list(sessions)
    return StreakMetrics(
        current_streak=calculate_current_streak(sessions, today),
        longest_streak=calculate_longest_streak(sessions),
        total_workouts=count_completed_workouts(sessions),
    )


def calculate_weekly_activity(
    sessions: Iterable[WorkoutSession], today: Optional[date] = None
) -> List[Dict]:
    """Workout flag for each day of the current week, Monday first."""
    if today is None:
        today = datetime.now().date()

    monday = today - timedelta(days=today.weekday())
    workout_days = {s.date for s in _completed(sessions)}

    result = []
    for offset in range(7):
        day = monday + timedelta(days=offset)
        result.append(
            {
                "date": day.isoformat(),
                "weekday": day.strftime("%a"),
                "completed": day in workout_days,
                "is_today": day == today,
            }
        )
    return result


def calculate_category_distribution(sessions: Iterable[WorkoutSession]) -> Dict[str, int]:
    """Number of completed sessions per run category."""
    distribution: Dict[str, int] = defaultdict(int)
    for session in _completed(sessions):
        if session.run_category is not None:
            distribution[session.run_category.display_name] += 1
    return dict(distribution)


def calculate_summary(
    sessions: Iterable[WorkoutSession], today: Optional[date] = None
) -> WorkoutSummary:
    """Calculate aggregate workout statistics."""
    if today is None:
        today = datetime.now().date()

    workouts = _completed(sessions)
    streaks = calculate_streak_metrics(workouts, today)

    if not workouts:
        return WorkoutSummary(
            total_workouts=0,
            total_distance_km=0.0,
            total_time_hours=0.0,
            total_calories=0,
            avg_distance_km=0.0,
            avg_pace="N/A",
            fastest_pace="N/A",
            longest_distance_km=0.0,
            workouts_this_month=0,
            streaks=streaks,
        )

    total_km = sum(w.distance_km for w in workouts)
    total_seconds = sum(w.duration_seconds for w in workouts)

    # filter out sessions without distance
    valid_paces = [w.pace_seconds_per_km for w in workouts if w.pace_seconds_per_km]
    avg_pace = sum(valid_paces) / len(valid_paces) if valid_paces else None
    fastest_pace = min(valid_paces) if valid_paces else None

    month_start = today.replace(day=1)
    month_workouts = [w for w in workouts if month_start <= w.date <= today]

    return WorkoutSummary(
        total_workouts=len(workouts),
        total_distance_km=round(total_km, 2),
        total_time_hours=round(total_seconds / 3600, 1),
        total_calories=sum(w.calories_burned for w in workouts),
        avg_distance_km=round(total_km / len(workouts), 2),
        avg_pace=format_pace(avg_pace) if avg_pace else "N/A",
        fastest_pace=format_pace(fastest_pace) if fastest_pace else "N/A",
        longest_distance_km=round(max(w.distance_km for w in workouts), 2),
        workouts_this_month=len(month_workouts),
        streaks=streaks,
        categories=calculate_category_distribution(workouts),
    )


def day_suffix(day: int) -> str:
    """English ordinal suffix, e.g. 1 -> ST, 12 -> TH, 23 -> RD."""
    if 11 <= day % 100 <= 13:
        return "TH"
    return {1: "ST", 2: "ND", 3: "RD"}.get(day % 10, "TH")


def daily_title(current_streak: int) -> str:
    """Title for today's session, counting today as the next streak day."""
    day_number = current_streak + 1
    return f"{day_number}{day_suffix(day_number)} DAILY CRDO"
