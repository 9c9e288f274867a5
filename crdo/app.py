"""
Composition root.

Builds one instance of every service and passes them by reference to the
components that need them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .analyzer import calculate_streak_metrics
from .config import AppConfig
from .goals import DailyGoalTracker
from .location_sources import LocationSource, SimulatedLocationSource
from .models import StreakMetrics, WorkoutSession, WorkoutType
from .notifications import StreakNotifier
from .session import WorkoutSessionManager
from .storage import JsonStore, WorkoutHistory
from .supabase_client import SupabaseClient


logger = logging.getLogger(__name__)


@dataclass
class CrdoApp:
    """Application services wired together."""

    config: AppConfig
    store: JsonStore
    history: WorkoutHistory
    daily_goal: DailyGoalTracker
    notifier: StreakNotifier
    sessions: WorkoutSessionManager
    clock: Callable[[], datetime] = datetime.now
    supabase: Optional[SupabaseClient] = None

    @classmethod
    def create(
        cls,
        config: AppConfig,
        location_source: Optional[LocationSource] = None,
        notifier: Optional[StreakNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ticker_factory=None,
    ) -> "CrdoApp":
        """
        Build the application from configuration.

        Parameters:
            config: Application configuration.
            location_source: Source of position fixes, simulated by default.
            notifier: Streak notifier, logging by default.
            clock: Time source shared by all services.
            ticker_factory: Replacement for the 1 Hz session ticker.
        """
        clock = clock or datetime.now
        store = JsonStore(config.paths.data_dir)
        history = WorkoutHistory(store).load()
        daily_goal = DailyGoalTracker(
            store, clock=clock, goal_seconds=config.defaults.daily_goal_seconds
        )
        daily_goal.load()

        if location_source is None:
            location_source = SimulatedLocationSource(
                distance_filter_m=config.tracking.distance_filter_m, clock=clock
            )

        sessions = WorkoutSessionManager(
            location_source,
            history,
            daily_goal,
            config=config.tracking,
            clock=clock,
            ticker_factory=ticker_factory,
        )

        supabase = SupabaseClient(config.supabase, config.tables) if config.supabase else None

        return cls(
            config=config,
            store=store,
            history=history,
            daily_goal=daily_goal,
            notifier=notifier or StreakNotifier(),
            sessions=sessions,
            clock=clock,
            supabase=supabase,
        )

    def start_workout(self, workout_type: WorkoutType = WorkoutType.RUNNING) -> Optional[WorkoutSession]:
        return self.sessions.start(workout_type)

    def pause_workout(self) -> bool:
        return self.sessions.pause()

    def resume_workout(self) -> bool:
        return self.sessions.resume()

    def end_workout(self) -> Optional[WorkoutSession]:
        """
        End the workout and send a streak notification once the daily
        goal is reached.
        """
        completed = self.sessions.end()
        if completed is not None and self.daily_goal.is_complete:
            streak = self.streak_metrics().current_streak
            self.notifier.schedule_streak_notification(streak)
        return completed

    def streak_metrics(self) -> StreakMetrics:
        return calculate_streak_metrics(self.history.sessions, self.clock().date())

    def goal_ratio(self) -> float:
        return self.daily_goal.ratio

    def shutdown(self) -> None:
        """Stop background work and flush pending writes."""
        self.sessions.shutdown()
        if not self.history.flush():
            logger.error("Workout history could not be saved on shutdown")
