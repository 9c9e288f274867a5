"""Daily goal progress tracking."""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from .config import Defaults
from .models import DailyGoalProgress
from .storage import JsonStore


logger = logging.getLogger(__name__)


DAILY_GOAL_KEY = "daily_goal_progress"
DAILY_GOAL_SECONDS = Defaults().daily_goal_seconds


def goal_ratio(accumulated_seconds: float, goal_seconds: int = DAILY_GOAL_SECONDS) -> float:
    """Fraction of the daily goal completed, capped at 1.0."""
    if goal_seconds <= 0:
        return 1.0
    return min(accumulated_seconds / goal_seconds, 1.0)


class DailyGoalTracker:
    """Workout time credited to today's goal, persisted after each change."""

    def __init__(
        self,
        store: JsonStore,
        clock: Optional[Callable[[], datetime]] = None,
        goal_seconds: int = DAILY_GOAL_SECONDS,
    ):
        self._store = store
        self._clock = clock or datetime.now
        self.goal_seconds = goal_seconds
        self._progress = DailyGoalProgress(last_reset_date=self._today())

    def _today(self) -> date:
        return self._clock().date()

    @property
    def progress(self) -> DailyGoalProgress:
        return self._progress

    @property
    def accumulated_seconds(self) -> int:
        return self._progress.accumulated_seconds

    @property
    def ratio(self) -> float:
        return goal_ratio(self._progress.accumulated_seconds, self.goal_seconds)

    @property
    def is_complete(self) -> bool:
        return self.ratio >= 1.0

    def load(self) -> DailyGoalProgress:
        """
        Load stored progress, resetting it when it belongs to another day.
        """
        data = self._store.load(DAILY_GOAL_KEY)
        today = self._today()
        progress = None

        if data is not None:
            try:
                progress = DailyGoalProgress.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring unreadable daily goal progress: {e}")

        if progress is None:
            progress = DailyGoalProgress(last_reset_date=today)
        elif progress.last_reset_date != today:
            logger.info(f"New day, resetting daily goal (was {progress.last_reset_date})")
            self._progress = DailyGoalProgress(last_reset_date=today)
            self._save()
            return self._progress

        self._progress = progress
        return progress

    def credit(self, seconds: int) -> DailyGoalProgress:
        """
        Add workout time to today's progress and persist it.

        Progress left over from an earlier day is reset here as well as in
        load(), so a workout ending after midnight in a long-running
        process is credited to the new day.
        """
        if seconds <= 0:
            return self._progress

        today = self._today()
        if self._progress.last_reset_date != today:
            self._progress = DailyGoalProgress(last_reset_date=today)

        self._progress.accumulated_seconds += int(seconds)
        self._save()
        logger.info(
            f"Credited {int(seconds)}s to daily goal "
            f"({self._progress.accumulated_seconds}/{self.goal_seconds}s)"
        )
        return self._progress

    def _save(self) -> None:
        if not self._store.save(DAILY_GOAL_KEY, self._progress.to_dict()):
            logger.warning("Daily goal progress not persisted")
