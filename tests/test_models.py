"""
Tests for workout models.

Tests parsing functions and model properties.
"""

import pytest
from datetime import date, datetime

from crdo.models import (
    CityProgress,
    DailyGoalProgress,
    LocationSample,
    ProfileUpdate,
    RoutePoint,
    RunCategory,
    UserPreferences,
    UserProfile,
    WorkoutSession,
    WorkoutType,
)


class TestWorkoutType:
    """Tests for WorkoutType enum."""

    def test_calories_per_minute(self):
        """Test fixed calorie rates per workout type."""
        assert WorkoutType.RUNNING.calories_per_minute == 12.0
        assert WorkoutType.WALKING.calories_per_minute == 6.0
        assert WorkoutType.CYCLING.calories_per_minute == 8.0
        assert WorkoutType.CARDIO.calories_per_minute == 10.0

    def test_from_string(self):
        """Test mapping names to workout types."""
        assert WorkoutType.from_string("Run") == WorkoutType.RUNNING
        assert WorkoutType.from_string("walking") == WorkoutType.WALKING
        assert WorkoutType.from_string("General") == WorkoutType.CARDIO

    def test_from_string_unknown(self):
        """Test unknown names raise ValueError."""
        with pytest.raises(ValueError):
            WorkoutType.from_string("Yoga")


class TestLocationSample:
    """Tests for LocationSample model."""

    def test_from_dict(self):
        """Test parsing a recorded track entry."""
        sample = LocationSample.from_dict(
            {
                "lat": 37.77,
                "lon": -122.41,
                "timestamp": "2024-01-01T08:00:00",
                "accuracy": 8,
                "speed": 2.5,
            }
        )

        assert sample.latitude == 37.77
        assert sample.longitude == -122.41
        assert sample.timestamp == datetime(2024, 1, 1, 8, 0)
        assert sample.horizontal_accuracy_m == 8.0
        assert sample.speed_mps == 2.5

    def test_from_dict_utc_is_naive(self):
        """Test UTC timestamps are converted to naive local time."""
        sample = LocationSample.from_dict(
            {"latitude": 1.0, "longitude": 2.0, "timestamp": "2024-01-01T08:00:00Z"}
        )

        assert sample.timestamp.tzinfo is None


class TestWorkoutSession:
    """Tests for WorkoutSession model."""

    def _session(self, **kwargs):
        defaults = dict(
            workout_type=WorkoutType.RUNNING,
            start_time=datetime(2024, 1, 1, 8, 0),
            duration_seconds=1800,
            distance_meters=6000.0,
        )
        defaults.update(kwargs)
        return WorkoutSession(**defaults)

    def test_new_session_is_not_completed(self):
        """Test a fresh session has no end time or category."""
        session = self._session()

        assert session.is_completed is False
        assert session.end_time is None
        assert session.run_category is None
        assert session.route == []

    def test_unique_ids(self):
        """Test every session gets its own id."""
        assert self._session().id != self._session().id

    def test_pace(self):
        """Test pace calculation in seconds per km."""
        assert self._session().pace_seconds_per_km == pytest.approx(300.0)

    def test_pace_zero_distance(self):
        """Test pace returns None for zero distance."""
        assert self._session(distance_meters=0).pace_seconds_per_km is None

    def test_city_progress_earned(self):
        """Test one progress point per 15 minutes."""
        assert self._session(duration_seconds=899).city_progress_earned == 0
        assert self._session(duration_seconds=1800).city_progress_earned == 2

    def test_dict_round_trip(self):
        """Test serialization keeps every field."""
        session = self._session(
            end_time=datetime(2024, 1, 1, 8, 30),
            run_category=RunCategory.TEMPO_RUN,
            is_completed=True,
            route=[RoutePoint(37.0, -122.0, datetime(2024, 1, 1, 8, 0))],
            max_heart_rate=171,
        )

        restored = WorkoutSession.from_dict(session.to_dict())

        assert restored == session


class TestDailyGoalProgress:
    """Tests for DailyGoalProgress model."""

    def test_dict_round_trip(self):
        """Test serialization of goal progress."""
        progress = DailyGoalProgress(accumulated_seconds=300, last_reset_date=date(2024, 1, 1))

        assert DailyGoalProgress.from_dict(progress.to_dict()) == progress


class TestProfileUpdate:
    """Tests for ProfileUpdate partial updates."""

    def test_only_set_fields_sent(self):
        """Test None fields are left out of the payload."""
        update = ProfileUpdate(total_workouts=5, onboarding_completed=False)

        assert update.to_payload() == {
            "total_workouts": 5,
            "onboarding_completed": False,
        }

    def test_datetime_serialized(self):
        """Test datetimes become ISO strings."""
        update = ProfileUpdate(last_workout_date=datetime(2024, 1, 1, 8, 0))

        assert update.to_payload() == {"last_workout_date": "2024-01-01T08:00:00"}

    def test_empty(self):
        """Test an update without fields is empty."""
        assert ProfileUpdate().is_empty()


class TestUserProfile:
    """Tests for UserProfile model."""

    def test_from_row_defaults(self):
        """Test missing counters default to zero."""
        profile = UserProfile.from_row(
            {"user_id": "u1", "current_streak": None, "created_at": "2024-01-01T08:00:00Z"}
        )

        assert profile.current_streak == 0
        assert profile.goals == []
        assert profile.created_at.year == 2024


class TestCityProgress:
    """Tests for CityProgress model."""

    def test_add_progress(self):
        """Test building progress accumulates."""
        progress = CityProgress(user_id="u1", total_progress=2, buildings_unlocked=2)
        progress.add_progress(3, datetime(2024, 1, 1))

        assert progress.total_progress == 5
        assert progress.buildings_unlocked == 5
        assert progress.last_updated == datetime(2024, 1, 1)

    def test_add_zero_progress(self):
        """Test zero points leave progress untouched."""
        progress = CityProgress(user_id="u1")
        progress.add_progress(0, datetime(2024, 1, 1))

        assert progress.total_progress == 0
        assert progress.last_updated is None


class TestUserPreferences:
    """Tests for UserPreferences model."""

    def test_from_dict_ignores_unknown(self):
        """Test unknown keys are dropped."""
        prefs = UserPreferences.from_dict({"motivation": 2, "theme": "dark"})

        assert prefs.motivation == 2
        assert prefs.onboarding_completed is False

    def test_from_none(self):
        """Test missing preferences give defaults."""
        assert UserPreferences.from_dict(None) == UserPreferences()
