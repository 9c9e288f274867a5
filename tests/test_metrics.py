"""
Tests for derived workout metrics and run classification.
"""

import pytest

from crdo.classifier import classify_run, pace_minutes_per_km
from crdo.metrics import (
    MetricsCalculator,
    average_speed_mps,
    calories_burned,
    format_distance_km,
    format_duration,
    format_pace,
    pace_seconds_per_km,
)
from crdo.models import RunCategory, WorkoutType


class TestCalories:
    """Tests for calories_burned."""

    def test_running(self):
        """Test 10 minutes of running at 12 kcal/min."""
        assert calories_burned(600, WorkoutType.RUNNING) == 120

    def test_truncated(self):
        """Test partial calories are truncated."""
        # 90 s walking = 1.5 min * 6.0 = 9.0, 95 s = 9.5 -> 9
        assert calories_burned(95, WorkoutType.WALKING) == 9

    def test_zero_time(self):
        """Test no time burns no calories."""
        assert calories_burned(0, WorkoutType.CYCLING) == 0


class TestPace:
    """Tests for pace helpers."""

    def test_pace(self):
        """Test 1500 s over 5 km is 300 s/km."""
        assert pace_seconds_per_km(1500, 5000) == pytest.approx(300.0)

    def test_no_distance(self):
        """Test pace is undefined before any distance."""
        assert pace_seconds_per_km(120, 0) is None

    def test_format_pace(self):
        """Test pace formatting as m:ss."""
        assert format_pace(330.0) == "5:30"
        assert format_pace(None) == "--:--"

    def test_average_speed(self):
        """Test average speed and its zero guards."""
        assert average_speed_mps(100, 250) == pytest.approx(2.5)
        assert average_speed_mps(0, 250) == 0.0
        assert average_speed_mps(100, 0) == 0.0

    def test_format_duration(self):
        """Test MM:SS formatting."""
        assert format_duration(0) == "00:00"
        assert format_duration(754.9) == "12:34"

    def test_format_distance(self):
        """Test kilometer formatting."""
        assert format_distance_km(5234.0) == "5.23"


class TestMetricsCalculator:
    """Tests for MetricsCalculator ticks."""

    def test_tick_advances_time(self):
        """Test each tick adds the tick interval."""
        calc = MetricsCalculator(WorkoutType.RUNNING)
        for _ in range(3):
            calc.tick(0.0)

        assert calc.elapsed_seconds == 3.0

    def test_pace_undefined_without_distance(self):
        """Test ticks before any distance leave pace undefined."""
        calc = MetricsCalculator(WorkoutType.RUNNING)
        calc.tick(0.0)

        assert calc.current_pace is None
        assert calc.average_pace is None

    def test_pace_and_calories(self):
        """Test pace and calories after a minute."""
        calc = MetricsCalculator(WorkoutType.CARDIO)
        for _ in range(60):
            calc.tick(200.0)

        assert calc.calories == 10
        assert calc.current_pace == pytest.approx(300.0)
        assert calc.average_pace == calc.current_pace

    def test_reset(self):
        """Test reset clears counters and switches type."""
        calc = MetricsCalculator(WorkoutType.RUNNING)
        calc.tick(100.0)
        calc.reset(WorkoutType.WALKING)

        assert calc.elapsed_seconds == 0.0
        assert calc.calories == 0
        assert calc.current_pace is None
        assert calc.workout_type == WorkoutType.WALKING


class TestClassifyRun:
    """Tests for classify_run rule order."""

    @pytest.mark.parametrize(
        "duration, distance, expected",
        [
            (200, 0, RunCategory.SPRINT),
            (600, 0, RunCategory.SHORT_RUN),
            (1200, 2000, RunCategory.RECOVERY_RUN),
            (1200, 4000, RunCategory.TEMPO_RUN),
            (2000, 5000, RunCategory.RECOVERY_RUN),
        ],
    )
    def test_boundary_cases(self, duration, distance, expected):
        """Test literal classification examples."""
        assert classify_run(duration, distance) == expected

    def test_duration_beats_pace(self):
        """Test a 4 minute session is a sprint whatever the pace."""
        assert classify_run(240, 100) == RunCategory.SPRINT

    def test_short_run_at_slow_pace(self):
        """Test duration under 15 minutes wins over slow pace."""
        assert classify_run(14 * 60, 500) == RunCategory.SHORT_RUN

    def test_easy_run(self):
        """Test pace between 5.5 and 6.5 min/km."""
        # 20 min over 3.333 km = 6.0 min/km
        assert classify_run(1200, 3333) == RunCategory.EASY_RUN

    def test_long_run(self):
        """Test a fast session over 30 minutes."""
        # 40 min over 10 km = 4.0 min/km
        assert classify_run(2400, 10000) == RunCategory.LONG_RUN

    def test_long_run_without_distance(self):
        """Test zero distance skips pace rules and lands on duration."""
        assert classify_run(35 * 60, 0) == RunCategory.LONG_RUN

    def test_medium_run(self):
        """Test a fast session between 15 and 30 minutes."""
        # 20 min over 5 km = 4.0 min/km
        assert classify_run(1200, 5000) == RunCategory.MEDIUM_RUN
        assert classify_run(1200, 0) == RunCategory.MEDIUM_RUN

    def test_boundaries_are_exclusive(self):
        """Test exactly 5 min is not a sprint and exactly 4.5 min/km is not tempo."""
        assert classify_run(300, 0) == RunCategory.SHORT_RUN
        # 22.5 min over 5 km = 4.5 min/km
        assert classify_run(1350, 5000) == RunCategory.MEDIUM_RUN

    def test_deterministic(self):
        """Test identical inputs give identical categories."""
        results = {classify_run(1800, 5500) for _ in range(10)}
        assert len(results) == 1

    def test_pace_minutes_per_km(self):
        """Test pace helper and zero-distance fallback."""
        assert pace_minutes_per_km(1200, 2000) == pytest.approx(10.0)
        assert pace_minutes_per_km(1200, 0) == 0.0
