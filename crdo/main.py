"""
Main entry point for the workout engine.

Provides CLI interface for running simulated or recorded workouts,
showing streaks and goal progress, and syncing history to Supabase.
"""

import sys
import time
import logging
import argparse
from datetime import datetime
from pathlib import Path
from typing import List

from .analyzer import calculate_summary, calculate_weekly_activity, daily_title
from .app import CrdoApp
from .config import AppConfig
from .location_sources import ReplayLocationSource, load_track
from .metrics import format_distance_km, format_duration, format_pace, format_speed_kmh
from .models import LocationSample, WorkoutSession, WorkoutType
from .session import ManualTicker
from .supabase_client import SupabaseError, sync_history


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def print_session(session: WorkoutSession) -> None:
    """Print a completed workout."""
    print("\n" + "=" * 60)
    print("WORKOUT COMPLETE")
    print("=" * 60)
    print(f"   Type: {session.workout_type.value}")
    print(f"   Category: {session.run_category.display_name}")
    print(f"   Time: {format_duration(session.duration_seconds)}")
    print(f"   Distance: {format_distance_km(session.distance_meters)} km")
    print(f"   Pace: {format_pace(session.pace_seconds_per_km)}/km")
    print(f"   Calories: {session.calories_burned}")
    print(f"   Route points: {len(session.route)}")
    print("=" * 60)


def print_summary(app: CrdoApp) -> None:
    """
    Print summary of workout history, streaks and today's goal.

    Parameters:
        app: Application services.
    """
    today = app.clock().date()
    summary = calculate_summary(app.history.sessions, today)
    streaks = summary.streaks

    print("\n" + "=" * 60)
    print(daily_title(streaks.current_streak))
    print("=" * 60)

    ratio = app.goal_ratio()
    print(f"\n   Daily goal: {int(ratio * 100)}% ({app.daily_goal.accumulated_seconds}s)")

    print("\n🔥 STREAKS")
    print(f"   Current: {streaks.current_streak} days")
    print(f"   Longest: {streaks.longest_streak} days")
    print(f"   Total workouts: {streaks.total_workouts}")

    week = calculate_weekly_activity(app.history.sessions, today)
    marks = " ".join(
        f"{d['weekday']}:{'x' if d['completed'] else '-'}" for d in week
    )
    print(f"   This week: {marks}")

    if summary.total_workouts:
        print("\n📍 WORKOUTS")
        print(f"   Total distance: {summary.total_distance_km} km")
        print(f"   Total time: {summary.total_time_hours} hours")
        print(f"   Total calories: {summary.total_calories}")
        print(f"   Avg pace: {summary.avg_pace}/km")
        print(f"   Fastest pace: {summary.fastest_pace}/km")
        print(f"   Longest: {summary.longest_distance_km} km")
        print(f"   This month: {summary.workouts_this_month} workouts")

        if summary.categories:
            print("\n   Categories:")
            for name, count in sorted(summary.categories.items()):
                print(f"     {name}: {count}")

    print("\n" + "=" * 60)


def replay_track(
    config: AppConfig, samples: List[LocationSample], workout_type: WorkoutType
) -> WorkoutSession:
    """
    Replay recorded samples through the engine.

    The track is shifted to start now and ticks are derived from sample
    timestamps, so the result does not depend on wall-clock speed.
    """
    shift = datetime.now() - samples[0].timestamp
    samples = [
        LocationSample(
            latitude=s.latitude,
            longitude=s.longitude,
            timestamp=s.timestamp + shift,
            altitude=s.altitude,
            horizontal_accuracy_m=s.horizontal_accuracy_m,
            speed_mps=s.speed_mps,
            course_degrees=s.course_degrees,
        )
        for s in samples
    ]

    now = [samples[0].timestamp]
    tickers: List[ManualTicker] = []

    def make_ticker(interval, callback):
        ticker = ManualTicker(interval, callback)
        tickers.append(ticker)
        return ticker

    source = ReplayLocationSource(samples)
    app = CrdoApp.create(
        config,
        location_source=source,
        clock=lambda: now[0],
        ticker_factory=make_ticker,
    )
    ticker = tickers[0]
    interval = config.tracking.tick_interval_seconds

    app.start_workout(workout_type)
    start = samples[0].timestamp
    ticks = 0
    while source.remaining:
        elapsed = (source.peek().timestamp - start).total_seconds()
        while (ticks + 1) * interval <= elapsed:
            ticks += 1
            ticker.fire()
        now[0] = source.emit_next().timestamp

    completed = app.end_workout()
    app.shutdown()
    return completed


def cmd_replay(args: argparse.Namespace, config: AppConfig) -> None:
    """Replay a recorded track file."""
    path = Path(args.track)
    if not path.exists():
        logger.error(f"Track file not found: {path}")
        sys.exit(1)

    samples = load_track(path)
    if not samples:
        logger.error(f"No usable samples in {path}")
        sys.exit(1)

    session = replay_track(config, samples, WorkoutType.from_string(args.type))
    print_session(session)


def cmd_simulate(args: argparse.Namespace, config: AppConfig) -> None:
    """Run a live workout against the simulated location source."""
    app = CrdoApp.create(config)
    app.start_workout(WorkoutType.from_string(args.type))

    deadline = time.monotonic() + args.seconds
    try:
        while time.monotonic() < deadline:
            time.sleep(min(5.0, max(0.0, deadline - time.monotonic())))
            live = app.sessions.snapshot()
            print(
                f"   {format_duration(live.elapsed_seconds)}  "
                f"{format_distance_km(live.distance_meters)} km  "
                f"{format_pace(live.current_pace)}/km  "
                f"{format_speed_kmh(live.current_speed_mps)} km/h  "
                f"{live.calories_burned} kcal"
            )
    except KeyboardInterrupt:
        logger.info("Interrupted, ending workout")

    session = app.end_workout()
    app.shutdown()
    if session is not None:
        print_session(session)


def cmd_stats(args: argparse.Namespace, config: AppConfig) -> None:
    """Show streaks, goal progress and workout summary."""
    app = CrdoApp.create(config)
    print_summary(app)


def cmd_history(args: argparse.Namespace, config: AppConfig) -> None:
    """List recent workouts."""
    app = CrdoApp.create(config)
    recent = app.history.recent(min(args.limit, config.defaults.max_workout_history))
    if not recent:
        print("No workouts yet")
        return

    for session in recent:
        category = session.run_category.display_name if session.run_category else "-"
        synced = "" if session.synced else " *"
        print(
            f"{session.start_time:%Y-%m-%d %H:%M}  {session.workout_type.value:<8} "
            f"{format_duration(session.duration_seconds)}  "
            f"{format_distance_km(session.distance_meters)} km  "
            f"{format_pace(session.pace_seconds_per_km)}/km  {category}{synced}"
        )


def cmd_sync(args: argparse.Namespace, config: AppConfig) -> None:
    """Upload unsynced workouts to Supabase."""
    if config.supabase is None:
        print("Set SUPABASE_URL and SUPABASE_ANON_KEY in .env first")
        return
    if not (config.supabase.email and config.supabase.password):
        print("Set SUPABASE_EMAIL and SUPABASE_PASSWORD in .env first")
        return

    app = CrdoApp.create(config)
    try:
        app.supabase.sign_in(config.supabase.email, config.supabase.password)
    except SupabaseError as e:
        logger.error(f"Sign in failed: {e}")
        sys.exit(1)

    count = sync_history(app.history, app.supabase, app.clock().date())
    logger.info(f"Synced {count} workouts")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="CRDO workout tracking engine")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    types = [t.value for t in WorkoutType]

    # simulate command
    sim_parser = subparsers.add_parser("simulate", help="Run a simulated live workout")
    sim_parser.add_argument(
        "--seconds", type=int, default=60, help="Workout length in seconds"
    )
    sim_parser.add_argument("--type", choices=types, default="running")

    # replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a recorded track")
    replay_parser.add_argument("track", help="JSON file with location samples")
    replay_parser.add_argument("--type", choices=types, default="running")

    # stats command
    subparsers.add_parser("stats", help="Show streaks and workout summary")

    # history command
    history_parser = subparsers.add_parser("history", help="List recent workouts")
    history_parser.add_argument("--limit", type=int, default=10)

    # sync command
    subparsers.add_parser("sync", help="Upload workouts to Supabase")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = AppConfig.load()

    commands = {
        "simulate": cmd_simulate,
        "replay": cmd_replay,
        "stats": cmd_stats,
        "history": cmd_history,
        "sync": cmd_sync,
    }

    commands[args.command](args, config)


if __name__ == "__main__":
    main()
