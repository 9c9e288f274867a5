"""Data models for workout tracking."""

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, date
from typing import Optional, List, Dict, Any
from enum import Enum


class WorkoutType(Enum):
    """Enumeration of supported workout types."""

    RUNNING = "running"
    WALKING = "walking"
    CYCLING = "cycling"
    CARDIO = "cardio"

    @property
    def calories_per_minute(self) -> float:
        """Fixed calorie burn rate for this workout type."""
        return CALORIES_PER_MINUTE[self]

    @classmethod
    def from_string(cls, value: str) -> "WorkoutType":
        """Convert a stored or user supplied name to a workout type."""
        mapping = {
            "run": cls.RUNNING,
            "running": cls.RUNNING,
            "walk": cls.WALKING,
            "walking": cls.WALKING,
            "ride": cls.CYCLING,
            "cycling": cls.CYCLING,
            "cardio": cls.CARDIO,
            "general": cls.CARDIO,
        }
        try:
            return mapping[value.strip().lower()]
        except (KeyError, AttributeError):
            raise ValueError(f"Unknown workout type: {value!r}")


CALORIES_PER_MINUTE: Dict[WorkoutType, float] = {
    WorkoutType.RUNNING: 12.0,
    WorkoutType.WALKING: 6.0,
    WorkoutType.CYCLING: 8.0,
    WorkoutType.CARDIO: 10.0,
}


class RunCategory(Enum):
    """Category assigned to a completed session."""

    SPRINT = "sprint"
    SHORT_RUN = "shortRun"
    MEDIUM_RUN = "mediumRun"
    LONG_RUN = "longRun"
    RECOVERY_RUN = "recoveryRun"
    TEMPO_RUN = "tempoRun"
    EASY_RUN = "easyRun"

    @property
    def display_name(self) -> str:
        return {
            RunCategory.SPRINT: "Sprint",
            RunCategory.SHORT_RUN: "Short Run",
            RunCategory.MEDIUM_RUN: "Medium Run",
            RunCategory.LONG_RUN: "Long Run",
            RunCategory.RECOVERY_RUN: "Recovery Run",
            RunCategory.TEMPO_RUN: "Tempo Run",
            RunCategory.EASY_RUN: "Easy Run",
        }[self]


class SessionState(Enum):
    """Lifecycle state of the workout session manager."""

    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class LocationSample:
    """A single position fix from a location source."""

    latitude: float
    longitude: float
    timestamp: datetime
    altitude: float = 0.0
    horizontal_accuracy_m: float = 5.0
    speed_mps: float = -1.0
    course_degrees: float = -1.0

    @classmethod
    def from_dict(cls, data: dict) -> "LocationSample":
        """
        Create a sample from a recorded track entry.

        Expected keys: latitude/lat, longitude/lon, timestamp (ISO 8601),
        and optionally altitude, accuracy, speed, course. Timestamps with a
        UTC offset are converted to naive local time.
        """
        timestamp = datetime.fromisoformat(str(data["timestamp"]).replace("Z", "+00:00"))
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone().replace(tzinfo=None)

        return cls(
            latitude=float(data.get("latitude", data.get("lat"))),
            longitude=float(data.get("longitude", data.get("lon"))),
            timestamp=timestamp,
            altitude=float(data.get("altitude", 0.0)),
            horizontal_accuracy_m=float(data.get("accuracy", 5.0)),
            speed_mps=float(data.get("speed", -1.0)),
            course_degrees=float(data.get("course", -1.0)),
        )


@dataclass(frozen=True)
class RoutePoint:
    """A point retained in a workout route."""

    latitude: float
    longitude: float
    timestamp: Optional[datetime] = None

    @property
    def coordinate(self) -> tuple:
        return (self.latitude, self.longitude)

    @classmethod
    def from_sample(cls, sample: LocationSample) -> "RoutePoint":
        return cls(sample.latitude, sample.longitude, sample.timestamp)


@dataclass
class WorkoutSession:
    """
    One workout from start to end.

    end_time and run_category are set if and only if is_completed is True.
    """

    workout_type: WorkoutType
    start_time: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    end_time: Optional[datetime] = None
    duration_seconds: int = 0
    distance_meters: float = 0.0
    calories_burned: int = 0
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[int] = None
    route: List[RoutePoint] = field(default_factory=list)
    run_category: Optional[RunCategory] = None
    is_completed: bool = False
    synced: bool = False

    @property
    def date(self) -> date:
        """Local calendar day the session started on."""
        return self.start_time.date()

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def pace_seconds_per_km(self) -> Optional[float]:
        """Average pace over the session, None without distance."""
        if self.distance_meters <= 0:
            return None
        return self.duration_seconds / self.distance_km

    @property
    def city_progress_earned(self) -> int:
        """Every 15 minutes of activity is one building progress point."""
        return self.duration_seconds // 900

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the local JSON store."""
        return {
            "id": self.id,
            "workout_type": self.workout_type.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "distance_meters": self.distance_meters,
            "calories_burned": self.calories_burned,
            "average_heart_rate": self.average_heart_rate,
            "max_heart_rate": self.max_heart_rate,
            "route": [
                {
                    "latitude": p.latitude,
                    "longitude": p.longitude,
                    "timestamp": p.timestamp.isoformat() if p.timestamp else None,
                }
                for p in self.route
            ],
            "run_category": self.run_category.value if self.run_category else None,
            "is_completed": self.is_completed,
            "synced": self.synced,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSession":
        """
        Create a session from its local JSON form.
        """
        end_time = data.get("end_time")
        category = data.get("run_category")
        return cls(
            id=data["id"],
            workout_type=WorkoutType(data["workout_type"]),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            duration_seconds=int(data.get("duration_seconds", 0)),
            distance_meters=float(data.get("distance_meters", 0.0)),
            calories_burned=int(data.get("calories_burned", 0)),
            average_heart_rate=data.get("average_heart_rate"),
            max_heart_rate=data.get("max_heart_rate"),
            route=[
                RoutePoint(
                    latitude=p["latitude"],
                    longitude=p["longitude"],
                    timestamp=(
                        datetime.fromisoformat(p["timestamp"])
                        if p.get("timestamp")
                        else None
                    ),
                )
                for p in data.get("route", [])
            ],
            run_category=RunCategory(category) if category else None,
            is_completed=bool(data.get("is_completed", False)),
            synced=bool(data.get("synced", False)),
        )


@dataclass
class DailyGoalProgress:
    """Workout time credited towards today's goal."""

    accumulated_seconds: int = 0
    last_reset_date: date = field(default_factory=date.today)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accumulated_seconds": self.accumulated_seconds,
            "last_reset_date": self.last_reset_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyGoalProgress":
        return cls(
            accumulated_seconds=int(data["accumulated_seconds"]),
            last_reset_date=date.fromisoformat(data["last_reset_date"]),
        )


@dataclass(frozen=True)
class StreakMetrics:
    """Streak statistics derived from workout history."""

    current_streak: int
    longest_streak: int
    total_workouts: int


@dataclass(frozen=True)
class LiveMetrics:
    """Snapshot of the session in progress."""

    state: SessionState
    elapsed_seconds: int = 0
    distance_meters: float = 0.0
    calories_burned: int = 0
    current_pace: Optional[float] = None
    average_pace: Optional[float] = None
    current_speed_mps: float = 0.0
    average_speed_mps: float = 0.0
    elevation_m: float = 0.0
    route_points: int = 0


@dataclass
class WorkoutSummary:
    """Aggregated workout statistics."""

    total_workouts: int
    total_distance_km: float
    total_time_hours: float
    total_calories: int
    avg_distance_km: float
    avg_pace: str
    fastest_pace: str
    longest_distance_km: float
    workouts_this_month: int
    streaks: StreakMetrics
    categories: Dict[str, int] = field(default_factory=dict)


@dataclass
class UserProfile:
    """Row of the remote user_profiles table."""

    user_id: str
    id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    fitness_level: Optional[str] = None
    goals: List[str] = field(default_factory=list)
    current_streak: int = 0
    longest_streak: int = 0
    total_workouts: int = 0
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "UserProfile":
        """
        Create a profile from a REST response row.
        """
        return cls(
            id=row.get("id"),
            user_id=row["user_id"],
            username=row.get("username"),
            email=row.get("email"),
            fitness_level=row.get("fitness_level"),
            goals=row.get("goals") or [],
            current_streak=row.get("current_streak") or 0,
            longest_streak=row.get("longest_streak") or 0,
            total_workouts=row.get("total_workouts") or 0,
            onboarding_completed=bool(row.get("onboarding_completed")),
            created_at=_parse_timestamp(row.get("created_at")),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )


@dataclass
class ProfileUpdate:
    """
    Partial update of a user profile.

    Only fields that are not None are sent.
    """

    username: Optional[str] = None
    fitness_level: Optional[str] = None
    goals: Optional[List[str]] = None
    current_streak: Optional[int] = None
    longest_streak: Optional[int] = None
    total_workouts: Optional[int] = None
    onboarding_completed: Optional[bool] = None
    last_workout_date: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            payload[f.name] = value
        return payload

    def is_empty(self) -> bool:
        return not self.to_payload()


@dataclass
class CityProgress:
    """Row of the remote city_progress table."""

    user_id: str
    total_progress: int = 0
    buildings_unlocked: int = 0
    current_level: int = 1
    id: Optional[str] = None
    city_data: Optional[Dict[str, str]] = None
    last_updated: Optional[datetime] = None

    def add_progress(self, points: int, when: datetime) -> None:
        """Credit building progress earned by completed workouts."""
        if points <= 0:
            return
        self.total_progress += points
        self.buildings_unlocked = self.total_progress
        self.last_updated = when

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "user_id": self.user_id,
            "total_progress": self.total_progress,
            "buildings_unlocked": self.buildings_unlocked,
            "current_level": self.current_level,
            "city_data": self.city_data,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: dict) -> "CityProgress":
        return cls(
            id=row.get("id"),
            user_id=row["user_id"],
            total_progress=row.get("total_progress") or 0,
            buildings_unlocked=row.get("buildings_unlocked") or 0,
            current_level=row.get("current_level") or 1,
            city_data=row.get("city_data"),
            last_updated=_parse_timestamp(row.get("last_updated")),
        )


@dataclass
class UserPreferences:
    """Answers given during onboarding."""

    fitness_goal: Optional[int] = None
    motivation: Optional[int] = None
    streak_style: Optional[int] = None
    challenges: Optional[int] = None
    onboarding_completed: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserPreferences":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the REST API."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
