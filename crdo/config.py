"""Configuration management for the workout engine."""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


# load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class SupabaseConfig:
    """Supabase project configuration settings."""

    url: str
    anon_key: str
    email: Optional[str] = None
    password: Optional[str] = None

    @property
    def auth_url(self) -> str:
        return f"{self.url.rstrip('/')}/auth/v1"

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """
        Create config from environment variables.
        """
        url = os.getenv("SUPABASE_URL")
        anon_key = os.getenv("SUPABASE_ANON_KEY")

        if not all([url, anon_key]):
            raise ValueError(
                "Missing required Supabase environment variables. "
                "Ensure SUPABASE_URL and SUPABASE_ANON_KEY are set."
            )

        return cls(
            url=url,
            anon_key=anon_key,
            email=os.getenv("SUPABASE_EMAIL"),
            password=os.getenv("SUPABASE_PASSWORD"),
        )


@dataclass(frozen=True)
class Tables:
    """Remote table names."""

    user_profiles: str = "user_profiles"
    workout_sessions: str = "workout_sessions"
    city_progress: str = "city_progress"


@dataclass(frozen=True)
class Defaults:
    """Default values shared by the engine and the remote store."""

    daily_goal_seconds: int = 900  # 15 minutes
    max_workout_history: int = 50


@dataclass(frozen=True)
class TrackingConfig:
    """Thresholds used by the location filter and the session timer."""

    max_horizontal_accuracy_m: float = 20.0
    min_sample_distance_m: float = 3.0
    min_route_distance_m: float = 5.0
    min_route_speed_mps: float = 0.5
    max_route_speed_mps: float = 10.0
    max_distance_increment_m: float = 100.0
    distance_filter_m: float = 5.0
    tick_interval_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> "TrackingConfig":
        """
        Create tracking config, letting CRDO_* variables override defaults.

        Raises ValueError when an override is not a number.
        """
        overrides = {}
        for name in cls.__dataclass_fields__:
            raw = os.getenv(f"CRDO_{name.upper()}")
            if raw is None or not raw.strip():
                continue
            try:
                overrides[name] = float(raw)
            except ValueError:
                raise ValueError(f"CRDO_{name.upper()} must be a number, got {raw!r}")
        return cls(**overrides)


@dataclass(frozen=True)
class PathConfig:
    """File path configuration."""

    base_dir: Path
    data_dir: Path

    @classmethod
    def default(cls) -> "PathConfig":
        """
        Create default path configuration.

        CRDO_DATA_DIR relocates the local store.
        """
        base = Path(__file__).parent.parent
        data_dir = os.getenv("CRDO_DATA_DIR")
        return cls(
            base_dir=base,
            data_dir=Path(data_dir).expanduser() if data_dir else base / "data",
        )


@dataclass(frozen=True)
class AppConfig:
    """Application-wide configuration."""

    supabase: Optional[SupabaseConfig]
    paths: PathConfig
    tracking: TrackingConfig
    tables: Tables = Tables()
    defaults: Defaults = Defaults()

    @classmethod
    def load(cls) -> "AppConfig":
        """
        Load full application configuration.
        """
        try:
            supabase = SupabaseConfig.from_env()
        except ValueError:
            supabase = None

        return cls(
            supabase=supabase,
            paths=PathConfig.default(),
            tracking=TrackingConfig.from_env(),
        )
