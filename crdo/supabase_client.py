"""Supabase REST client for auth and remote workout storage."""

import logging
from datetime import date, datetime
from typing import List, Optional

import requests

from .analyzer import calculate_streak_metrics
from .config import SupabaseConfig, Tables
from .geo import encode_route
from .models import CityProgress, ProfileUpdate, UserProfile, WorkoutSession
from .storage import JsonStore, WorkoutHistory


logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """A request to the Supabase API failed."""


class SupabaseClient:
    """Client for the Supabase auth and PostgREST endpoints."""

    def __init__(self, config: SupabaseConfig, tables: Optional[Tables] = None):
        """
        Initialize client with project configuration.
        """
        self._config = config
        self._tables = tables or Tables()
        self._session = requests.Session()
        self._access_token: Optional[str] = None
        self.user_id: Optional[str] = None
        self.email: Optional[str] = None
        self.profile: Optional[UserProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None and self.user_id is not None

    def _get_headers(self, prefer: Optional[str] = None) -> dict:
        """Build API key and authorization headers."""
        token = self._access_token or self._config.anon_key
        headers = {
            "apikey": self._config.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=30, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SupabaseError(f"{method} {url} failed: {e}") from e
        return response

    def _require_user(self) -> str:
        if not self.is_authenticated:
            raise SupabaseError("Not signed in")
        return self.user_id

    def _table_url(self, table: str) -> str:
        return f"{self._config.rest_url}/{table}"

    # ------------------------------------------------------------------
    # authentication

    def _store_auth(self, data: dict) -> None:
        user = data.get("user") or {}
        self._access_token = data.get("access_token")
        self.user_id = user.get("id")
        self.email = user.get("email")

    def sign_up(self, email: str, password: str) -> Optional[UserProfile]:
        """
        Register a new account and create its profile row.
        """
        response = self._request(
            "POST",
            f"{self._config.auth_url}/signup",
            headers=self._get_headers(),
            json={"email": email, "password": password},
        )
        self._store_auth(response.json())
        logger.info(f"Signed up {email}")

        if not self.is_authenticated:
            # email confirmation pending, no session yet
            return None
        return self._create_profile()

    def sign_in(self, email: str, password: str) -> Optional[UserProfile]:
        """
        Sign in with email and password and load the profile.
        """
        response = self._request(
            "POST",
            f"{self._config.auth_url}/token",
            params={"grant_type": "password"},
            headers=self._get_headers(),
            json={"email": email, "password": password},
        )
        self._store_auth(response.json())
        logger.info(f"Signed in {email}")
        return self.load_profile()

    def sign_out(self) -> None:
        """Sign out and forget the local session."""
        if self._access_token is not None:
            try:
                self._request(
                    "POST", f"{self._config.auth_url}/logout", headers=self._get_headers()
                )
            finally:
                self._access_token = None
                self.user_id = None
                self.email = None
                self.profile = None

    # ------------------------------------------------------------------
    # profile

    def _create_profile(self) -> UserProfile:
        now = datetime.now()
        profile = UserProfile(
            user_id=self.user_id,
            email=self.email,
            created_at=now,
            updated_at=now,
        )
        self._request(
            "POST",
            self._table_url(self._tables.user_profiles),
            headers=self._get_headers(),
            json={
                "user_id": profile.user_id,
                "email": profile.email,
                "goals": profile.goals,
                "current_streak": 0,
                "longest_streak": 0,
                "total_workouts": 0,
                "onboarding_completed": False,
                "created_at": now.isoformat(),
                "updated_at": now.isoformat(),
            },
        )
        self.profile = profile
        return profile

    def load_profile(self) -> Optional[UserProfile]:
        """Fetch the signed in user's profile row."""
        user_id = self._require_user()
        response = self._request(
            "GET",
            self._table_url(self._tables.user_profiles),
            headers=self._get_headers(),
            params={"select": "*", "user_id": f"eq.{user_id}"},
        )
        rows = response.json()
        self.profile = UserProfile.from_row(rows[0]) if rows else None
        return self.profile

    def update_profile(self, update: ProfileUpdate) -> Optional[UserProfile]:
        """
        Apply a partial profile update and reload the profile.
        """
        user_id = self._require_user()
        if update.is_empty():
            return self.profile

        self._request(
            "PATCH",
            self._table_url(self._tables.user_profiles),
            headers=self._get_headers(),
            params={"user_id": f"eq.{user_id}"},
            json=update.to_payload(),
        )
        return self.load_profile()

    def complete_onboarding(self) -> Optional[UserProfile]:
        return self.update_profile(ProfileUpdate(onboarding_completed=True))

    def update_streak(self, current_streak: int, longest_streak: int) -> Optional[UserProfile]:
        return self.update_profile(
            ProfileUpdate(
                current_streak=current_streak,
                longest_streak=longest_streak,
                last_workout_date=datetime.now(),
            )
        )

    # ------------------------------------------------------------------
    # workouts and city progress

    def save_workout_session(self, session: WorkoutSession) -> None:
        """Insert a completed session into workout_sessions."""
        user_id = self._require_user()
        self._request(
            "POST",
            self._table_url(self._tables.workout_sessions),
            headers=self._get_headers(prefer="return=minimal"),
            json={
                "user_id": user_id,
                "duration": session.duration_seconds,
                "calories_burned": session.calories_burned,
                "workout_type": session.workout_type.value,
                "city_progress_earned": session.city_progress_earned,
                "distance_meters": round(session.distance_meters, 1),
                "run_category": (
                    session.run_category.value if session.run_category else None
                ),
                "route_polyline": encode_route(session.route) if session.route else None,
                "created_at": session.start_time.isoformat(),
            },
        )

    def get_workout_sessions(self, limit: int = 50) -> List[dict]:
        """Recent workout rows, newest first."""
        user_id = self._require_user()
        response = self._request(
            "GET",
            self._table_url(self._tables.workout_sessions),
            headers=self._get_headers(),
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
                "limit": limit,
            },
        )
        return response.json()

    def save_city_progress(self, progress: CityProgress) -> None:
        """Upsert the city_progress row."""
        self._require_user()
        self._request(
            "POST",
            self._table_url(self._tables.city_progress),
            headers=self._get_headers(prefer="resolution=merge-duplicates"),
            params={"on_conflict": "user_id"},
            json=progress.to_row(),
        )

    def get_city_progress(self) -> Optional[CityProgress]:
        user_id = self._require_user()
        response = self._request(
            "GET",
            self._table_url(self._tables.city_progress),
            headers=self._get_headers(),
            params={"select": "*", "user_id": f"eq.{user_id}"},
        )
        rows = response.json()
        return CityProgress.from_row(rows[0]) if rows else None


PENDING_CITY_PROGRESS_KEY = "pending_city_progress"


def load_pending_city_points(store: JsonStore) -> int:
    """City progress points earned by uploaded workouts but not yet pushed."""
    data = store.load(PENDING_CITY_PROGRESS_KEY)
    if isinstance(data, int) and data > 0:
        return data
    return 0


def push_city_progress(client: SupabaseClient, store: JsonStore, points: int) -> bool:
    """
    Add points to the remote city progress row.

    Points that cannot be pushed are kept in the store for the next sync.

    Returns:
        True when the upsert succeeded.
    """
    try:
        progress = client.get_city_progress() or CityProgress(user_id=client.user_id)
        progress.add_progress(points, datetime.now())
        client.save_city_progress(progress)
    except SupabaseError as e:
        logger.error(f"City progress not updated, keeping {points} points for next sync: {e}")
        store.save(PENDING_CITY_PROGRESS_KEY, points)
        return False

    store.save(PENDING_CITY_PROGRESS_KEY, 0)
    logger.info(f"Added {points} city progress points")
    return True


def sync_history(
    history: WorkoutHistory, client: SupabaseClient, today: Optional[date] = None
) -> int:
    """
    Push unsynced completed workouts and refresh remote stats.

    Sessions are marked synced only after the insert succeeded, so a failed
    sync is retried on the next run. City progress earned by uploaded
    sessions is recorded locally before they are marked synced and cleared
    only once the city progress upsert went through.

    Returns:
        Number of sessions uploaded.
    """
    store = history.store
    carried = load_pending_city_points(store)
    pending = history.unsynced()
    if not pending and not carried:
        logger.info("Nothing to sync")
        return 0

    uploaded: List[str] = []
    earned = 0
    for session in pending:
        try:
            client.save_workout_session(session)
        except SupabaseError as e:
            logger.error(f"Failed to upload workout {session.id}: {e}")
            break
        uploaded.append(session.id)
        earned += session.city_progress_earned

    points = carried + earned

    if uploaded:
        if earned:
            store.save(PENDING_CITY_PROGRESS_KEY, points)
        history.mark_synced(uploaded)
        logger.info(f"Uploaded {len(uploaded)} workouts")

        metrics = calculate_streak_metrics(history.sessions, today)
        try:
            client.update_profile(
                ProfileUpdate(
                    current_streak=metrics.current_streak,
                    longest_streak=metrics.longest_streak,
                    total_workouts=metrics.total_workouts,
                    last_workout_date=datetime.now(),
                )
            )
        except SupabaseError as e:
            logger.error(f"Workouts uploaded but profile stats not updated: {e}")

    if points > 0:
        push_city_progress(client, store, points)

    return len(uploaded)
