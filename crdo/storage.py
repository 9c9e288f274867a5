"""
Local persistence.

JsonStore is a key-value store keeping one JSON file per key.
WorkoutHistory is the append-only collection of completed sessions.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from .models import UserPreferences, WorkoutSession


logger = logging.getLogger(__name__)


HISTORY_KEY = "workout_history"
PREFERENCES_KEY = "user_preferences"


class DateEncoder(json.JSONEncoder):
    """JSON encoder that handles date and datetime objects."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


class JsonStore:
    """Key-value store backed by JSON files in a directory."""

    def __init__(self, directory: Path):
        """Initialize store rooted at directory."""
        self._dir = Path(directory)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def load(self, key: str) -> Optional[Any]:
        """
        Load the value stored under key.

        Returns None when the key is missing or the file cannot be read.
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read {path}, treating as empty: {e}")
            return None

    def save(self, key: str, value: Any) -> bool:
        """
        Save value under key, replacing the previous file atomically.

        Returns:
            True on success, False when the write failed.
        """
        path = self._path(key)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(value, f, indent=2, cls=DateEncoder)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            return False

        logger.debug(f"Saved {key} to {path}")
        return True


class WorkoutHistory:
    """Completed workout sessions ordered by start time."""

    def __init__(self, store: JsonStore, key: str = HISTORY_KEY):
        self._store = store
        self._key = key
        self._sessions: List[WorkoutSession] = []
        self._dirty = False

    def load(self) -> "WorkoutHistory":
        """
        Load persisted sessions. Unreadable data yields an empty history.
        """
        data = self._store.load(self._key)
        sessions: List[WorkoutSession] = []
        for item in data or []:
            try:
                sessions.append(WorkoutSession.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable workout entry: {e}")

        self._sessions = sorted(sessions, key=lambda s: s.start_time)
        self._dirty = False
        logger.info(f"Loaded {len(self._sessions)} workouts from history")
        return self

    @property
    def store(self) -> JsonStore:
        return self._store

    @property
    def sessions(self) -> List[WorkoutSession]:
        return list(self._sessions)

    @property
    def completed(self) -> List[WorkoutSession]:
        return [s for s in self._sessions if s.is_completed]

    @property
    def has_pending_writes(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._sessions)

    def recent(self, limit: int = 10) -> List[WorkoutSession]:
        """Most recent sessions first."""
        return list(reversed(self._sessions))[:limit]

    def unsynced(self) -> List[WorkoutSession]:
        return [s for s in self._sessions if s.is_completed and not s.synced]

    def append(self, session: WorkoutSession) -> bool:
        """
        Append a completed session and persist the history.

        The session stays in memory when the write fails and is written
        again by the next append or flush.
        """
        self._sessions.append(session)
        if len(self._sessions) > 1 and session.start_time < self._sessions[-2].start_time:
            self._sessions.sort(key=lambda s: s.start_time)
        self._dirty = True
        return self.flush()

    def mark_synced(self, session_ids: Iterable[str]) -> bool:
        ids = set(session_ids)
        for session in self._sessions:
            if session.id in ids:
                session.synced = True
        self._dirty = True
        return self.flush()

    def flush(self) -> bool:
        """Write pending changes. Returns False if the write failed."""
        if not self._dirty:
            return True
        if self._store.save(self._key, [s.to_dict() for s in self._sessions]):
            self._dirty = False
            return True
        logger.warning("Workout history not persisted, will retry on next write")
        return False


def load_preferences(store: JsonStore) -> UserPreferences:
    return UserPreferences.from_dict(store.load(PREFERENCES_KEY))


def save_preferences(store: JsonStore, preferences: UserPreferences) -> bool:
    return store.save(PREFERENCES_KEY, preferences.__dict__)
