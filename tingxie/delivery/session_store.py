"""
Session snapshot persistence for Tingxie practice sessions.

Enables save/resume so an interrupted session can continue after a
restart. There is a single slot: saving overwrites the previous
snapshot. Snapshots older than the expiry window are discarded lazily,
on the next load.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger
from pydantic import ValidationError

from ..core.clock import Clock, SystemClock
from ..core.models import SessionMode, SessionSnapshot
from .storage import KeyValueStorage, StorageResult, read_json, remove_key, write_text

ACTIVE_SESSION_KEY = "active_session"
SESSION_EXPIRY_HOURS = 24


class SessionSnapshotStore:
    """
    Manages the resumable session slot.

    State machine:
        Absent -> save() -> Active -> clear() / expiry on load() -> Absent
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Clock | None = None,
        expiry_hours: int = SESSION_EXPIRY_HOURS,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.expiry = timedelta(hours=expiry_hours)

    def save(self, snapshot: SessionSnapshot) -> StorageResult[None]:
        """Stamp the capture time and overwrite the slot."""
        snapshot.captured_at = self.clock.now()
        return write_text(self.storage, ACTIVE_SESSION_KEY, snapshot.model_dump_json())

    def load(self) -> SessionSnapshot | None:
        """
        Load the active snapshot.

        Returns:
            The snapshot, or None if absent, malformed or expired
            (malformed and expired snapshots are also cleared)
        """
        raw = read_json(self.storage, ACTIVE_SESSION_KEY, None)
        if raw.value is None:
            if raw.error is not None:
                self.clear()
            return None

        try:
            snapshot = SessionSnapshot.model_validate(raw.value)
        except ValidationError as e:
            logger.warning(f"Discarding malformed session snapshot: {e.error_count()} errors")
            self.clear()
            return None

        if self.is_expired(snapshot):
            logger.info(f"Discarding stale session snapshot from {snapshot.captured_at}")
            self.clear()
            return None

        return snapshot

    def is_expired(self, snapshot: SessionSnapshot) -> bool:
        if snapshot.captured_at is None:
            return True
        return self.clock.now() - snapshot.captured_at > self.expiry

    def clear(self) -> StorageResult[None]:
        return remove_key(self.storage, ACTIVE_SESSION_KEY)

    def has_active(self) -> bool:
        return self.load() is not None

    def age_minutes(self) -> int | None:
        """Minutes since the active snapshot was captured."""
        snapshot = self.load()
        if snapshot is None or snapshot.captured_at is None:
            return None
        return int((self.clock.now() - snapshot.captured_at).total_seconds() // 60)

    def describe(self, snapshot: SessionSnapshot) -> dict[str, str]:
        """Title, progress and age strings for a resume prompt."""
        age = self._format_age(snapshot.captured_at)
        label = "Review" if snapshot.mode == SessionMode.REVIEW else "Lesson"
        title = f"{label}: {snapshot.lesson_title or snapshot.lesson_id}"
        progress = f"Word {snapshot.current_index + 1}/{len(snapshot.items)}"
        return {"title": title, "progress": progress, "age": age}

    def _format_age(self, captured_at: datetime | None) -> str:
        if captured_at is None:
            return "unknown"
        minutes = int((self.clock.now() - captured_at).total_seconds() // 60)
        if minutes < 60:
            return f"{minutes} min ago"
        if minutes < 1440:
            return f"{minutes // 60} h ago"
        return f"{minutes // 1440} d ago"
