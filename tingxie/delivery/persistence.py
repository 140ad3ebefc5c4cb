"""
Persistence gateway for item states, player progress and attempt logs.

Writes are debounced: rapid successive ``save`` calls coalesce into one
write after a quiet period. ``save_sync`` cancels any pending write and
writes immediately; it is the path used on shutdown so the last update
is never lost.

Storage failures never propagate. Every call returns a StorageResult and
the engine keeps running on its in-memory state.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

from loguru import logger
from pydantic import ValidationError

from ..core.models import AttemptLog, CharacterMasteryState, ItemLearningState, PlayerProgress
from .storage import (
    KeyValueStorage,
    StorageError,
    StorageResult,
    read_json,
    remove_key,
    write_json,
    write_text,
)

# Storage keys
WORD_DATA_KEY = "word_data"
PLAYER_STATS_KEY = "player_stats"
ATTEMPT_LOG_KEY = "attempt_log"

SAVE_DEBOUNCE_SECONDS = 0.5
ATTEMPT_LOG_LIMIT = 100


# =============================================================================
# Save Schedulers
# =============================================================================


class SaveScheduler(Protocol):
    """Single-slot delayed callback."""

    def schedule(self, fn: Callable[[], object], delay: float) -> None: ...

    def cancel(self) -> None: ...


class TimerScheduler:
    """Runs the callback on a daemon ``threading.Timer``."""

    def __init__(self):
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def schedule(self, fn: Callable[[], object], delay: float) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(delay, fn)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()


class ManualScheduler:
    """
    Deterministic scheduler driven by ``advance``.

    Nothing runs until virtual time passes the scheduled delay.
    """

    def __init__(self):
        self.now = 0.0
        self._fn: Callable[[], object] | None = None
        self._due_at: float | None = None
        self.scheduled_count = 0

    def schedule(self, fn: Callable[[], object], delay: float) -> None:
        self._fn = fn
        self._due_at = self.now + delay
        self.scheduled_count += 1

    def cancel(self) -> None:
        self._fn = None
        self._due_at = None

    @property
    def pending(self) -> bool:
        return self._fn is not None

    def advance(self, seconds: float) -> None:
        self.now += seconds
        if self._fn is not None and self._due_at is not None and self.now >= self._due_at:
            self.run_pending()

    def run_pending(self) -> None:
        fn = self._fn
        self.cancel()
        if fn is not None:
            fn()


# =============================================================================
# Gateway
# =============================================================================


@dataclass
class LoadedState:
    """Item states and progress restored from storage."""

    item_states: dict[str, ItemLearningState] = field(default_factory=dict)
    progress: PlayerProgress = field(default_factory=PlayerProgress)
    dropped_items: int = 0


def _valid_characters(raw: object) -> dict[str, CharacterMasteryState]:
    """Character records that validate; malformed entries are dropped one by one."""
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Resetting malformed character mastery map")
        return {}

    valid = {}
    for char, entry in raw.items():
        try:
            valid[char] = CharacterMasteryState.model_validate(entry)
        except ValidationError:
            logger.warning(f"Dropped malformed mastery record for {char!r}")
    return valid


def merge_progress(saved: dict) -> PlayerProgress:
    """
    Overlay persisted progress on the defaults.

    Unknown keys are ignored; fields that fail validation fall back to
    their defaults instead of discarding the whole record.
    """
    merged = PlayerProgress().model_dump(mode="json")
    merged.update({k: v for k, v in saved.items() if k in PlayerProgress.model_fields})
    merged["chars_mastery"] = _valid_characters(merged.get("chars_mastery"))

    try:
        return PlayerProgress.model_validate(merged)
    except ValidationError as e:
        bad_fields = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning(f"Resetting malformed progress fields: {sorted(bad_fields)}")
        defaults = PlayerProgress().model_dump(mode="json")
        for name in bad_fields:
            merged[name] = defaults.get(name)
        return PlayerProgress.model_validate(merged)


class PersistenceGateway:
    """
    Durable storage for the learner's state.

    Usage:
        gateway = PersistenceGateway(SQLiteStorage())
        loaded = gateway.load().value
        gateway.save(states, progress)       # debounced
        gateway.save_sync(states, progress)  # on exit
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        scheduler: SaveScheduler | None = None,
        debounce_seconds: float = SAVE_DEBOUNCE_SECONDS,
        attempt_log_limit: int = ATTEMPT_LOG_LIMIT,
    ):
        self.storage = storage
        self.scheduler = scheduler or TimerScheduler()
        self.debounce_seconds = debounce_seconds
        self.attempt_log_limit = attempt_log_limit

        self._pending: dict[str, str] | None = None
        self._lock = threading.Lock()
        self.writes = 0

    # =========================================================================
    # Saving
    # =========================================================================

    @staticmethod
    def _serialize(
        item_states: dict[str, ItemLearningState],
        progress: PlayerProgress,
    ) -> dict[str, str]:
        # Encoded at call time so the timer thread never reads live objects
        words = {term: state.model_dump(mode="json") for term, state in item_states.items()}
        return {
            WORD_DATA_KEY: json.dumps(words, ensure_ascii=False),
            PLAYER_STATS_KEY: progress.model_dump_json(),
        }

    def _write(self, payload: dict[str, str]) -> StorageResult[None]:
        for key, text in payload.items():
            result = write_text(self.storage, key, text)
            if not result.ok:
                return result
        self.writes += 1
        logger.debug(f"Saved {', '.join(payload)}")
        return StorageResult()

    def _write_pending(self) -> StorageResult[None]:
        with self._lock:
            payload, self._pending = self._pending, None
            if payload is None:
                return StorageResult()
            return self._write(payload)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def save(
        self,
        item_states: dict[str, ItemLearningState],
        progress: PlayerProgress,
    ) -> None:
        """Schedule a write; later calls within the quiet period replace it."""
        payload = self._serialize(item_states, progress)
        with self._lock:
            self._pending = payload
        self.scheduler.cancel()
        self.scheduler.schedule(self._write_pending, self.debounce_seconds)

    def save_sync(
        self,
        item_states: dict[str, ItemLearningState],
        progress: PlayerProgress,
    ) -> StorageResult[None]:
        """Cancel any pending write and write now."""
        payload = self._serialize(item_states, progress)
        self.scheduler.cancel()
        with self._lock:
            self._pending = None
            return self._write(payload)

    def flush(self) -> StorageResult[None]:
        """Write the pending payload immediately, if there is one."""
        self.scheduler.cancel()
        return self._write_pending()

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self) -> StorageResult[LoadedState]:
        """
        Restore item states and progress.

        Always returns usable state: missing keys give empty/default data,
        corrupt values are reported in ``error`` and replaced by defaults.
        """
        loaded = LoadedState()
        error: StorageError | None = None

        words = read_json(self.storage, WORD_DATA_KEY, {})
        error = words.error
        raw_words = words.value if isinstance(words.value, dict) else {}
        if not isinstance(words.value, dict):
            error = error or StorageError(WORD_DATA_KEY, "read", "expected an object")

        for term, raw in raw_words.items():
            try:
                loaded.item_states[term] = ItemLearningState.model_validate(raw)
            except ValidationError:
                loaded.dropped_items += 1

        if loaded.dropped_items:
            logger.warning(f"Dropped {loaded.dropped_items} malformed item records")

        stats = read_json(self.storage, PLAYER_STATS_KEY, {})
        error = error or stats.error
        if isinstance(stats.value, dict):
            loaded.progress = merge_progress(stats.value)
        else:
            error = error or StorageError(PLAYER_STATS_KEY, "read", "expected an object")

        logger.info(f"Loaded {len(loaded.item_states)} item states")
        return StorageResult(value=loaded, error=error)

    # =========================================================================
    # Attempt Log
    # =========================================================================

    def get_attempt_logs(self) -> list[AttemptLog]:
        """Stored attempts, oldest first; malformed entries are skipped."""
        raw = read_json(self.storage, ATTEMPT_LOG_KEY, []).value
        if not isinstance(raw, list):
            return []

        logs = []
        for entry in raw:
            try:
                logs.append(AttemptLog.model_validate(entry))
            except ValidationError:
                continue
        return logs

    def log_attempt(self, attempt: AttemptLog) -> StorageResult[None]:
        """Append an attempt, keeping only the most recent ``attempt_log_limit``."""
        logs = self.get_attempt_logs()
        logs.append(attempt)
        logs = logs[-self.attempt_log_limit:]
        return write_json(
            self.storage,
            ATTEMPT_LOG_KEY,
            [log.model_dump(mode="json") for log in logs],
        )

    def clear_attempt_logs(self) -> StorageResult[None]:
        return remove_key(self.storage, ATTEMPT_LOG_KEY)
