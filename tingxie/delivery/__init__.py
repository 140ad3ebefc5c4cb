"""
Tingxie delivery layer: stateful stores, persistence and the terminal front end.

Components:
- ItemStateStore: Per-item SM-2 learning state
- PlayerProgressStore: XP, streak, achievements, character mastery
- SessionComposer: Due-first session selection and ordering
- PersistenceGateway: Debounced key-value persistence
- SessionSnapshotStore: Resumable session slot with 24h expiry
- DataManager: Context object wiring all of the above
"""

from .manager import CompletionResult, DataManager
from .persistence import LoadedState, ManualScheduler, PersistenceGateway, TimerScheduler
from .progress_store import PlayerProgressStore
from .scheduler import ComposedSession, SessionComposer
from .session import PracticeSession, SessionStats
from .session_store import SessionSnapshotStore
from .state_store import ItemStateStore
from .storage import MemoryStorage, SQLiteStorage, StorageError, StorageResult

__all__ = [
    # Stores
    "ItemStateStore",
    "PlayerProgressStore",
    # Persistence
    "PersistenceGateway",
    "LoadedState",
    "TimerScheduler",
    "ManualScheduler",
    "MemoryStorage",
    "SQLiteStorage",
    "StorageError",
    "StorageResult",
    "SessionSnapshotStore",
    # Sessions
    "SessionComposer",
    "ComposedSession",
    "PracticeSession",
    "SessionStats",
    # Coordination
    "DataManager",
    "CompletionResult",
]
