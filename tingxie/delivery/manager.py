"""
Data Manager: the single context object wiring the Tingxie engine.

Owns the item store, progress store, composer, persistence gateway and
session snapshot store. Consumers receive the manager explicitly; there
is no module-level state.

Lifecycle:
    manager = DataManager.create(settings)
    manager.init()        # load persisted state
    ...                   # compose sessions, complete items
    manager.teardown()    # flush and release
"""

from __future__ import annotations

import random
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from loguru import logger

from ..config import Settings, get_settings
from ..core.achievements import Achievement
from ..core.clock import Clock, SystemClock
from ..core.grading import level_for_xp, quality_from_attempt, xp_for_completion
from ..core.lessons import Lesson, characters_in, find_lesson
from ..core.models import AttemptLog, SessionMode, SessionResult
from ..core.srs import PASSING_QUALITY
from .persistence import PersistenceGateway, SaveScheduler
from .progress_store import PlayerProgressStore
from .scheduler import SessionComposer
from .session import PracticeSession, SessionStats
from .session_store import SessionSnapshotStore
from .state_store import ItemStateStore
from .storage import KeyValueStorage, MemoryStorage, SQLiteStorage, StorageError, StorageResult


@dataclass
class CompletionResult:
    """Everything that changed when one item was completed."""

    term: str
    quality: int
    xp_earned: int
    is_success: bool
    mistake_count: int
    hint_used: bool
    learned_now: bool = False
    perfect_now: bool = False
    leveled_up: bool = False
    new_achievements: list[Achievement] = field(default_factory=list)


class DataManager:
    """Coordinates all learner-state operations."""

    def __init__(
        self,
        storage: KeyValueStorage,
        lessons: list[Lesson],
        clock: Clock | None = None,
        scheduler: SaveScheduler | None = None,
        rng: random.Random | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.storage = storage
        self.lessons = lessons

        self.gateway = PersistenceGateway(
            storage,
            scheduler=scheduler,
            debounce_seconds=self.settings.save_debounce_seconds,
            attempt_log_limit=self.settings.attempt_log_limit,
        )
        self.items = ItemStateStore(clock=self.clock, on_change=self.save)
        self.progress = PlayerProgressStore(clock=self.clock, on_change=self.save)
        self.composer = SessionComposer(
            self.items,
            lessons=lessons,
            rng=rng,
            fallback_size=self.settings.fallback_session_size,
        )
        self.snapshots = SessionSnapshotStore(
            storage,
            clock=self.clock,
            expiry_hours=self.settings.session_max_age_hours,
        )
        self._initialized = False
        self.open_error: StorageError | None = None
        self._batch_depth = 0
        self._batch_dirty = False

    @classmethod
    def create(cls, lessons: list[Lesson], settings: Settings | None = None) -> DataManager:
        """
        Manager backed by the on-disk SQLite store from settings.

        If the store cannot be opened the manager runs on memory storage
        and ``init()`` reports the open error.
        """
        settings = settings or get_settings()
        try:
            storage: KeyValueStorage = SQLiteStorage(settings.db_path)
        except StorageError as e:
            logger.warning(f"Storage unavailable, continuing in memory: {e}")
            manager = cls(MemoryStorage(), lessons, settings=settings)
            manager.open_error = e
            return manager
        return cls(storage, lessons, settings=settings)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self) -> StorageResult[None]:
        """
        Load persisted state and seed defaults for every lesson term.

        Returns:
            The load error, if storage was unavailable or corrupt
        """
        result = self.gateway.load()
        loaded = result.value

        self.items.init(loaded.item_states)
        self.items.ensure_terms(term for lesson in self.lessons for term in lesson.terms)
        self.progress.init(loaded.progress)
        self._initialized = True

        logger.info(
            f"DataManager ready: {len(self.items)} items, "
            f"{self.progress.progress.total_xp} XP, streak {self.progress.progress.daily_streak}"
        )
        return StorageResult(error=self.open_error or result.error)

    def teardown(self) -> StorageResult[None]:
        """Force a final save and release in-memory state."""
        result = self.save_sync()
        self.items.teardown()
        self.progress.teardown()
        self._initialized = False
        close = getattr(self.storage, "close", None)
        if callable(close):
            close()
        return result

    def save(self) -> None:
        """Debounced save of items and progress (held back inside ``batched_save``)."""
        if self._batch_depth:
            self._batch_dirty = True
            return
        self.gateway.save(self.items.states, self.progress.progress)

    @contextmanager
    def batched_save(self) -> Iterator[None]:
        """Coalesce every change made in the block into a single save."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if not self._batch_depth and self._batch_dirty:
                self._batch_dirty = False
                self.save()

    def save_sync(self) -> StorageResult[None]:
        return self.gateway.save_sync(self.items.states, self.progress.progress)

    # =========================================================================
    # Lessons
    # =========================================================================

    def get_lesson(self, lesson_id: int) -> Lesson | None:
        return find_lesson(self.lessons, lesson_id)

    def current_lesson(self) -> Lesson:
        """The learner's current lesson (first lesson if unknown)."""
        return self.get_lesson(self.progress.progress.current_lesson_id) or self.lessons[0]

    def lesson_progress(self) -> list[float]:
        return [self.composer.lesson_progress(lesson) for lesson in self.lessons]

    @property
    def total_words(self) -> int:
        return sum(len(lesson.phrases) for lesson in self.lessons)

    # =========================================================================
    # Sessions
    # =========================================================================

    def start_lesson_session(self, lesson_id: int, word_limit: int | None = None) -> PracticeSession:
        """Compose and checkpoint a due-driven session for one lesson."""
        lesson = self.get_lesson(lesson_id)
        if lesson is None:
            raise KeyError(f"Unknown lesson {lesson_id}")

        limit = self.settings.default_word_limit if word_limit is None else word_limit
        self.progress.set_current_lesson(lesson_id)
        session = PracticeSession(
            mode=SessionMode.LESSON,
            lesson_id=lesson.id,
            lesson_title=lesson.title,
            items=self.composer.compose_session(lesson, limit),
            started_at=self.clock.now(),
            word_limit=limit or 0,
        )
        self.checkpoint(session)
        return session

    def start_review_session(self, lesson_ids: list[int], word_limit: int | None = None) -> PracticeSession:
        """Compose and checkpoint a weakest-first session across lessons."""
        items = self.composer.compose_unmastered_across_lessons(lesson_ids)
        if word_limit and word_limit > 0:
            items = items[:word_limit]

        first = lesson_ids[0] if lesson_ids else self.progress.progress.current_lesson_id
        session = PracticeSession(
            mode=SessionMode.REVIEW,
            lesson_id=first,
            lesson_title=", ".join(str(i) for i in lesson_ids),
            items=items,
            started_at=self.clock.now(),
            word_limit=word_limit or 0,
        )
        self.checkpoint(session)
        return session

    def resume_session(self) -> PracticeSession | None:
        snapshot = self.snapshots.load()
        if snapshot is None:
            return None
        if snapshot.mode == SessionMode.LESSON:
            self.progress.set_current_lesson(snapshot.lesson_id)
        return PracticeSession.from_snapshot(snapshot)

    def checkpoint(self, session: PracticeSession) -> StorageResult[None]:
        return self.snapshots.save(session.to_snapshot())

    def discard_session(self) -> StorageResult[None]:
        return self.snapshots.clear()

    def complete_item(
        self,
        session: PracticeSession,
        mistake_count: int = 0,
        hint_used: bool = False,
        revealed: bool = False,
    ) -> CompletionResult:
        """
        Record completion of the session's current item.

        All updates happen here, synchronously: SRS, milestones, XP,
        character mastery, result log, checkpoint, achievements.
        """
        item = session.current_item
        if item is None:
            raise ValueError("Session has no current item")

        quality = quality_from_attempt(mistake_count, hint_used, revealed)
        is_success = quality >= PASSING_QUALITY
        old_level = level_for_xp(self.progress.progress.total_xp)

        with self.batched_save():
            self.items.get(item.term)
            outcome = self.items.update(item.term, quality)

            xp = xp_for_completion(quality, session.streak)
            self.progress.add_xp(xp)
            if outcome is not None:
                self.progress.record_milestones(outcome)
            for char in characters_in(item.term):
                self.progress.update_character_progress(char, is_success)

            session.record(
                SessionResult(
                    term=item.term,
                    correct=is_success,
                    mistake_count=mistake_count,
                    hint_used=hint_used,
                )
            )
            session.xp_earned += xp
            session.advance()
            self.checkpoint(session)

            new_achievements = self.check_achievements()

        return CompletionResult(
            term=item.term,
            quality=quality,
            xp_earned=xp,
            is_success=is_success,
            mistake_count=mistake_count,
            hint_used=hint_used,
            learned_now=bool(outcome and outcome.learned_now),
            perfect_now=bool(outcome and outcome.perfect_now),
            leveled_up=level_for_xp(self.progress.progress.total_xp) > old_level,
            new_achievements=new_achievements,
        )

    def finish_session(self, session: PracticeSession) -> tuple[SessionStats, list[Achievement]]:
        """
        Close a session: log the attempt, count today's practice,
        clear the snapshot and force a save.
        """
        stats = session.stats(self.clock.now())
        self.gateway.log_attempt(
            AttemptLog(
                timestamp=self.clock.now(),
                lesson_id=session.lesson_id,
                lesson_title=session.lesson_title,
                mode=session.mode,
                phrases=list(session.results),
                total_score=stats.correct_count,
                total_phrases=stats.total_phrases,
                duration_seconds=stats.duration_seconds,
            )
        )
        self.progress.record_practice_for_today()
        self.snapshots.clear()
        new_achievements = self.check_achievements()
        self.save_sync()

        logger.info(
            f"Session finished: {stats.correct_count}/{stats.total_phrases} correct "
            f"in {stats.duration_seconds}s"
        )
        return stats, new_achievements

    def check_achievements(self) -> list[Achievement]:
        return self.progress.check_achievements(
            lesson_progress=self.lesson_progress(),
            total_words=self.total_words,
        )
