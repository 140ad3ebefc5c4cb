"""
Practice Session Composer.

Decides which items a session contains and in what order.

Single-lesson policy:
1. Due reviews first (is due and answered correctly before)
2. New items after (never answered correctly, always eligible)
3. Each group shuffled independently
4. Nothing to do -> the weakest items of the lesson
5. Optional word limit truncates the composed order

Cross-lesson review pools unmastered items from several lessons,
weakest first.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from loguru import logger

from ..core.lessons import Lesson, find_lesson
from ..core.models import MAX_MASTERY, PracticeItem
from .state_store import ItemStateStore

FALLBACK_SESSION_SIZE = 6


@dataclass
class ComposedSession:
    """A prepared, ordered practice list."""

    due_items: list[PracticeItem] = field(default_factory=list)
    new_items: list[PracticeItem] = field(default_factory=list)
    queue: list[PracticeItem] = field(default_factory=list)
    fallback: bool = False  # Queue holds weakest items because nothing was due

    @property
    def total_items(self) -> int:
        return len(self.queue)


class SessionComposer:
    """
    Builds practice sessions from lessons and current item states.

    Key principles:
    1. Overdue reviews are surfaced before fresh introductions
    2. A lesson with any items never yields an empty session
    3. The word limit caps exposure without reordering
    """

    def __init__(
        self,
        store: ItemStateStore,
        lessons: list[Lesson] | None = None,
        rng: random.Random | None = None,
        fallback_size: int = FALLBACK_SESSION_SIZE,
    ):
        """
        Initialize the composer.

        Args:
            store: Item states to select against
            lessons: All known lessons (for cross-lesson review)
            rng: Random source for shuffling (seed it for reproducible order)
            fallback_size: Weakest items offered when nothing is due
        """
        self.store = store
        self.lessons = lessons or []
        self.rng = rng or random.Random()
        self.fallback_size = fallback_size

    def build(self, lesson: Lesson, word_limit: int | None = None) -> ComposedSession:
        """
        Build a single-lesson session.

        Args:
            lesson: Lesson to practice
            word_limit: Maximum items (None or <= 0 for no limit)

        Returns:
            ComposedSession with the ordered queue
        """
        session = ComposedSession()
        items = lesson.practice_items()

        for item in items:
            state = self.store.get(item.term)
            if state.times_correct == 0:
                session.new_items.append(item)
            elif self.store.is_due(state):
                session.due_items.append(item)

        due = session.due_items.copy()
        new = session.new_items.copy()
        self.rng.shuffle(due)
        self.rng.shuffle(new)
        queue = due + new

        if not queue:
            # Stable sort keeps lesson order among equal scores
            queue = sorted(items, key=lambda i: self.store.get_score(i.term))[: self.fallback_size]
            session.fallback = True

        if word_limit and word_limit > 0:
            queue = queue[:word_limit]

        session.queue = queue

        logger.info(
            f"Session built for lesson {lesson.id}: {len(session.due_items)} due + "
            f"{len(session.new_items)} new -> {session.total_items} items"
            + (" (weakest fallback)" if session.fallback else "")
        )
        return session

    def compose_session(
        self,
        lesson: Lesson,
        word_limit: int | None = None,
    ) -> list[PracticeItem]:
        """Ordered items for one lesson (see ``build``)."""
        return self.build(lesson, word_limit).queue

    def compose_unmastered_across_lessons(self, lesson_ids: list[int]) -> list[PracticeItem]:
        """
        Pool items below full mastery from several lessons, weakest first.

        Unknown lesson ids are skipped. Ties keep lesson/phrase order.
        """
        pool: list[PracticeItem] = []
        for lesson_id in lesson_ids:
            lesson = find_lesson(self.lessons, lesson_id)
            if lesson is None:
                logger.debug(f"Skipping unknown lesson {lesson_id}")
                continue
            pool.extend(
                item for item in lesson.practice_items()
                if self.store.get_score(item.term) < MAX_MASTERY
            )

        pool.sort(key=lambda i: self.store.get_score(i.term))
        logger.info(f"Review pool from lessons {lesson_ids}: {len(pool)} unmastered items")
        return pool

    # =========================================================================
    # Progress
    # =========================================================================

    def lesson_progress(self, lesson: Lesson) -> float:
        """Fraction (0-1) of the maximum total score reached in a lesson."""
        if not lesson.phrases:
            return 0.0
        total = sum(self.store.get_score(term) for term in lesson.terms)
        return total / (len(lesson.phrases) * MAX_MASTERY)

    def due_percentage(self, lesson: Lesson) -> float:
        if not lesson.phrases:
            return 0.0
        return 100.0 * self.store.count_due(lesson.terms) / len(lesson.phrases)

    def mastery_percentage(self, lesson: Lesson) -> float:
        if not lesson.phrases:
            return 0.0
        return 100.0 * self.store.count_mastered(lesson.terms) / len(lesson.phrases)

    def get_queue_preview(
        self,
        lesson: Lesson,
        limit: int = 10,
    ) -> list[tuple[str, int, str]]:
        """
        Preview the next items of a lesson.

        Returns:
            List of (term, mastery_score, status) tuples
        """
        preview = []
        for item in self.compose_session(lesson, limit):
            state = self.store.get(item.term)
            if state.times_correct == 0:
                status = "new"
            elif self.store.is_due(state):
                status = "due"
            else:
                status = "weak"
            preview.append((item.term, state.mastery_score, status))
        return preview
