"""
Item State Store for Tingxie.

In-memory map from item text to its SM-2 learning state. Durability is
delegated to the PersistenceGateway through an ``on_change`` callback,
which every mutation triggers.
"""

from __future__ import annotations

from typing import Callable, Iterable

from loguru import logger

from ..core.clock import Clock, SystemClock
from ..core.models import ItemLearningState
from ..core.srs import ReviewOutcome, SM2Scheduler, is_due, is_mastered


class ItemStateStore:
    """
    Per-item learning state.

    Handles:
    - Lazy creation of default state on first access
    - SM-2 updates via SM2Scheduler
    - Due/mastery queries for session composition and progress displays
    """

    def __init__(
        self,
        clock: Clock | None = None,
        sm2: SM2Scheduler | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        """
        Initialize the store.

        Args:
            clock: Source of "today" (system clock if None)
            sm2: SM-2 scheduler (default configuration if None)
            on_change: Called after every mutation, typically a debounced save
        """
        self.clock = clock or SystemClock()
        self.sm2 = sm2 or SM2Scheduler()
        self.on_change = on_change
        self._states: dict[str, ItemLearningState] = {}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self, states: dict[str, ItemLearningState] | None = None) -> None:
        """Replace the contents with previously loaded states."""
        self._states = dict(states or {})

    def teardown(self) -> None:
        self._states = {}
        self.on_change = None

    @property
    def states(self) -> dict[str, ItemLearningState]:
        """Live mapping of tracked items (do not mutate directly)."""
        return self._states

    def __contains__(self, term: str) -> bool:
        return term in self._states

    def __len__(self) -> int:
        return len(self._states)

    def ensure_terms(self, terms: Iterable[str]) -> int:
        """
        Create default state for every term not yet tracked.

        Returns:
            Number of states created
        """
        created = 0
        today = self.clock.today()
        for term in terms:
            if term not in self._states:
                self._states[term] = ItemLearningState.fresh(today)
                created += 1
        if created:
            logger.debug(f"Seeded {created} new item states")
        return created

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, term: str) -> ItemLearningState:
        """
        Get the state for an item, creating a default one if absent.

        The default is held in memory and persisted with the next save.
        """
        state = self._states.get(term)
        if state is None:
            state = ItemLearningState.fresh(self.clock.today())
            self._states[term] = state
        return state

    def get_score(self, term: str) -> int:
        return self.get(term).mastery_score

    def is_due(self, state: ItemLearningState) -> bool:
        return is_due(state, self.clock.today())

    def count_due(self, terms: Iterable[str] | None = None) -> int:
        """Count due items among ``terms`` (all tracked items if None)."""
        keys = self._states.keys() if terms is None else terms
        return sum(1 for term in keys if self.is_due(self.get(term)))

    def count_mastered(self, terms: Iterable[str] | None = None) -> int:
        keys = self._states.keys() if terms is None else terms
        return sum(1 for term in keys if is_mastered(self.get(term)))

    # =========================================================================
    # Updates
    # =========================================================================

    def update(self, term: str, quality: int) -> ReviewOutcome | None:
        """
        Apply one review to a tracked item.

        Args:
            term: The reviewed item
            quality: SM-2 quality grade (0-5)

        Returns:
            ReviewOutcome, or None if the item is not tracked
        """
        current = self._states.get(term)
        if current is None:
            logger.debug(f"Ignoring review for untracked item {term!r}")
            return None

        outcome = self.sm2.apply_review(current, quality, self.clock.today())
        self._states[term] = outcome.state

        logger.debug(
            f"Recorded review for {term}: quality={outcome.quality}, "
            f"next_review={outcome.state.next_review_date}, interval={outcome.state.interval}d"
        )

        if self.on_change:
            self.on_change()
        return outcome
