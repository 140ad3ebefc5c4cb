"""
Player progress: XP, daily streak, sessions, achievements and
per-character mastery.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Callable

from loguru import logger

from ..core.achievements import (
    Achievement,
    AchievementContext,
    AchievementStatus,
    achievements_with_status,
    check_achievements,
)
from ..core.clock import Clock, SystemClock, add_days
from ..core.grading import level_for_xp, level_progress, xp_for_next_level
from ..core.models import MAX_MASTERY, CharacterMasteryState, PlayerProgress
from ..core.srs import ReviewOutcome

# Days until the next character review, indexed by the new level
CHARACTER_REVIEW_GAPS = [1, 2, 3, 5, 10, 20]


class PlayerProgressStore:
    """Holds the learner's PlayerProgress and applies every update to it."""

    def __init__(
        self,
        clock: Clock | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self.clock = clock or SystemClock()
        self.on_change = on_change
        self.progress = PlayerProgress()

    def init(self, progress: PlayerProgress | None = None) -> None:
        """Adopt loaded progress and settle the streak for today."""
        self.progress = progress or PlayerProgress()
        self.update_daily_streak()

    def teardown(self) -> None:
        self.progress = PlayerProgress()
        self.on_change = None

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    # =========================================================================
    # XP & Levels
    # =========================================================================

    def add_xp(self, amount: int) -> int:
        """
        Add XP.

        Returns:
            New XP total
        """
        if amount < 0:
            raise ValueError(f"XP amount must be non-negative, got {amount}")
        self.progress.total_xp += amount
        self._changed()
        return self.progress.total_xp

    @property
    def level(self) -> int:
        return level_for_xp(self.progress.total_xp)

    @property
    def xp_for_next_level(self) -> int:
        return xp_for_next_level(self.progress.total_xp)

    @property
    def level_progress(self) -> float:
        return level_progress(self.progress.total_xp)

    # =========================================================================
    # Streak & Sessions
    # =========================================================================

    def update_daily_streak(self) -> None:
        """Break the streak if the last practice was before yesterday."""
        today = self.clock.today()
        last = self.progress.last_played_date

        if last is None:
            self.progress.daily_streak = 0
        elif last != today and last != today - timedelta(days=1):
            logger.info(f"Daily streak of {self.progress.daily_streak} broken (last played {last})")
            self.progress.daily_streak = 0

    def record_practice_for_today(self) -> bool:
        """
        Count today's practice once.

        Returns:
            True if this is the first practice recorded today
        """
        today = self.clock.today()
        if self.progress.last_played_date == today:
            return False

        self.update_daily_streak()
        self.progress.daily_streak += 1
        self.progress.last_played_date = today
        self.progress.total_sessions += 1
        self._changed()
        return True

    def set_current_lesson(self, lesson_id: int) -> None:
        self.progress.current_lesson_id = lesson_id
        self._changed()

    # =========================================================================
    # Milestones & Achievements
    # =========================================================================

    def record_milestones(self, outcome: ReviewOutcome) -> None:
        """Count first-time per-word milestones reported by a review."""
        if outcome.learned_now:
            self.progress.words_learned_count += 1
        if outcome.perfect_now:
            self.progress.perfect_words_count += 1
        if outcome.learned_now or outcome.perfect_now:
            self._changed()

    def check_achievements(
        self,
        lesson_progress: list[float] | None = None,
        total_words: int = 0,
    ) -> list[Achievement]:
        """Unlock newly satisfied achievements (never revokes)."""
        context = AchievementContext(
            progress=self.progress,
            lesson_progress=lesson_progress or [],
            total_words=total_words,
        )
        newly = check_achievements(context)
        if newly:
            logger.info(f"Unlocked achievements: {[a.id for a in newly]}")
            self._changed()
        return newly

    def achievements_with_status(self) -> list[AchievementStatus]:
        return achievements_with_status(self.progress)

    # =========================================================================
    # Character Mastery
    # =========================================================================

    def get_character_state(self, char: str) -> CharacterMasteryState:
        state = self.progress.chars_mastery.get(char)
        if state is None:
            state = CharacterMasteryState(char=char, next_review_date=self.clock.today())
            self.progress.chars_mastery[char] = state
        return state

    def update_character_progress(self, char: str, success: bool) -> CharacterMasteryState:
        """
        Move a character one level up or down.

        Success schedules the next review by the gap for the new level;
        failure makes it due today.
        """
        state = self.get_character_state(char)
        today = self.clock.today()
        state.last_practiced_date = today

        if success:
            state.level = min(MAX_MASTERY, state.level + 1)
            state.next_review_date = add_days(today, CHARACTER_REVIEW_GAPS[state.level])
        else:
            state.level = max(0, state.level - 1)
            state.next_review_date = today

        self._changed()
        return state

    def complete_character_stage(self, char: str) -> int:
        """Count one finished practice stage for a character."""
        state = self.get_character_state(char)
        state.stages_completed += 1
        self._changed()
        return state.stages_completed
