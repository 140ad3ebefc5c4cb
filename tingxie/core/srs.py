"""
SM-2 Spaced Repetition Algorithm.

Quality Grade Scale (as produced by the practice front end):
5 - Correct, no mistakes
4 - Correct, one or two mistakes
3 - Correct, with significant difficulty
2 - Hint used (counts as a failure)
1 - Answer revealed
0 - Complete blackout (not produced by the front end, accepted)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from loguru import logger

from .clock import add_days
from .models import DEFAULT_EASE_FACTOR, MAX_MASTERY, MIN_EASE_FACTOR, ItemLearningState

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass
class SM2Config:
    """Configuration for the SM-2 algorithm."""

    initial_easiness: float = DEFAULT_EASE_FACTOR
    minimum_easiness: float = MIN_EASE_FACTOR
    first_interval: int = 1  # Days after the first successful review
    second_interval: int = 6  # Days after the second successful review
    learned_score: int = 4
    learned_times_correct: int = 3


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of applying one review to an item."""

    state: ItemLearningState
    quality: int
    learned_now: bool = False  # Crossed the "learned" threshold for the first time
    perfect_now: bool = False  # Reached a perfect score for the first time

    @property
    def passed(self) -> bool:
        return self.quality >= PASSING_QUALITY


def normalize_quality(quality: int) -> int:
    """
    Coerce a quality grade onto the canonical 0-5 scale.

    Out-of-range values are clamped rather than rejected.
    """
    value = int(quality)
    clamped = min(MAX_QUALITY, max(MIN_QUALITY, value))
    if clamped != value:
        logger.warning(f"Quality grade {value} out of range, clamped to {clamped}")
    return clamped


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SM2Scheduler:
    """
    Implements the SM-2 review update.

    Each item carries:
    - Ease factor: growth multiplier for the interval (2.5 default, min 1.3)
    - Interval: days until the next review
    - Mastery score: a 0-5 proxy for how well the item is known
    """

    def __init__(self, config: SM2Config | None = None):
        self.config = config or SM2Config()

    def next_ease(self, ease: float, quality: int) -> float:
        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        penalty = MAX_QUALITY - quality
        delta = 0.1 - penalty * (0.08 + penalty * 0.02)
        return max(self.config.minimum_easiness, ease + delta)

    def next_interval(self, interval: int, ease: float) -> int:
        if interval == 0:
            return self.config.first_interval
        if interval == 1:
            return self.config.second_interval
        return _round_half_up(interval * ease)

    def apply_review(
        self,
        state: ItemLearningState,
        quality: int,
        today: date,
    ) -> ReviewOutcome:
        """
        Compute the state after one review.

        The input state is left untouched.

        Args:
            state: Current learning state of the item
            quality: Quality grade (clamped to 0-5)
            today: Calendar day the review happened on

        Returns:
            ReviewOutcome with the new state and first-time milestone flags
        """
        q = normalize_quality(quality)
        new = state.model_copy()
        new.ease_factor = self.next_ease(state.ease_factor, q)

        learned_now = False
        perfect_now = False

        if q < PASSING_QUALITY:
            new.interval = 0
            new.mastery_score = max(0, state.mastery_score - 1)
            new.times_mistaken = state.times_mistaken + 1
        else:
            new.interval = self.next_interval(state.interval, new.ease_factor)
            if q >= 4:
                new.mastery_score = min(MAX_MASTERY, state.mastery_score + 1)
            new.times_correct = state.times_correct + 1

            if (
                new.mastery_score >= self.config.learned_score
                and new.times_correct >= self.config.learned_times_correct
                and not new.learned_counted
            ):
                new.learned_counted = True
                learned_now = True

            if q == MAX_QUALITY and new.mastery_score == MAX_MASTERY and not new.perfect_counted:
                new.perfect_counted = True
                perfect_now = True

        new.next_review_date = add_days(today, new.interval)

        return ReviewOutcome(
            state=new,
            quality=q,
            learned_now=learned_now,
            perfect_now=perfect_now,
        )


_default_scheduler = SM2Scheduler()


def apply_review(state: ItemLearningState, quality: int, today: date) -> ReviewOutcome:
    """Apply a review with the default SM-2 configuration."""
    return _default_scheduler.apply_review(state, quality, today)


def is_due(state: ItemLearningState, today: date) -> bool:
    """Whether the item's scheduled review day has arrived."""
    return state.next_review_date <= today


def is_mastered(state: ItemLearningState) -> bool:
    return state.mastery_score >= MAX_MASTERY


def practice_priority(state: ItemLearningState, today: date) -> int:
    """Priority for practice (lower = sooner): new, then due by score, then the rest."""
    if state.times_correct == 0:
        return 0
    if is_due(state, today):
        return state.mastery_score + 1
    return 100
