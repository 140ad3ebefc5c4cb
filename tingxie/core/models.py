"""
Persisted data models for the Tingxie engine.

Everything that reaches storage is a pydantic model so that field
constraints double as the shape check applied to persisted JSON:
a record that fails validation is treated as malformed.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Constants
# =============================================================================

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
MAX_MASTERY = 5


class SessionMode(str, Enum):
    """Kind of practice session."""

    LESSON = "lesson"  # Due-driven single lesson
    REVIEW = "review"  # Weakest-first across several lessons


# =============================================================================
# Item State
# =============================================================================


class ItemLearningState(BaseModel):
    """SM-2 learning state for a single vocabulary item."""

    model_config = ConfigDict(extra="ignore")

    mastery_score: int = Field(default=0, ge=0, le=MAX_MASTERY)
    interval: int = Field(default=0, ge=0)
    next_review_date: date
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    times_correct: int = Field(default=0, ge=0)
    times_mistaken: int = Field(default=0, ge=0)

    # Per-word milestones are counted at most once
    learned_counted: bool = False
    perfect_counted: bool = False

    @classmethod
    def fresh(cls, today: date) -> ItemLearningState:
        """Default state for an item seen for the first time."""
        return cls(next_review_date=today)


class CharacterMasteryState(BaseModel):
    """Mastery track for a single character, independent of word state."""

    model_config = ConfigDict(extra="ignore")

    char: str
    level: int = Field(default=0, ge=0, le=MAX_MASTERY)
    next_review_date: date
    last_practiced_date: date | None = None
    stages_completed: int = Field(default=0, ge=0)


# =============================================================================
# Player Progress
# =============================================================================


class PlayerProgress(BaseModel):
    """Aggregate learner counters (one per device)."""

    model_config = ConfigDict(extra="ignore")

    total_xp: int = Field(default=0, ge=0)
    daily_streak: int = Field(default=0, ge=0)
    last_played_date: date | None = None
    words_learned_count: int = Field(default=0, ge=0)
    perfect_words_count: int = Field(default=0, ge=0)
    total_sessions: int = Field(default=0, ge=0)
    unlocked_achievement_ids: list[str] = Field(default_factory=list)
    current_lesson_id: int = 1
    chars_mastery: dict[str, CharacterMasteryState] = Field(default_factory=dict)


# =============================================================================
# Sessions
# =============================================================================


class PracticeItem(BaseModel):
    """An item scheduled for practice, referenced by its term."""

    term: str
    pinyin: str = ""
    level: int = 1
    lesson_id: int


class SessionResult(BaseModel):
    """Outcome of one item within a session."""

    term: str
    correct: bool
    mistake_count: int = Field(default=0, ge=0)
    hint_used: bool = False


class SessionSnapshot(BaseModel):
    """Resumable mirror of an in-progress practice session."""

    mode: SessionMode
    lesson_id: int
    lesson_title: str = ""
    items: list[PracticeItem]
    current_index: int = Field(default=0, ge=0)
    word_limit: int = Field(default=0, ge=0)
    started_at: datetime
    results: list[SessionResult] = Field(default_factory=list)
    captured_at: datetime | None = None

    @field_validator("started_at", "captured_at")
    @classmethod
    def _require_naive(cls, value: datetime | None) -> datetime | None:
        # Clocks produce local naive times; aware values cannot be compared
        if value is not None and value.tzinfo is not None:
            raise ValueError("timestamp must not carry a timezone")
        return value


class AttemptLog(BaseModel):
    """Summary of one finished session."""

    timestamp: datetime
    lesson_id: int
    lesson_title: str = ""
    mode: SessionMode = SessionMode.LESSON
    phrases: list[SessionResult] = Field(default_factory=list)
    total_score: int = 0
    total_phrases: int = 0
    duration_seconds: int = 0
