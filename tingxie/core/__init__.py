"""
Pure scheduling logic: clock, models, SM-2, grading, lessons, achievements.
"""

from .achievements import ACHIEVEMENTS, Achievement, AchievementContext, check_achievements
from .clock import Clock, FixedClock, SystemClock, date_key, parse_date_key
from .grading import level_for_xp, quality_from_attempt, xp_for_completion
from .lessons import Lesson, LessonLoadError, Phrase, load_lessons
from .models import (
    AttemptLog,
    CharacterMasteryState,
    ItemLearningState,
    PlayerProgress,
    PracticeItem,
    SessionMode,
    SessionResult,
    SessionSnapshot,
)
from .srs import ReviewOutcome, SM2Config, SM2Scheduler, apply_review, is_due

__all__ = [
    # Time
    "Clock",
    "SystemClock",
    "FixedClock",
    "date_key",
    "parse_date_key",
    # Models
    "ItemLearningState",
    "CharacterMasteryState",
    "PlayerProgress",
    "PracticeItem",
    "SessionMode",
    "SessionResult",
    "SessionSnapshot",
    "AttemptLog",
    # Scheduling
    "SM2Config",
    "SM2Scheduler",
    "ReviewOutcome",
    "apply_review",
    "is_due",
    # Grading
    "quality_from_attempt",
    "xp_for_completion",
    "level_for_xp",
    # Content
    "Lesson",
    "Phrase",
    "LessonLoadError",
    "load_lessons",
    # Achievements
    "ACHIEVEMENTS",
    "Achievement",
    "AchievementContext",
    "check_achievements",
]
