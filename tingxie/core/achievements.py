"""
Achievement definitions.

Each achievement is a predicate over an AchievementContext. Unlocking is
append-only: once an id is in the learner's unlocked list it is never
revoked, even if the predicate later turns false.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .grading import level_for_xp
from .models import PlayerProgress

LESSON_COMPLETE_THRESHOLD = 0.8


@dataclass
class AchievementContext:
    """Everything an achievement predicate may look at."""

    progress: PlayerProgress
    lesson_progress: list[float] = field(default_factory=list)
    total_words: int = 0


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    check: Callable[[AchievementContext], bool]


@dataclass(frozen=True)
class AchievementStatus:
    achievement: Achievement
    unlocked: bool


def _learned_all(ctx: AchievementContext) -> bool:
    return ctx.total_words > 0 and ctx.progress.words_learned_count >= ctx.total_words


ACHIEVEMENTS: list[Achievement] = [
    Achievement("first_word", "First Step", "Finish your first session", "🎯",
                lambda ctx: ctx.progress.total_sessions >= 1),
    Achievement("streak_3", "Three in a Row", "Practice three days in a row", "🔥",
                lambda ctx: ctx.progress.daily_streak >= 3),
    Achievement("streak_7", "Week Warrior", "Practice seven days in a row", "⚔️",
                lambda ctx: ctx.progress.daily_streak >= 7),
    Achievement("streak_30", "Monthly Master", "Practice thirty days in a row", "👑",
                lambda ctx: ctx.progress.daily_streak >= 30),
    Achievement("level_5", "Beginner", "Reach level 5", "🥉",
                lambda ctx: level_for_xp(ctx.progress.total_xp) >= 5),
    Achievement("level_10", "Learner", "Reach level 10", "🥈",
                lambda ctx: level_for_xp(ctx.progress.total_xp) >= 10),
    Achievement("learned_10", "Word Novice", "Learn 10 words", "📚",
                lambda ctx: ctx.progress.words_learned_count >= 10),
    Achievement("learned_50", "Word Expert", "Learn 50 words", "📖",
                lambda ctx: ctx.progress.words_learned_count >= 50),
    Achievement("learned_all", "Word Master", "Learn every word", "🏆", _learned_all),
    Achievement("perfect_10", "Perfectionist", "Perfect 10 words", "💎",
                lambda ctx: ctx.progress.perfect_words_count >= 10),
    Achievement("xp_1000", "Thousand Club", "Earn 1000 XP", "🎮",
                lambda ctx: ctx.progress.total_xp >= 1000),
    Achievement("lesson_complete", "Lesson Done", "Reach 80% mastery in a lesson", "📝",
                lambda ctx: any(p >= LESSON_COMPLETE_THRESHOLD for p in ctx.lesson_progress)),
]


def check_achievements(
    context: AchievementContext,
    achievements: list[Achievement] | None = None,
) -> list[Achievement]:
    """
    Unlock every satisfied, still-locked achievement.

    Mutates ``context.progress.unlocked_achievement_ids``.

    Returns:
        Newly unlocked achievements, in definition order
    """
    unlocked = context.progress.unlocked_achievement_ids
    newly: list[Achievement] = []

    for achievement in achievements or ACHIEVEMENTS:
        if achievement.id not in unlocked and achievement.check(context):
            unlocked.append(achievement.id)
            newly.append(achievement)

    return newly


def achievements_with_status(
    progress: PlayerProgress,
    achievements: list[Achievement] | None = None,
) -> list[AchievementStatus]:
    unlocked = set(progress.unlocked_achievement_ids)
    return [
        AchievementStatus(achievement=a, unlocked=a.id in unlocked)
        for a in achievements or ACHIEVEMENTS
    ]
