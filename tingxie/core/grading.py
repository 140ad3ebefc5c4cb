"""
Scoring rules for a completed practice item.

Maps the learner's performance (mistakes, hint, reveal) onto an SM-2
quality grade, and derives XP and the level curve from it.
"""

from __future__ import annotations

import math

BASE_XP = 10
PERFECT_BONUS_XP = 10
STREAK_BONUS_XP = 5


def quality_from_attempt(mistake_count: int, hint_used: bool, revealed: bool) -> int:
    """
    Quality grade (0-5) for one completed item.

    Reveal outranks hint, which outranks the mistake count.
    """
    if revealed:
        return 1
    if hint_used:
        return 2
    if mistake_count == 0:
        return 5
    if mistake_count <= 2:
        return 4
    return 3


def xp_for_completion(quality: int, session_streak: int) -> int:
    """XP earned for one item given the current in-session streak."""
    xp = BASE_XP
    if quality == 5:
        xp += PERFECT_BONUS_XP
    if session_streak >= 3:
        xp += STREAK_BONUS_XP
    if session_streak >= 5:
        xp += STREAK_BONUS_XP
    return xp


# =============================================================================
# Level Curve
# =============================================================================


def level_for_xp(total_xp: int) -> int:
    """level = floor(sqrt(xp / 100)) + 1"""
    return math.isqrt(max(0, total_xp) // 100) + 1


def xp_for_next_level(total_xp: int) -> int:
    level = level_for_xp(total_xp)
    return level * level * 100


def level_progress(total_xp: int) -> float:
    """Fraction (0-1) of the way from the current level to the next."""
    level = level_for_xp(total_xp)
    floor_xp = (level - 1) * (level - 1) * 100
    ceiling_xp = level * level * 100
    return (total_xp - floor_xp) / (ceiling_xp - floor_xp)
