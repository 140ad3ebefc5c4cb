"""
Unit tests for quality grading, XP and the level curve.
"""

import pytest

from tingxie.core.grading import (
    level_for_xp,
    level_progress,
    quality_from_attempt,
    xp_for_completion,
    xp_for_next_level,
)


class TestQualityFromAttempt:
    @pytest.mark.parametrize(
        "mistakes,hint,revealed,expected",
        [
            (0, False, False, 5),
            (1, False, False, 4),
            (2, False, False, 4),
            (3, False, False, 3),
            (7, False, False, 3),
            (0, True, False, 2),
            (3, True, False, 2),
            (0, False, True, 1),
            (0, True, True, 1),
        ],
    )
    def test_grade(self, mistakes, hint, revealed, expected):
        assert quality_from_attempt(mistakes, hint, revealed) == expected


class TestXp:
    def test_base_and_perfect_bonus(self):
        assert xp_for_completion(4, 0) == 10
        assert xp_for_completion(5, 0) == 20

    def test_streak_bonuses_stack(self):
        assert xp_for_completion(4, 3) == 15
        assert xp_for_completion(5, 5) == 30


class TestLevels:
    @pytest.mark.parametrize(
        "xp,level",
        [(0, 1), (99, 1), (100, 2), (399, 2), (400, 3), (1600, 5), (8100, 10)],
    )
    def test_level_curve(self, xp, level):
        assert level_for_xp(xp) == level

    def test_next_level_threshold(self):
        assert xp_for_next_level(0) == 100
        assert xp_for_next_level(150) == 400

    def test_progress_fraction(self):
        assert level_progress(0) == 0
        assert level_progress(250) == pytest.approx(0.5)
