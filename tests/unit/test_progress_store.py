"""
Unit tests for PlayerProgressStore.

Tests:
- XP accumulation and level helpers
- Daily streak maintenance across days
- Per-character mastery schedule
- Milestone counting and append-only achievements
"""

from datetime import date, timedelta

import pytest

from tingxie.core.models import ItemLearningState, PlayerProgress
from tingxie.core.srs import ReviewOutcome
from tingxie.delivery.progress_store import CHARACTER_REVIEW_GAPS, PlayerProgressStore


@pytest.fixture
def store(clock):
    s = PlayerProgressStore(clock=clock)
    s.init()
    return s


class TestXp:
    def test_add_xp_returns_total(self, store):
        assert store.add_xp(30) == 30
        assert store.add_xp(80) == 110
        assert store.level == 2
        assert store.xp_for_next_level == 400

    def test_negative_xp_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_xp(-1)
        assert store.progress.total_xp == 0

    def test_changes_notify(self, clock):
        calls = []
        store = PlayerProgressStore(clock=clock, on_change=lambda: calls.append(1))
        store.init()
        store.add_xp(5)
        store.set_current_lesson(2)
        assert len(calls) == 2


class TestDailyStreak:
    def test_first_practice_starts_streak(self, store, clock):
        assert store.record_practice_for_today()
        assert store.progress.daily_streak == 1
        assert store.progress.total_sessions == 1
        assert store.progress.last_played_date == clock.today()

    def test_counted_once_per_day(self, store):
        assert store.record_practice_for_today()
        assert not store.record_practice_for_today()
        assert store.progress.daily_streak == 1
        assert store.progress.total_sessions == 1

    def test_consecutive_days_extend_streak(self, store, clock):
        for _ in range(3):
            store.record_practice_for_today()
            clock.advance(days=1)
        assert store.progress.daily_streak == 3

    def test_gap_resets_streak(self, store, clock):
        store.record_practice_for_today()
        clock.advance(days=1)
        store.record_practice_for_today()
        clock.advance(days=2)

        store.record_practice_for_today()

        assert store.progress.daily_streak == 1
        assert store.progress.total_sessions == 3

    @pytest.mark.parametrize("days_ago,expected", [(0, 4), (1, 4), (2, 0), (30, 0)])
    def test_streak_settled_on_load(self, clock, days_ago, expected):
        store = PlayerProgressStore(clock=clock)
        store.init(PlayerProgress(daily_streak=4, last_played_date=clock.today() - timedelta(days=days_ago)))
        assert store.progress.daily_streak == expected


class TestCharacterMastery:
    def test_success_climbs_the_gap_ladder(self, store, clock):
        today = clock.today()
        for level in range(1, 6):
            state = store.update_character_progress("爸", True)
            assert state.level == level
            assert state.next_review_date == today + timedelta(days=CHARACTER_REVIEW_GAPS[level])
        assert store.update_character_progress("爸", True).level == 5

    def test_failure_decrements_and_is_due_today(self, store, clock):
        store.update_character_progress("妈", True)
        store.update_character_progress("妈", True)

        state = store.update_character_progress("妈", False)

        assert state.level == 1
        assert state.next_review_date == clock.today()
        assert state.last_practiced_date == clock.today()

    def test_level_floor(self, store):
        assert store.update_character_progress("哥", False).level == 0

    def test_stages(self, store):
        store.complete_character_stage("姐")
        assert store.complete_character_stage("姐") == 2


class TestMilestonesAndAchievements:
    def outcome(self, learned=False, perfect=False):
        return ReviewOutcome(
            state=ItemLearningState(next_review_date=date(2025, 3, 10)),
            quality=5,
            learned_now=learned,
            perfect_now=perfect,
        )

    def test_milestones_counted(self, store):
        store.record_milestones(self.outcome(learned=True))
        store.record_milestones(self.outcome(learned=True, perfect=True))
        store.record_milestones(self.outcome())

        assert store.progress.words_learned_count == 2
        assert store.progress.perfect_words_count == 1

    def test_achievements_unlock_once(self, store):
        store.record_practice_for_today()

        first = store.check_achievements()
        second = store.check_achievements()

        assert [a.id for a in first] == ["first_word"]
        assert second == []

    def test_achievements_never_revoked(self, store, clock):
        store.progress.daily_streak = 3
        assert "streak_3" in [a.id for a in store.check_achievements()]

        store.progress.daily_streak = 0
        store.check_achievements()

        assert "streak_3" in store.progress.unlocked_achievement_ids
        status = {s.achievement.id: s.unlocked for s in store.achievements_with_status()}
        assert status["streak_3"]
        assert not status["streak_30"]
