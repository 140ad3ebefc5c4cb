"""
Unit tests for the SM-2 review update.

Tests:
- Ease factor floor and formula
- Failure resets the interval and lowers the score
- Interval ladder 0 -> 1 -> 6 -> round(interval * ease)
- First-time learned/perfect milestones
"""

from datetime import date, timedelta

import pytest

from tingxie.core.models import ItemLearningState
from tingxie.core.srs import (
    SM2Scheduler,
    apply_review,
    is_due,
    normalize_quality,
    practice_priority,
)

TODAY = date(2025, 3, 10)


def make_state(**kwargs) -> ItemLearningState:
    return ItemLearningState(next_review_date=TODAY, **kwargs)


class TestEaseFactor:
    @pytest.mark.parametrize("quality", [0, 1, 2, 3, 4, 5])
    def test_ease_never_below_floor(self, quality):
        state = make_state(ease_factor=1.3)
        for _ in range(20):
            state = apply_review(state, quality, TODAY).state
            assert state.ease_factor >= 1.3

    def test_perfect_recall_nudges_ease_up(self):
        result = apply_review(make_state(ease_factor=2.5), 5, TODAY)
        assert result.state.ease_factor == pytest.approx(2.6)

    def test_quality_three_shrinks_ease(self):
        result = apply_review(make_state(ease_factor=2.5), 3, TODAY)
        assert result.state.ease_factor == pytest.approx(2.36)

    def test_input_state_is_not_mutated(self):
        state = make_state(mastery_score=2, interval=6)
        apply_review(state, 5, TODAY)
        assert state.mastery_score == 2
        assert state.interval == 6


class TestFailure:
    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_failure_resets_interval_and_does_not_raise_score(self, quality):
        state = make_state(mastery_score=3, interval=14)
        result = apply_review(state, quality, TODAY)

        assert result.state.interval == 0
        assert result.state.mastery_score <= 3
        assert result.state.times_mistaken == 1
        assert result.state.times_correct == 0
        assert not result.passed

    def test_failure_example(self):
        result = apply_review(make_state(mastery_score=3, interval=14), 2, TODAY)

        assert result.state.interval == 0
        assert result.state.mastery_score == 2
        assert result.state.next_review_date == TODAY

    def test_score_floor_is_zero(self):
        result = apply_review(make_state(mastery_score=0), 1, TODAY)
        assert result.state.mastery_score == 0


class TestIntervalGrowth:
    def test_first_pass_gives_one_day(self):
        result = apply_review(make_state(interval=0), 3, TODAY)
        assert result.state.interval == 1
        assert result.state.next_review_date == TODAY + timedelta(days=1)

    def test_second_pass_gives_six_days(self):
        result = apply_review(make_state(interval=1), 4, TODAY)
        assert result.state.interval == 6

    def test_example_scenario(self):
        state = make_state(mastery_score=2, interval=6, ease_factor=2.3)
        result = apply_review(state, 5, TODAY)

        assert result.state.ease_factor == pytest.approx(2.4)
        assert result.state.interval == 14
        assert result.state.mastery_score == 3
        assert result.state.next_review_date == TODAY + timedelta(days=14)

    def test_quality_three_passes_without_raising_score(self):
        result = apply_review(make_state(mastery_score=2, interval=1), 3, TODAY)
        assert result.state.mastery_score == 2
        assert result.state.times_correct == 1

    def test_long_intervals_stay_representable(self):
        state = make_state(interval=1, ease_factor=2.5)
        for _ in range(8):
            state = apply_review(state, 5, TODAY).state
        # Years out, still a valid date
        assert state.interval > 365 * 10
        assert state.next_review_date > TODAY

    def test_overflowing_schedule_saturates(self):
        state = make_state(interval=10**7, ease_factor=3.0)
        result = apply_review(state, 5, TODAY)
        assert result.state.interval > 10**7
        assert result.state.next_review_date == date.max


class TestScoreBounds:
    def test_score_clamped_over_long_history(self):
        state = make_state()
        for i in range(50):
            state = apply_review(state, 5 if i % 3 else 1, TODAY).state
            assert 0 <= state.mastery_score <= 5


class TestMilestones:
    def test_learned_counted_once(self):
        state = make_state(mastery_score=3, times_correct=2, interval=6)
        first = apply_review(state, 4, TODAY)
        assert first.learned_now
        assert first.state.learned_counted

        second = apply_review(first.state, 4, TODAY)
        assert not second.learned_now

    def test_perfect_counted_once(self):
        state = make_state(mastery_score=4, times_correct=5, interval=6)
        first = apply_review(state, 5, TODAY)
        assert first.perfect_now

        again = apply_review(first.state, 5, TODAY)
        assert not again.perfect_now

    def test_perfect_requires_quality_five(self):
        state = make_state(mastery_score=5, times_correct=5, interval=6)
        assert not apply_review(state, 4, TODAY).perfect_now


class TestQualityNormalization:
    def test_out_of_range_grades_are_clamped(self):
        assert normalize_quality(9) == 5
        assert normalize_quality(-3) == 0
        assert normalize_quality(4) == 4

    def test_clamped_grade_is_applied(self):
        result = apply_review(make_state(), 7, TODAY)
        assert result.quality == 5


class TestHelpers:
    def test_due_when_review_date_reached(self):
        assert is_due(make_state(), TODAY)
        assert is_due(ItemLearningState(next_review_date=TODAY - timedelta(days=3)), TODAY)

    def test_not_due_in_future(self):
        state = ItemLearningState(next_review_date=TODAY + timedelta(days=1))
        assert not is_due(state, TODAY)

    def test_priority_order(self):
        new = make_state()
        due = make_state(times_correct=1, mastery_score=2)
        later = ItemLearningState(next_review_date=TODAY + timedelta(days=3), times_correct=1)
        assert practice_priority(new, TODAY) == 0
        assert practice_priority(due, TODAY) == 3
        assert practice_priority(later, TODAY) == 100

    def test_custom_config(self):
        from tingxie.core.srs import SM2Config

        sm2 = SM2Scheduler(SM2Config(second_interval=4))
        result = sm2.apply_review(make_state(interval=1), 5, TODAY)
        assert result.state.interval == 4
