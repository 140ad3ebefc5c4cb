"""
Unit tests for PracticeSession.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from tingxie.core.models import PracticeItem, SessionMode, SessionResult, SessionSnapshot
from tingxie.delivery.session import PracticeSession

START = datetime(2025, 3, 10, 9, 0, 0)


def make_session(n=3):
    return PracticeSession(
        mode=SessionMode.LESSON,
        lesson_id=1,
        lesson_title="Family",
        items=[PracticeItem(term=f"词{i}", lesson_id=1) for i in range(n)],
        started_at=START,
    )


class TestPracticeSession:
    def test_walk_through(self):
        session = make_session(2)

        assert session.current_item.term == "词0"
        assert session.advance().term == "词1"
        assert session.advance() is None
        assert session.is_complete
        assert session.advance() is None
        assert session.current_index == 2

    def test_streak_resets_on_failure(self):
        session = make_session()
        session.record(SessionResult(term="词0", correct=True))
        session.record(SessionResult(term="词1", correct=True))
        assert session.streak == 2

        session.record(SessionResult(term="词2", correct=False, mistake_count=4))
        assert session.streak == 0

    def test_stats(self):
        session = make_session()
        session.record(SessionResult(term="词0", correct=True))
        session.record(SessionResult(term="词1", correct=False))
        session.record(SessionResult(term="词2", correct=True))

        stats = session.stats(START + timedelta(seconds=95))

        assert stats.correct_count == 2
        assert stats.total_phrases == 3
        assert stats.duration_seconds == 95
        assert stats.percentage == 67

    def test_empty_stats(self):
        assert make_session(0).stats(START).percentage == 0

    def test_snapshot_round_trip(self):
        session = make_session()
        session.record(SessionResult(term="词0", correct=True))
        session.advance()

        restored = PracticeSession.from_snapshot(session.to_snapshot())

        assert restored.current_index == 1
        assert restored.items == session.items
        assert restored.results == session.results
        assert restored.remaining == session.remaining

    def test_snapshot_index_clamped(self):
        snapshot = make_session(2).to_snapshot()
        snapshot.current_index = 9

        assert PracticeSession.from_snapshot(snapshot).is_complete

    def test_snapshot_rejects_aware_start(self):
        data = make_session(1).to_snapshot().model_dump(mode="json")
        data["started_at"] = "2025-03-10T09:00:00+08:00"

        with pytest.raises(ValidationError):
            SessionSnapshot.model_validate(data)
