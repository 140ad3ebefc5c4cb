"""
In-progress practice session state.

A PracticeSession is ephemeral: it lives while the learner practices and
is mirrored to a SessionSnapshot at every checkpoint so it can be
resumed later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..core.models import PracticeItem, SessionMode, SessionResult, SessionSnapshot


@dataclass
class SessionStats:
    """End-of-session summary."""

    words_completed: int
    correct_count: int
    total_phrases: int
    duration_seconds: int
    percentage: int


@dataclass
class PracticeSession:
    """Ordered items plus progress through them."""

    mode: SessionMode
    lesson_id: int
    items: list[PracticeItem]
    started_at: datetime
    lesson_title: str = ""
    word_limit: int = 0
    current_index: int = 0
    results: list[SessionResult] = field(default_factory=list)
    streak: int = 0  # Consecutive passes in this session
    xp_earned: int = 0

    @property
    def is_complete(self) -> bool:
        return self.current_index >= len(self.items)

    @property
    def current_item(self) -> PracticeItem | None:
        if self.is_complete:
            return None
        return self.items[self.current_index]

    @property
    def remaining(self) -> list[PracticeItem]:
        return self.items[self.current_index:]

    def record(self, result: SessionResult) -> None:
        self.results.append(result)
        self.streak = self.streak + 1 if result.correct else 0

    def advance(self) -> PracticeItem | None:
        """Move to the next item and return it (None when finished)."""
        if not self.is_complete:
            self.current_index += 1
        return self.current_item

    def stats(self, now: datetime) -> SessionStats:
        correct = sum(1 for r in self.results if r.correct)
        total = len(self.results)
        return SessionStats(
            words_completed=total,
            correct_count=correct,
            total_phrases=total,
            duration_seconds=max(0, int((now - self.started_at).total_seconds())),
            percentage=round(correct * 100 / total) if total else 0,
        )

    # =========================================================================
    # Snapshot Conversion
    # =========================================================================

    def to_snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            mode=self.mode,
            lesson_id=self.lesson_id,
            lesson_title=self.lesson_title,
            items=list(self.items),
            current_index=self.current_index,
            word_limit=self.word_limit,
            started_at=self.started_at,
            results=list(self.results),
        )

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> PracticeSession:
        return cls(
            mode=snapshot.mode,
            lesson_id=snapshot.lesson_id,
            lesson_title=snapshot.lesson_title,
            items=list(snapshot.items),
            started_at=snapshot.started_at,
            word_limit=snapshot.word_limit,
            current_index=min(snapshot.current_index, len(snapshot.items)),
            results=list(snapshot.results),
        )
