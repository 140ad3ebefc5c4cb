"""
Lesson content models and JSON loading.

A lessons file is a JSON list of lessons::

    [{"id": 1, "title": "...", "phrases": [{"term": "...", "pinyin": "..."}]}]
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .models import PracticeItem

CJK_PATTERN = re.compile(r"[\u4e00-\u9fa5]")

BUNDLED_LESSONS = Path(__file__).resolve().parent.parent / "data" / "lessons.json"


class LessonLoadError(Exception):
    """Raised when a lessons file is missing or malformed."""
    pass


@dataclass(frozen=True)
class Phrase:
    term: str
    pinyin: str = ""
    definition: str | None = None


@dataclass
class Lesson:
    """A numbered list of phrases to learn."""

    id: int
    title: str
    phrases: list[Phrase] = field(default_factory=list)
    category: str | None = None

    @property
    def terms(self) -> list[str]:
        return [p.term for p in self.phrases]

    def practice_items(self) -> list[PracticeItem]:
        """Phrases as practice items, three phrases per difficulty level."""
        return [
            PracticeItem(
                term=phrase.term,
                pinyin=phrase.pinyin,
                level=math.ceil((index + 1) / 3),
                lesson_id=self.id,
            )
            for index, phrase in enumerate(self.phrases)
        ]

    def characters(self) -> list[str]:
        """Unique CJK characters in first-seen order."""
        seen: dict[str, None] = {}
        for phrase in self.phrases:
            for char in phrase.term:
                if CJK_PATTERN.match(char):
                    seen.setdefault(char, None)
        return list(seen)


def characters_in(term: str) -> list[str]:
    """CJK characters of a term, in order, duplicates removed."""
    return list(dict.fromkeys(c for c in term if CJK_PATTERN.match(c)))


def find_lesson(lessons: list[Lesson], lesson_id: int) -> Lesson | None:
    return next((lesson for lesson in lessons if lesson.id == lesson_id), None)


def lessons_from_data(data: list[dict]) -> list[Lesson]:
    """Build lessons from decoded JSON."""
    if not isinstance(data, list):
        raise LessonLoadError("Lessons file must contain a JSON list")

    lessons = []
    try:
        for entry in data:
            phrases = [
                Phrase(
                    term=p["term"],
                    pinyin=p.get("pinyin", ""),
                    definition=p.get("definition"),
                )
                for p in entry.get("phrases", [])
            ]
            lessons.append(
                Lesson(
                    id=int(entry["id"]),
                    title=entry.get("title", f"Lesson {entry['id']}"),
                    phrases=phrases,
                    category=entry.get("category"),
                )
            )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise LessonLoadError(f"Malformed lesson entry: {e}") from e

    return lessons


def load_lessons(path: Path | None = None) -> list[Lesson]:
    """
    Load lessons from a JSON file.

    Args:
        path: Lessons file (defaults to the bundled sample lessons)

    Returns:
        Lessons in file order
    """
    path = path or BUNDLED_LESSONS
    if not path.exists():
        raise LessonLoadError(f"Lessons file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise LessonLoadError(f"Invalid JSON in {path}: {e}") from e

    lessons = lessons_from_data(data)
    logger.debug(f"Loaded {len(lessons)} lessons from {path}")
    return lessons
