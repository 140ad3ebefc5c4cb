"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tingxie.config import Settings  # noqa: E402
from tingxie.core.clock import FixedClock  # noqa: E402
from tingxie.core.lessons import Lesson, Phrase  # noqa: E402
from tingxie.delivery.manager import DataManager  # noqa: E402
from tingxie.delivery.persistence import ManualScheduler  # noqa: E402
from tingxie.delivery.storage import MemoryStorage  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (use on-disk storage)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """A clock frozen at 2025-03-10 09:00."""
    return FixedClock(datetime(2025, 3, 10, 9, 0, 0))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, save_debounce_ms=500)


@pytest.fixture
def sample_lessons():
    """Two small lessons."""
    return [
        Lesson(
            id=1,
            title="Family",
            phrases=[
                Phrase("爸爸", "bà ba"),
                Phrase("妈妈", "mā ma"),
                Phrase("哥哥", "gē ge"),
                Phrase("姐姐", "jiě jie"),
                Phrase("弟弟", "dì di"),
                Phrase("妹妹", "mèi mei"),
                Phrase("家人", "jiā rén"),
                Phrase("朋友", "péng you"),
            ],
        ),
        Lesson(
            id=2,
            title="School",
            phrases=[
                Phrase("学校", "xué xiào"),
                Phrase("老师", "lǎo shī"),
                Phrase("同学", "tóng xué"),
            ],
        ),
    ]


@pytest.fixture
def manager(storage, sample_lessons, clock, scheduler, settings):
    """An initialized DataManager on in-memory storage."""
    dm = DataManager(
        storage,
        sample_lessons,
        clock=clock,
        scheduler=scheduler,
        rng=random.Random(7),
        settings=settings,
    )
    dm.init()
    return dm
