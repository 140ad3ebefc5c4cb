"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tingxie.config import get_settings
from tingxie.delivery.cli import app

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

runner = CliRunner()


def run_cli_command(command: str, data_dir: Path, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m tingxie.delivery')
        data_dir: Directory for the state database
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m tingxie.delivery {command}"
    env = {**os.environ, "TINGXIE_DATA_DIR": str(data_dir)}

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the CLI at an empty state directory."""
    monkeypatch.setenv("TINGXIE_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, tmp_path):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help", tmp_path)

        assert code == 0, f"Help failed: {stderr}"
        assert "tingxie" in stdout.lower()
        assert "study" in stdout

    def test_study_help(self, tmp_path):
        code, stdout, stderr = run_cli_command("study --help", tmp_path)

        assert code == 0, f"Study help failed: {stderr}"


class TestCLIReadOnly:
    """Commands that only display state."""

    @pytest.mark.parametrize("command", ["stats", "lessons", "achievements", "history", "preview"])
    def test_command_runs(self, data_dir, command):
        result = runner.invoke(app, [command])

        assert result.exit_code == 0, result.output

    def test_stats_shows_level(self, data_dir):
        result = runner.invoke(app, ["stats"])
        assert "Level" in result.output

    def test_preview_unknown_lesson(self, data_dir):
        result = runner.invoke(app, ["preview", "--lesson", "999"])
        assert result.exit_code == 1

    def test_history_empty(self, data_dir):
        result = runner.invoke(app, ["history"])
        assert "No sessions recorded yet" in result.output


class TestCLIStudy:
    """Interactive practice driven through stdin."""

    def test_study_reveal_everything(self, data_dir):
        result = runner.invoke(app, ["study", "--lesson", "1", "--limit", "2", "--fresh"], input="!\n!\n")

        assert result.exit_code == 0, result.output
        assert "Session Complete" in result.output

        history = runner.invoke(app, ["history"])
        assert "No sessions recorded yet" not in history.output

    def test_study_unknown_lesson(self, data_dir):
        result = runner.invoke(app, ["study", "--lesson", "999", "--fresh"])
        assert result.exit_code == 1

    def test_review_runs(self, data_dir):
        result = runner.invoke(app, ["review", "--limit", "1"], input="!\n")

        assert result.exit_code == 0, result.output
        assert "Session Complete" in result.output


class TestCLIPausedSession:
    """A paused session is only dropped after confirmation."""

    def pause_lesson(self):
        # Second prompt hits end of input, which pauses the session
        result = runner.invoke(app, ["study", "--lesson", "1", "--limit", "2", "--fresh"], input="!\n")
        assert "Session paused" in result.output

    def test_review_keeps_paused_session_when_declined(self, data_dir):
        self.pause_lesson()

        result = runner.invoke(app, ["review", "--limit", "1"], input="n\n")

        assert result.exit_code == 0, result.output
        assert "Paused session kept" in result.output
        resumed = runner.invoke(app, ["study"], input="y\n!\n")
        assert "Paused session" in resumed.output
        assert "Session Complete" in resumed.output

    def test_review_replaces_paused_session_when_confirmed(self, data_dir):
        self.pause_lesson()

        result = runner.invoke(app, ["review", "--limit", "1"], input="y\n!\n")

        assert result.exit_code == 0, result.output
        assert "Session Complete" in result.output
        assert "Paused session" not in runner.invoke(app, ["study", "--limit", "1"], input="!\n").output

    def test_review_rejects_bad_ids(self, data_dir):
        assert runner.invoke(app, ["review", "--ids", "1,x"]).exit_code == 2


class TestCLIHistoryAndLessons:
    def test_history_since_filters(self, data_dir):
        runner.invoke(app, ["study", "--lesson", "1", "--limit", "1", "--fresh"], input="!\n")

        assert "Recent Sessions" in runner.invoke(app, ["history", "--since", "2000-01-01"]).output
        future = runner.invoke(app, ["history", "--since", "9999-01-01"])
        assert "No sessions recorded yet" in future.output

    def test_history_bad_since(self, data_dir):
        assert runner.invoke(app, ["history", "--since", "yesterday"]).exit_code == 2

    def test_lessons_lists_character_counts(self, data_dir):
        result = runner.invoke(app, ["lessons"])
        assert result.exit_code == 0
        assert "Chars" in result.output

    def test_stats_shows_last_played(self, data_dir):
        assert "never" in runner.invoke(app, ["stats"]).output


class TestCLIReset:
    def test_reset_with_yes(self, data_dir):
        runner.invoke(app, ["study", "--lesson", "1", "--limit", "1", "--fresh"], input="!\n")

        result = runner.invoke(app, ["reset", "--yes"])

        assert result.exit_code == 0, result.output
        assert "reset" in result.output.lower()
        assert "No sessions recorded yet" in runner.invoke(app, ["history"]).output


class TestCLIUnavailableStorage:
    """A data dir that cannot be created must not crash commands."""

    @pytest.fixture
    def blocked_dir(self, tmp_path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        monkeypatch.setenv("TINGXIE_DATA_DIR", str(blocker / "sub"))
        get_settings.cache_clear()
        yield blocker / "sub"
        get_settings.cache_clear()

    def test_stats_continues_in_memory(self, blocked_dir):
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0, result.output
        assert "starting fresh in memory" in result.output
        assert "Level" in result.output

    def test_study_continues_in_memory(self, blocked_dir):
        result = runner.invoke(app, ["study", "--lesson", "1", "--limit", "1", "--fresh"], input="!\n")

        assert result.exit_code == 0, result.output
        assert "Session Complete" in result.output

    def test_reset_reports_failure(self, blocked_dir):
        result = runner.invoke(app, ["reset", "--yes"])

        assert result.exit_code == 1
        assert "Could not open saved progress" in result.output
