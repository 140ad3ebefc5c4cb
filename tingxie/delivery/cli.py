"""
Tingxie: terminal front end for vocabulary drilling.

A Rich terminal interface over the spaced repetition engine.

Commands:
- tingxie study         - Practice one lesson (offers to resume)
- tingxie review        - Weakest-first review across lessons
- tingxie preview       - Show what the next session holds
- tingxie stats         - Show progress statistics
- tingxie achievements  - List achievements
- tingxie history       - Recent session attempts
- tingxie lessons       - List lessons with progress
- tingxie reset         - Clear all local progress
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ..config import get_settings
from ..core.clock import date_key, parse_date_key
from ..core.lessons import LessonLoadError, load_lessons
from .manager import CompletionResult, DataManager
from .persistence import ATTEMPT_LOG_KEY, PLAYER_STATS_KEY, WORD_DATA_KEY
from .session import PracticeSession, SessionStats
from .session_store import ACTIVE_SESSION_KEY
from .storage import SQLiteStorage, StorageError, remove_key

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="tingxie",
    help="Tingxie: spaced repetition vocabulary drills",
    no_args_is_help=True,
)
console = Console()

MAX_MISTAKES = 4  # Answer is revealed after this many wrong tries
HINT_KEY = "?"
REVEAL_KEY = "!"

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "status": {
        "new": "green",
        "due": "yellow",
        "weak": "magenta",
    },
}


def style_status(status: str) -> str:
    color = STYLES["status"].get(status, "white")
    return f"[{color}]{status}[/{color}]"


def _open_manager(lessons_path: Optional[Path] = None) -> DataManager:
    settings = get_settings()
    try:
        lessons = load_lessons(lessons_path or settings.lessons_path)
    except LessonLoadError as e:
        console.print(f"[red]Could not load lessons:[/red] {e}")
        raise typer.Exit(1)

    if not lessons:
        console.print("[red]No lessons found![/red]")
        raise typer.Exit(1)

    manager = DataManager.create(lessons, settings)
    result = manager.init()
    if not result.ok:
        console.print("[yellow]Saved progress could not be read; starting fresh in memory.[/yellow]")
    return manager


# =============================================================================
# Practice Loop
# =============================================================================


def _ask_item(manager: DataManager, session: PracticeSession) -> CompletionResult:
    """Prompt until the learner types the term (or gives up)."""
    item = session.current_item
    lesson = manager.get_lesson(item.lesson_id)
    phrase = next((p for p in lesson.phrases if p.term == item.term), None) if lesson else None

    header = f"Word {session.current_index + 1}/{len(session.items)}  |  Lesson {item.lesson_id}"
    content = f"[bold]{item.pinyin or '?'}[/bold]"
    if phrase and phrase.definition:
        content += f"\n[dim]{phrase.definition}[/dim]"
    console.print(Panel(content, title=header, title_align="left", border_style="cyan", padding=(1, 2)))

    mistakes = 0
    hint_used = False
    revealed = False

    while True:
        answer = Prompt.ask(f"Write it ([dim]{HINT_KEY} hint, {REVEAL_KEY} reveal[/dim])").strip()
        if answer == HINT_KEY:
            hint_used = True
            console.print(f"[yellow]Starts with:[/yellow] {item.term[0]}")
            continue
        if answer == REVEAL_KEY or (mistakes + 1 >= MAX_MISTAKES and answer != item.term):
            revealed = True
            console.print(f"[red]Answer:[/red] {item.term}")
            break
        if answer == item.term:
            break
        mistakes += 1
        console.print(f"[red]Not quite[/red] ({mistakes}/{MAX_MISTAKES})")

    return manager.complete_item(session, mistake_count=mistakes, hint_used=hint_used, revealed=revealed)


def _show_completion(result: CompletionResult) -> None:
    style = STYLES["correct"] if result.is_success else STYLES["incorrect"]
    verdict = "Correct!" if result.is_success else "Keep practicing"
    console.print(f"[{style}]{verdict}[/{style}]  +{result.xp_earned} XP  (quality {result.quality})")
    if result.leveled_up:
        console.print("[bold magenta]Level up![/bold magenta]")
    for achievement in result.new_achievements:
        console.print(f"{achievement.icon} [bold]Achievement unlocked:[/bold] {achievement.name}")


def _run_session(manager: DataManager, session: PracticeSession) -> None:
    if not session.items:
        console.print("\n[green]Nothing to practice here.[/green]")
        manager.discard_session()
        return

    try:
        while not session.is_complete:
            console.print()
            result = _ask_item(manager, session)
            _show_completion(result)
    except (KeyboardInterrupt, EOFError):
        manager.checkpoint(session)
        manager.save_sync()
        console.print("\n\n[yellow]Session paused. Run 'tingxie study' to resume.[/yellow]")
        return

    stats, achievements = manager.finish_session(session)
    for achievement in achievements:
        console.print(f"{achievement.icon} [bold]Achievement unlocked:[/bold] {achievement.name}")
    _display_session_summary(stats, session.xp_earned)


def _display_session_summary(stats: SessionStats, xp: int) -> None:
    console.print("\n")
    console.print(Panel(
        f"[bold]Session Complete![/bold]\n\n"
        f"Duration: {stats.duration_seconds / 60:.1f} minutes\n"
        f"Words: {stats.total_phrases}\n"
        f"Accuracy: {stats.percentage}%\n"
        f"XP earned: {xp}",
        title="Summary",
        border_style="green",
    ))


# =============================================================================
# Commands
# =============================================================================


@app.command()
def study(
    lesson_id: Optional[int] = typer.Option(
        None,
        "--lesson", "-l",
        help="Lesson to practice (defaults to the current lesson)",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-n",
        help="Maximum words in the session (0 = no limit)",
    ),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        help="Discard any paused session without asking",
    ),
    lessons_path: Optional[Path] = typer.Option(
        None,
        "--lessons",
        help="Lessons JSON file",
    ),
) -> None:
    """
    Practice one lesson.

    Due reviews come first, then new words. A paused session from the
    last 24 hours can be resumed.
    """
    manager = _open_manager(lessons_path)
    try:
        session = None
        snapshot = None if fresh else manager.snapshots.load()
        if snapshot is not None:
            info = manager.snapshots.describe(snapshot)
            console.print(f"\n[bold]Paused session:[/bold] {info['title']} - {info['progress']} ({info['age']})")
            if Confirm.ask("Resume it?", default=True):
                session = manager.resume_session()
        if session is None:
            manager.discard_session()
            target = lesson_id if lesson_id is not None else manager.current_lesson().id
            try:
                session = manager.start_lesson_session(target, limit)
            except KeyError:
                console.print(f"[red]Unknown lesson {target}[/red]")
                raise typer.Exit(1)

        console.print(f"\n[bold cyan]{session.lesson_title}[/bold cyan] - {len(session.remaining)} words")
        _run_session(manager, session)
    finally:
        manager.teardown()


@app.command()
def review(
    lesson_ids: str = typer.Option(
        "",
        "--ids", "-i",
        help="Comma-separated lesson ids (default: all lessons)",
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum words"),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        help="Discard any paused session without asking",
    ),
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """Review unmastered words across lessons, weakest first."""
    try:
        ids = [int(x) for x in lesson_ids.split(",") if x.strip()]
    except ValueError:
        raise typer.BadParameter(f"Expected comma-separated numbers, got {lesson_ids!r}", param_hint="--ids")

    manager = _open_manager(lessons_path)
    try:
        snapshot = None if fresh else manager.snapshots.load()
        if snapshot is not None:
            info = manager.snapshots.describe(snapshot)
            console.print(f"\n[bold]Paused session:[/bold] {info['title']} - {info['progress']} ({info['age']})")
            if not Confirm.ask("Discard it and start a review?", default=False):
                console.print("[yellow]Paused session kept. Run 'tingxie study' to resume.[/yellow]")
                return

        manager.discard_session()
        session = manager.start_review_session(ids or [lesson.id for lesson in manager.lessons], limit)
        console.print(f"\n[bold cyan]Review[/bold cyan] - {len(session.items)} unmastered words")
        _run_session(manager, session)
    finally:
        manager.teardown()


@app.command()
def preview(
    lesson_id: Optional[int] = typer.Option(None, "--lesson", "-l", help="Lesson to preview"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of words to preview"),
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """Preview the words the next session would contain."""
    manager = _open_manager(lessons_path)
    try:
        lesson = manager.get_lesson(lesson_id) if lesson_id is not None else manager.current_lesson()
        if lesson is None:
            console.print(f"[red]Unknown lesson {lesson_id}[/red]")
            raise typer.Exit(1)

        table = Table(title=f"Upcoming: {lesson.title}")
        table.add_column("Word")
        table.add_column("Score")
        table.add_column("Status")
        for term, score, status in manager.composer.get_queue_preview(lesson, limit):
            table.add_row(term, str(score), style_status(status))
        console.print(table)
    finally:
        manager.teardown()


@app.command()
def stats(
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """Show learning statistics and progress."""
    manager = _open_manager(lessons_path)
    try:
        progress = manager.progress.progress
        store = manager.progress

        console.print("\n[bold cyan]Learning Statistics[/bold cyan]")
        console.print("=" * 40)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="dim")
        table.add_column("Value", style="bold")
        table.add_row("Level", f"{store.level} ({progress.total_xp}/{store.xp_for_next_level} XP)")
        table.add_row("Daily streak", str(progress.daily_streak))
        last_played = date_key(progress.last_played_date) if progress.last_played_date else "never"
        table.add_row("Last played", last_played)
        table.add_row("Sessions", str(progress.total_sessions))
        table.add_row("Words learned", f"{progress.words_learned_count}/{manager.total_words}")
        table.add_row("Perfect words", str(progress.perfect_words_count))
        table.add_row("Words due today", str(manager.items.count_due()))
        table.add_row("Characters tracked", str(len(progress.chars_mastery)))
        console.print(table)
    finally:
        manager.teardown()


@app.command()
def lessons(
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """List lessons with mastery and due percentages."""
    manager = _open_manager(lessons_path)
    try:
        current = manager.progress.progress.current_lesson_id
        table = Table(title="Lessons")
        table.add_column("ID")
        table.add_column("Title")
        table.add_column("Words")
        table.add_column("Chars")
        table.add_column("Progress")
        table.add_column("Due")
        for lesson in manager.lessons:
            marker = " *" if lesson.id == current else ""
            table.add_row(
                f"{lesson.id}{marker}",
                lesson.title,
                str(len(lesson.phrases)),
                str(len(lesson.characters())),
                f"{manager.composer.lesson_progress(lesson) * 100:.0f}%",
                f"{manager.composer.due_percentage(lesson):.0f}%",
            )
        console.print(table)
    finally:
        manager.teardown()


@app.command()
def achievements(
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """List achievements and which are unlocked."""
    manager = _open_manager(lessons_path)
    try:
        table = Table(title="Achievements")
        table.add_column("")
        table.add_column("Name")
        table.add_column("Description")
        table.add_column("Unlocked")
        for status in manager.progress.achievements_with_status():
            a = status.achievement
            table.add_row(a.icon, a.name, a.description, "[green]yes[/green]" if status.unlocked else "[dim]no[/dim]")
        console.print(table)
    finally:
        manager.teardown()


@app.command()
def history(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of attempts to show"),
    since: Optional[str] = typer.Option(None, "--since", help="Only attempts on or after YYYY-MM-DD"),
    lessons_path: Optional[Path] = typer.Option(None, "--lessons", help="Lessons JSON file"),
) -> None:
    """Show recent session attempts."""
    try:
        since_day = parse_date_key(since) if since else None
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {since!r}", param_hint="--since")

    manager = _open_manager(lessons_path)
    try:
        logs = manager.gateway.get_attempt_logs()
        if since_day is not None:
            logs = [log for log in logs if log.timestamp.date() >= since_day]
        logs = logs[-limit:]
        if not logs:
            console.print("[dim]No sessions recorded yet.[/dim]")
            return

        table = Table(title="Recent Sessions")
        table.add_column("Date")
        table.add_column("Lesson")
        table.add_column("Mode")
        table.add_column("Score")
        table.add_column("Duration")
        for log in reversed(logs):
            table.add_row(
                log.timestamp.strftime("%Y-%m-%d %H:%M"),
                log.lesson_title or str(log.lesson_id),
                log.mode.value,
                f"{log.total_score}/{log.total_phrases}",
                f"{log.duration_seconds // 60}m {log.duration_seconds % 60}s",
            )
        console.print(table)
    finally:
        manager.teardown()


@app.command()
def reset(
    confirm: bool = typer.Option(
        False,
        "--yes", "-y",
        help="Skip confirmation",
    ),
) -> None:
    """Clear all local progress for a fresh start."""
    if not confirm and not Confirm.ask("Reset ALL progress? This cannot be undone!", default=False):
        raise typer.Exit(0)

    try:
        storage = SQLiteStorage(get_settings().db_path)
    except StorageError as e:
        console.print(f"[red]Could not open saved progress:[/red] {e.reason}")
        raise typer.Exit(1)

    failed = [
        key
        for key in (WORD_DATA_KEY, PLAYER_STATS_KEY, ATTEMPT_LOG_KEY, ACTIVE_SESSION_KEY)
        if not remove_key(storage, key).ok
    ]
    storage.close()
    if failed:
        console.print(f"[red]Could not clear: {', '.join(failed)}[/red]")
        raise typer.Exit(1)
    console.print("[green]All progress has been reset.[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level.upper(),
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
