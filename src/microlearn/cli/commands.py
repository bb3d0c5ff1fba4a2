"""CLI commands for the microlearning platform.

Commands:
- init-db: Create the database schema
- progress: Show a learner's progress snapshot
- leaderboard: Show the top learners by average score
- analytics: Show an instructor's cohort analytics
- serve: Run the Web API
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from microlearn.config.app_config import load_app_config
from microlearn.core.grading import is_passing
from microlearn.core.instructor_analytics import InstructorAnalytics
from microlearn.core.leaderboard import LeaderboardRanker
from microlearn.core.progress import ProgressAggregator
from microlearn.db.database import init_db as do_init_db
from microlearn.db.store import SqliteAttemptStore, StoreError

app = typer.Typer(
    name="microlearn",
    help="Microlearning modules, quizzes and progress tracking.",
    no_args_is_help=True,
)

console = Console()


def _open_store(db_path: str | None) -> SqliteAttemptStore:
    """Open the configured store, or exit with a helpful error."""
    path = Path(db_path) if db_path else load_app_config().store.db_path
    try:
        return SqliteAttemptStore(path)
    except StoreError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _pass_color(percentage: float) -> str:
    return "green" if is_passing(percentage) else "red"


# =============================================================================
# SETUP
# =============================================================================


@app.command(name="init-db")
def init_db(
    db_path: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Create the database and its tables."""
    path = Path(db_path) if db_path else load_app_config().store.db_path
    created = do_init_db(path)
    console.print(f"[green]✓ Database ready[/green]")
    console.print(f"  [dim]path:[/dim] {created}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Serving Microlearn API on http://{host}:{port}[/blue]")
    uvicorn.run("microlearn.web.api:app", host=host, port=port, reload=reload)


# =============================================================================
# DASHBOARDS
# =============================================================================


@app.command()
def progress(
    learner_id: str = typer.Argument(..., help="Learner profile ID"),
    db_path: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Show a learner's enrollment, completion and score summary."""
    store = _open_store(db_path)

    try:
        snapshot = asyncio.run(ProgressAggregator(store).compute(learner_id))
    except StoreError as e:
        console.print(f"[red]✗ Could not load progress: {e}[/red]")
        raise typer.Exit(code=1)

    header = (
        f"Enrolled modules: {snapshot.enrolled_modules}\n"
        f"Completed modules: {snapshot.completed_modules} "
        f"({snapshot.completion_percentage:.0f}%)\n"
        f"Average score: [{_pass_color(snapshot.average_score)}]"
        f"{snapshot.average_score:.1f}%[/{_pass_color(snapshot.average_score)}]\n"
        f"Quizzes taken: {snapshot.attempt_count}"
    )
    console.print(Panel(header, title=f"[bold]{learner_id}[/bold]", expand=False))

    if not snapshot.recent_attempts:
        console.print("[dim]No quiz attempts yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Module", style="cyan")
    table.add_column("Score", justify="center")
    table.add_column("Result", justify="center")
    table.add_column("Completed", style="dim")

    for attempt in snapshot.recent_attempts:
        status_icon = "[green]✓ pass[/green]" if attempt.passed else "[red]✗ fail[/red]"
        table.add_row(
            attempt.module_title,
            f"{attempt.score}/{attempt.total_questions} ({attempt.percentage:.0f}%)",
            status_icon,
            attempt.completed_at,
        )
    console.print(table)


@app.command()
def leaderboard(
    learner: str | None = typer.Option(None, "--learner", "-l", help="Show this learner's rank"),
    db_path: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Show the top learners by average quiz score."""
    store = _open_store(db_path)

    try:
        board = asyncio.run(LeaderboardRanker(store).compute(learner))
    except StoreError as e:
        console.print(f"[red]✗ Could not load leaderboard: {e}[/red]")
        raise typer.Exit(code=1)

    if not board.entries:
        console.print("[yellow]⚠ No quiz attempts yet.[/yellow]")
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right", width=4)
        table.add_column("Learner", style="cyan")
        table.add_column("Average", justify="right")
        table.add_column("Quizzes", justify="right")

        for entry in board.entries:
            marker = " [bold]←[/bold]" if entry.learner_id == learner else ""
            table.add_row(
                str(entry.rank),
                f"{entry.learner_name}{marker}",
                f"{entry.average_score:.1f}%",
                str(entry.attempt_count),
            )
        console.print(table)

    if learner:
        if board.my_rank is None:
            console.print(f"  [dim]{learner}:[/dim] unranked")
        else:
            console.print(f"  [dim]{learner}:[/dim] rank #{board.my_rank}")


@app.command()
def analytics(
    instructor_id: str = typer.Argument(..., help="Instructor profile ID"),
    db_path: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Show cohort analytics across an instructor's modules."""
    store = _open_store(db_path)

    try:
        snapshot = asyncio.run(InstructorAnalytics(store).compute(instructor_id))
    except StoreError as e:
        console.print(f"[red]✗ Could not load analytics: {e}[/red]")
        raise typer.Exit(code=1)

    if not snapshot.modules:
        console.print(f"[yellow]⚠ Instructor {instructor_id} has no modules.[/yellow]")
        return

    header = (
        f"Modules: {len(snapshot.modules)}\n"
        f"Enrolled learners: {snapshot.total_enrolled}\n"
        f"Quiz attempts: {snapshot.attempt_count}\n"
        f"Average score: {snapshot.average_score:.1f}%\n"
        f"Pass rate: {snapshot.pass_rate:.1f}%\n"
        f"Completion: {snapshot.completion_percentage:.1f}%"
    )
    console.print(Panel(header, title=f"[bold]{instructor_id}[/bold]", expand=False))

    if not snapshot.student_scores:
        console.print("[dim]No quiz attempts on these modules yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Student", style="cyan")
    table.add_column("Module")
    table.add_column("Best score", justify="center")
    table.add_column("Result", justify="center")

    for row in snapshot.student_scores:
        status_icon = "[green]✓[/green]" if row.passed else "[red]✗[/red]"
        table.add_row(
            row.student_name,
            row.module_title,
            f"{row.score}/{row.total_questions} ({row.percentage:.0f}%)",
            status_icon,
        )
    console.print(table)
