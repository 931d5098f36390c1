"""
cvmatch Command Line Interface

Provides CLI commands for operating the CV match pipeline: database
setup, running the queue worker, inspecting per-job results, and scoring
a local CV file against an ad-hoc job description.
"""

import asyncio
import contextlib
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="cvmatch",
    help="CV to job description matching pipeline CLI",
    add_completion=False,
)
console = Console()


def _score_color(score: Optional[float]) -> str:
    from cvmatch.utils.constants import SuitabilityBand

    band = SuitabilityBand.from_score(score or 0.0)
    return {
        SuitabilityBand.VERY_SUITABLE: "green",
        SuitabilityBand.QUITE_SUITABLE: "blue",
        SuitabilityBand.PARTIALLY_SUITABLE: "yellow",
    }.get(band, "red")


def _require_connection() -> None:
    """Exit with an error unless MongoDB is reachable."""
    from cvmatch.data.database import get_database_manager

    db_manager = get_database_manager()
    connected = asyncio.run(db_manager.check_async_connection())
    # The motor client is bound to the loop that first used it
    db_manager.close_async()

    if not connected:
        console.print("[red]Error: Could not connect to MongoDB. Run 'init-db' first.[/red]")
        raise typer.Exit(1)


def _require_object_id(value: str) -> None:
    """Exit with an error unless value is a valid MongoDB ObjectId."""
    from bson import ObjectId

    if not ObjectId.is_valid(value):
        console.print(f"[red]Error: Invalid job ID: {value}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show application version."""
    from cvmatch import __app_name__, __version__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from cvmatch.ml.nlp.extractors import ExtractorFactory
    from cvmatch.utils.config import get_settings
    from cvmatch.utils.constants import APP_DISPLAY_NAME

    settings = get_settings()

    table = Table(title=f"{APP_DISPLAY_NAME} Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Embedding Model", settings.ml.embedding_model)
    table.add_row("Embedding Dimension", str(settings.ml.embedding_dimension))
    table.add_row("ML Device", settings.ml.device)
    table.add_row("Queue", settings.queue.name)
    table.add_row("Queue Attempts", str(settings.queue.attempts))
    table.add_row("Worker Concurrency", str(settings.queue.concurrency))
    table.add_row("Log Level", settings.logging.level)

    for name, available in ExtractorFactory.check_availability().items():
        table.add_row(name, "available" if available else "[red]missing[/red]")

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required indexes."""
    from cvmatch.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    db_manager = get_database_manager()

    console.print("  Checking database connection...")
    _require_connection()
    console.print("  [green]✓[/green] Connected to MongoDB")

    try:
        console.print("  Creating indexes...")
        asyncio.run(db_manager.ensure_indexes())
        console.print("  [green]✓[/green] Indexes created")
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)

    console.print("\n[green]Database initialized successfully![/green]")


@app.command()
def worker(
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Tasks processed in parallel"
    ),
    no_preload: bool = typer.Option(False, "--no-preload", help="Load the model on first task"),
):
    """Run the CV processing worker until interrupted."""
    from cvmatch.core.processing import Worker

    _require_connection()

    async def _run() -> None:
        queue_worker = Worker(concurrency=concurrency)
        if no_preload:
            queue_worker.preload_model = False

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, queue_worker.stop)

        await queue_worker.run()

    console.print("[yellow]Starting worker (Ctrl+C to stop)...[/yellow]")
    asyncio.run(_run())
    console.print("[green]Worker stopped.[/green]")


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job ID to report on"),
):
    """Show match processing progress for a job."""
    from cvmatch.core.processing import get_cv_processing_service, get_task_queue
    from cvmatch.data.models import TaskStatus

    _require_object_id(job_id)
    _require_connection()

    async def _load():
        stats = await get_cv_processing_service().get_processing_status(job_id)
        waiting = await get_task_queue().count(TaskStatus.WAITING)
        return stats, waiting

    stats, waiting = asyncio.run(_load())

    table = Table(title=f"Processing Status for Job {job_id}")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Completed", f"[green]{stats.completed}[/green]")
    table.add_row("Processing", f"[blue]{stats.processing}[/blue]")
    table.add_row("Pending", f"[yellow]{stats.pending}[/yellow]")
    table.add_row("Failed", f"[red]{stats.failed}[/red]")
    table.add_row("Total", str(stats.total))

    console.print(table)
    console.print(f"Progress: [cyan]{stats.progress:.0%}[/cyan]")
    console.print(f"[dim]Tasks waiting on queue: {waiting}[/dim]")


@app.command()
def ranked(
    job_id: str = typer.Argument(..., help="Job ID to rank candidates for"),
    top_n: int = typer.Option(10, "--top", "-n", min=1, help="Number of top matches to show"),
):
    """Show the top scored candidates for a job."""
    from cvmatch.core.processing import get_cv_processing_service

    _require_object_id(job_id)
    _require_connection()

    results = asyncio.run(get_cv_processing_service().get_ranked_candidates(job_id, top_n))

    if not results:
        console.print("[yellow]No completed matches for this job yet.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Top {len(results)} Matches for Job {job_id}")
    table.add_column("Rank", style="dim", width=4)
    table.add_column("Candidate", style="cyan")
    table.add_column("CV")
    table.add_column("Score", justify="right")
    table.add_column("Matched", justify="right")
    table.add_column("Missing")

    for i, result in enumerate(results, 1):
        name = (result.candidate.name if result.candidate else None) or str(result.user_id)
        cv_title = (result.cv.title if result.cv else None) or "-"
        color = _score_color(result.match_score)
        skills_total = len(result.matched_skills) + len(result.missing_skills)

        table.add_row(
            str(i),
            name,
            cv_title,
            f"[{color}]{(result.match_score or 0):.0%}[/{color}]",
            f"{len(result.matched_skills)}/{skills_total}",
            ", ".join(result.missing_skills[:3]),
        )

    console.print(table)

    if results[0].explanation:
        console.print(f"\n[bold]Top Match:[/bold] {results[0].explanation}")


@app.command()
def reprocess_failed(
    job_id: str = typer.Argument(..., help="Job ID whose failed matches should be retried"),
):
    """Requeue every failed match of a job."""
    from cvmatch.core.processing import get_cv_processing_service

    _require_object_id(job_id)
    _require_connection()

    count = asyncio.run(get_cv_processing_service().reprocess_failed(job_id))
    console.print(f"[green]Requeued {count} failed match(es).[/green]")


@app.command()
def score_file(
    path: Path = typer.Argument(..., help="Path to a CV file (.pdf, .docx)"),
    title: str = typer.Option(..., "--title", "-t", help="Job title"),
    skill: Optional[list[str]] = typer.Option(None, "--skill", "-s", help="Required skill (repeatable)"),
    description_file: Optional[Path] = typer.Option(
        None, "--description", "-d", help="Path to a job description text file"
    ),
    level: str = typer.Option("", "--level", "-l", help="Job level"),
    show_sections: bool = typer.Option(False, "--sections", help="Print detected CV sections"),
):
    """Score a local CV file against a job description without the database."""
    from cvmatch.core.matching import build_jd_text, get_matching_engine
    from cvmatch.ml.nlp import extract_file, extract_sections
    from cvmatch.utils.constants import SUPPORTED_CV_FORMATS

    if not path.exists():
        console.print(f"[red]Error: Path does not exist: {path}[/red]")
        raise typer.Exit(1)
    if path.suffix.lower() not in SUPPORTED_CV_FORMATS:
        console.print(f"[red]Error: Unsupported file format: {path.suffix}[/red]")
        console.print(f"[dim]Supported formats: {', '.join(SUPPORTED_CV_FORMATS)}[/dim]")
        raise typer.Exit(1)

    description = ""
    if description_file:
        if not description_file.exists():
            console.print(f"[red]Error: Description file not found: {description_file}[/red]")
            raise typer.Exit(1)
        description = description_file.read_text(encoding="utf-8")

    skills = skill or []
    cv_text = extract_file(path)
    console.print(f"Extracted [cyan]{len(cv_text)}[/cyan] characters from {path.name}")

    if show_sections:
        sections = extract_sections(cv_text)
        if sections.is_empty:
            console.print("[yellow]No CV sections detected[/yellow]")
        for name, lines in sections.to_dict().items():
            console.print(f"[bold]{name.title()}[/bold] ({len(lines)})")
            for line in lines[:5]:
                console.print(f"  • {line}")

    async def _score():
        engine = get_matching_engine()
        jd_text = build_jd_text(title, description, skills, level)
        jd_embedding = await engine.embedding_model.embed(jd_text)
        return await engine.match_cv_to_job(cv_text, jd_text, jd_embedding, skills)

    with console.status("Scoring CV..."):
        outcome = asyncio.run(_score())

    color = _score_color(outcome.match_score)
    console.print(f"\nScore: [{color}]{outcome.match_score:.0%}[/{color}]")
    console.print(f"Semantic similarity: {outcome.semantic_score:.3f}")
    if outcome.matched_skills:
        console.print(f"[green]Matched:[/green] {', '.join(outcome.matched_skills)}")
    if outcome.missing_skills:
        console.print(f"[yellow]Missing:[/yellow] {', '.join(outcome.missing_skills)}")
    console.print(outcome.explanation)


if __name__ == "__main__":
    app()
