"""CLI for DAO assessments."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import structlog
import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from dao_assessment import __version__
from dao_assessment.core.config import AssessmentConfig, load_config
from dao_assessment.core.errors import ConfigurationError
from dao_assessment.core.slug import SlugGenerator
from dao_assessment.scoring import Rejection
from dao_assessment.services import AssessmentService
from dao_assessment.services.reporting import export_leaderboard, format_score, render_leaderboard
from dao_assessment.services.storage import create_record_store

T = TypeVar("T")

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="dao-assessment",
    help="DAO Assessment - validate candidate assessments and rank by median trait scores",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"dao-assessment v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """DAO Assessment CLI."""
    load_dotenv()


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: Path | None) -> AssessmentConfig:
    if config_path is None:
        return AssessmentConfig()
    return load_config(config_path)


def _build_service(config: AssessmentConfig) -> AssessmentService:
    store = create_record_store(config)
    return AssessmentService(
        store,
        rubric=config.rubric,
        slugs=SlugGenerator(max_length=config.slug_max_length),
        phase=config.phase,
    )


def _run_with_service(
    config_path: Path | None,
    action: Callable[[AssessmentService], Awaitable[T]],
) -> T:
    """Load config, open the store, seed defaults, and run one async action."""
    try:
        config = _load(config_path)
        service = _build_service(config)

        async def _run() -> T:
            try:
                await service.seed_candidates(config.candidates)
                return await action(service)
            finally:
                close = getattr(service.store, "close", None)
                if close is not None:
                    await close()

        return asyncio.run(_run())

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e


def _print_rejection(rejection: Rejection) -> None:
    console.print(f"[red]Rejected ({rejection.kind.value}):[/red] {rejection.message}")
    raise typer.Exit(1)


@app.command()
def serve(
    config_path: ConfigOption = None,
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Run the HTTP API."""
    from dao_assessment.api import create_app

    _configure_logging(verbose)
    try:
        config = _load(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    service = _build_service(config)
    api = create_app(service, config.api, seeds=config.candidates)
    bind_host = host or config.api.host
    bind_port = port or config.api.port
    console.print(f"[bold green]Serving on[/bold green] http://{bind_host}:{bind_port}")
    uvicorn.run(api, host=bind_host, port=bind_port, log_level="info")


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without running."""
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Required total: {config.rubric.required_total}")
        console.print(f"  Min trait score: {config.rubric.min_trait_score}")
        limit = config.rubric.feedback_max_length
        console.print(f"  Feedback limit: {limit if limit is not None else 'unlimited'}")
        console.print(f"  Election phase: {config.phase.value}")
        console.print(f"  Storage backend: {config.storage.backend}")
        console.print(f"  Seed candidates: {len(config.candidates)}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def nominate(
    name: Annotated[str, typer.Argument(help="Candidate display name")],
    address: Annotated[str, typer.Argument(help="Candidate wallet address")],
    statement: Annotated[str, typer.Option("--statement", help="Nomination statement")] = "",
    nominated_by: Annotated[
        str, typer.Option("--nominated-by", help="Nominator wallet address")
    ] = "",
    config_path: ConfigOption = None,
) -> None:
    """Nominate a candidate."""
    result = _run_with_service(
        config_path,
        lambda service: service.nominate(name, address, statement, nominated_by),
    )
    if isinstance(result, Rejection):
        _print_rejection(result)
    console.print(f"[green]Nominated[/green] {result.name} as '{result.id}'")


@app.command()
def withdraw(
    candidate_id: Annotated[str, typer.Argument(help="Candidate id")],
    requested_by: Annotated[str, typer.Argument(help="Nominator wallet address")],
    config_path: ConfigOption = None,
) -> None:
    """Withdraw a nomination."""
    result = _run_with_service(
        config_path, lambda service: service.withdraw(candidate_id, requested_by)
    )
    if isinstance(result, Rejection):
        _print_rejection(result)
    console.print(f"[green]Withdrawn[/green] {result.id}")


@app.command()
def assess(
    candidate_id: Annotated[str, typer.Argument(help="Candidate id")],
    assessor: Annotated[str, typer.Argument(help="Assessor wallet address")],
    technical: Annotated[int, typer.Option("--technical", "-t")],
    reliability: Annotated[int, typer.Option("--reliability", "-r")],
    communication: Annotated[int, typer.Option("--communication", "-m")],
    values: Annotated[int, typer.Option("--values", "-a")],
    feedback: Annotated[str, typer.Option("--feedback", help="Optional feedback")] = "",
    config_path: ConfigOption = None,
) -> None:
    """Submit an assessment."""
    traits = {
        "technical": technical,
        "reliability": reliability,
        "communication": communication,
        "values": values,
    }
    result = _run_with_service(
        config_path,
        lambda service: service.submit(candidate_id, assessor, traits, feedback),
    )
    if isinstance(result, Rejection):
        _print_rejection(result)
    console.print(f"[green]Assessment accepted[/green] ({result.id})")


@app.command()
def results(
    candidate_id: Annotated[str, typer.Argument(help="Candidate id")],
    config_path: ConfigOption = None,
) -> None:
    """Show median scores and feedback for a candidate."""
    outcome = _run_with_service(
        config_path, lambda service: service.candidate_results(candidate_id)
    )
    if outcome is None:
        console.print(f"[red]Candidate not found:[/red] {candidate_id}")
        raise typer.Exit(1)

    console.print(f"[bold]{outcome.candidate.name}[/bold] ({outcome.candidate.id})")
    console.print(f"  Assessments: {outcome.score.count}")
    if not outcome.score.has_scores:
        console.print("  No assessments yet")
        return

    for trait, value in (outcome.score.scores or {}).items():
        console.print(f"  {trait}: {format_score(value)}")
    console.print(f"  [bold]Total:[/bold] {format_score(outcome.score.total_score)}")
    for entry in outcome.feedback:
        console.print(f"  - {entry.text}", markup=False)


@app.command()
def leaderboard(
    export: Annotated[
        Path | None, typer.Option("--export", help="Write md/csv/json files to this directory")
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Rank active candidates by total median score."""

    async def _action(service: AssessmentService):
        board = await service.leaderboard()
        if export is not None:
            await export_leaderboard(board.entries, export)
        return board

    board = _run_with_service(config_path, _action)
    console.print(render_leaderboard(board.entries), markup=False)
    console.print(f"\nTotal assessments: {board.total_assessments}")
    if export is not None:
        console.print(f"Exported to: {export}")


@app.command()
def stats(config_path: ConfigOption = None) -> None:
    """Show participation statistics."""
    current = _run_with_service(config_path, lambda service: service.stats())
    console.print("[bold]Assessment statistics[/bold]")
    console.print(f"  Candidates: {current.total_candidates}")
    console.print(f"  Assessments: {current.total_assessments}")
    console.print(f"  Unique assessors: {current.unique_assessors}")
    console.print(f"  Average per candidate: {current.average_per_candidate}")


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]DAO Assessment[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Run the HTTP API")
    console.print("  dao-assessment serve --config config.yaml\n")

    console.print("  # Nominate a candidate")
    console.print("  dao-assessment nominate Alice 0x1234... --nominated-by 0xabcd...\n")

    console.print("  # Submit an assessment")
    console.print(
        "  dao-assessment assess alice 0xfeed... -t 40 -r 25 -m 15 -a 20 --feedback 'Solid'\n"
    )

    console.print("  # Leaderboard with export")
    console.print("  dao-assessment leaderboard --export ./reports\n")

    console.print("  # Validate config")
    console.print("  dao-assessment validate config.yaml")


if __name__ == "__main__":
    app()
