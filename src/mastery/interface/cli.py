"""mastery CLI: record reviews and query the schedule."""

import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from mastery.application.config import AppConfig, resolve_config
from mastery.application.factory import build_service
from mastery.application.service import SchedulingService
from mastery.domain.cards.models import Card
from mastery.domain.errors import SchedulingError

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mastery: spaced-repetition scheduling for problem mastery.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mastery configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    backend: Annotated[str | None, typer.Option(help="Card store: json, memory.")] = None,
    store_path: Annotated[Path | None, typer.Option(help="JSON card store location.")] = None,
    content_file: Annotated[
        Path | None, typer.Option(help="YAML manifest with phases and unresolved errors.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mastery."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "backend": backend,
        "store_path": store_path,
        "content_file": content_file,
    }
    if verbose:
        logging.getLogger("mastery").setLevel(logging.DEBUG if verbose > 1 else logging.INFO)


def _config(ctx: typer.Context) -> AppConfig:
    return resolve_config((ctx.obj or {}).get("overrides"))


def _run(ctx: typer.Context, action: Callable[[SchedulingService], Awaitable[T]]) -> T:
    """Build the service, run one async action, and turn scheduling failures into exit code 1."""
    service = build_service(_config(ctx))
    try:
        return asyncio.run(action(service))
    except SchedulingError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _card_line(card: Card) -> str:
    return (
        f"{card.problem_id:<24} {card.state.value:<10} "
        f"due {card.due:%Y-%m-%d %H:%M}  "
        f"S={card.stability:.1f} D={card.difficulty:.1f} "
        f"reps={card.reps} lapses={card.lapses}"
    )


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


@app.command()
def enroll(
    ctx: typer.Context,
    problem_ids: Annotated[list[str], typer.Argument(help="Problems to start scheduling.")],
):
    """[bold green]Enroll[/bold green] problems as new cards (existing cards are left alone)."""

    async def run(service: SchedulingService) -> list[Card]:
        return [await service.enroll(pid) for pid in problem_ids]

    for card in _run(ctx, run):
        typer.echo(_card_line(card))


@app.command()
def review(
    ctx: typer.Context,
    problem_id: Annotated[str, typer.Argument(help="Problem that was reviewed.")],
    rating: Annotated[int, typer.Option("--rating", "-r", help="Quality rating, 1-10.")],
    elapsed_seconds: Annotated[
        int, typer.Option("--elapsed-seconds", "-t", help="Time spent on the attempt.")
    ] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Record a graded review and show the rescheduled card."""
    card = _run(ctx, lambda s: s.process_review(problem_id, rating, elapsed_seconds))
    if json_output:
        _echo_json(card.to_dict())
    else:
        typer.echo(_card_line(card))
        typer.echo(f"Next review in {card.scheduled_days:g} days")


@app.command()
def preview(
    ctx: typer.Context,
    problem_id: Annotated[str, typer.Argument(help="Problem to preview.")],
):
    """Show where each rating would put a card, without recording anything."""
    outcomes = _run(ctx, lambda s: s.preview(problem_id))
    for rating, card in outcomes.items():
        typer.echo(
            f"{rating:>2}: {card.state.value:<10} in {card.scheduled_days:g}d  "
            f"S={card.stability:.1f} D={card.difficulty:.1f}"
        )


@app.command()
def remove(
    ctx: typer.Context,
    problem_id: Annotated[str, typer.Argument(help="Problem whose card should be dropped.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation for destructive actions.")
    ] = False,
):
    """Delete a card (for problems removed upstream)."""
    if not force:
        typer.confirm(f"Delete the card for {problem_id}?", abort=True)
    _run(ctx, lambda s: s.remove_card(problem_id))
    typer.secho(f"Removed {problem_id}", fg="green")


@app.command()
def history(
    ctx: typer.Context,
    problem_id: Annotated[str | None, typer.Argument(help="Limit to one problem.")] = None,
):
    """Print the review log."""
    logs = _run(ctx, lambda s: s.get_review_history(problem_id))
    _echo_json([log.to_dict() for log in logs])


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Maximum cards to list.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards due now, oldest first."""
    cards = _run(ctx, lambda s: s.get_due_cards(limit))
    if json_output:
        _echo_json([card.to_dict() for card in cards])
        return
    if not cards:
        typer.secho("Nothing due.", fg="green")
        return
    for card in cards:
        typer.echo(_card_line(card))


@app.command()
def stats(ctx: typer.Context):
    """Show counts per state, due load, retention and completion."""
    summary = _run(ctx, lambda s: s.get_stats())
    _echo_json(summary.to_dict())


@app.command()
def phases(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show how many problems wait in each study phase."""
    queue = _run(ctx, lambda s: s.get_phase_queue())
    if json_output:
        _echo_json(queue.to_dict())
        return
    for phase, count in queue.counts.items():
        typer.echo(f"{int(phase)} {phase.label:<8} {count} waiting")
    if queue.recommended_focus is None:
        typer.secho("All caught up.", fg="green")
    else:
        typer.echo(f"Recommended focus: {queue.recommended_focus.label}")


@app.command()
def recommend(ctx: typer.Context):
    """Rank problems by due state and unresolved errors."""
    recs = _run(ctx, lambda s: s.get_recommendations())
    _echo_json(recs.to_dict())


@app.command()
def server(
    ctx: typer.Context,
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API. Global --backend/--store-path/--content-file apply to it too."""
    import uvicorn

    # The app resolves its own config, so forward CLI overrides through the environment
    for key, value in (ctx.obj or {}).get("overrides", {}).items():
        if value is not None:
            os.environ[f"MASTERY_{key.upper()}"] = str(value)

    uvicorn.run("mastery.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    _echo_json(config.model_dump(mode="json"))


def run() -> None:
    app()
