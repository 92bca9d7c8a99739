"""rememberer CLI: review queue, topic states and study deck commands."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from rememberer.application.config import AppConfig, resolve_config
from rememberer.application.factory import get_services
from rememberer.application.scheduler import format_time_until_review
from rememberer.domain.exceptions import RemembererError
from rememberer.domain.models import Flashcard

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="rememberer: spaced repetition and topic knowledge states.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

deck_app = typer.Typer(help="Manage the study deck.", no_args_is_help=True)
app.add_typer(deck_app, name="deck")

config_app = typer.Typer(help="Manage rememberer configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.obj or {}
    return resolve_config(
        {
            "data_file": obj.get("data_file"),
            "backend": obj.get("backend"),
            "verbose": obj.get("verbose"),
        }
    )


def _fail(err: Exception) -> NoReturn:
    typer.secho(f"Error: {err}", fg="red", err=True)
    raise typer.Exit(1)


def _describe(fc: Flashcard, now: datetime) -> str:
    due = format_time_until_review(fc.next_review_date, now) if fc.next_review_date else "-"
    label = fc.front or fc.source_card_id
    return f"{fc.id}  [{fc.study_state.value}, box {fc.leitner_box}]  due: {due}  {label}"


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
    data_file: Annotated[
        Path | None, typer.Option("--data-file", help="Study document to use.")
    ] = None,
    backend: Annotated[str | None, typer.Option(help="Store backend: json, memory.")] = None,
):
    """Global settings for rememberer."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["data_file"] = data_file
    ctx.obj["backend"] = backend
    if verbose >= 2:
        logging.getLogger("rememberer").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Show at most this many cards.")] = None,
    deck_only: Annotated[
        bool, typer.Option("--deck-only", help="Only cards from study deck topics.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards due for review, most overdue first."""
    reviews, _ = get_services(_config(ctx))
    now = _now()

    try:
        if deck_only:
            cards = reviews.study_deck_due_flashcards(now)
        else:
            cards = reviews.due_flashcards(now)
        next_time = reviews.next_review_time()
    except RemembererError as e:
        _fail(e)

    if limit is not None:
        cards = cards[:limit]

    if json_output:
        typer.echo(json.dumps([fc.to_dict() for fc in cards], indent=2))
        return

    if not cards:
        if next_time:
            wait = format_time_until_review(next_time, now)
            typer.secho(f"All caught up. Next review in {wait}.", fg="green")
        else:
            typer.secho("No flashcards yet.", fg="yellow")
        return

    typer.echo(f"Due: {len(cards)}")
    for fc in cards:
        typer.echo(f"  {_describe(fc, now)}")


@app.command()
def review(
    ctx: typer.Context,
    flashcard_id: Annotated[str, typer.Argument(help="Flashcard to review.")],
    quality: Annotated[int, typer.Argument(help="0=Again, 1=Hard, 2=Good, 3=Easy.")],
):
    """Record a review and schedule the next one."""
    reviews, _ = get_services(_config(ctx))
    now = _now()
    try:
        fc = reviews.review(flashcard_id, quality, now)
    except RemembererError as e:
        _fail(e)

    typer.secho(
        f"Next review in {format_time_until_review(fc.next_review_date, now)} "
        f"(interval {fc.interval}d, ease {fc.ease_factor:.2f})",
        fg="green",
    )


@app.command()
def skip(
    ctx: typer.Context,
    flashcard_id: Annotated[str, typer.Argument(help="Flashcard to skip.")],
):
    """Permanently remove a card from review rotation."""
    reviews, _ = get_services(_config(ctx))
    try:
        reviews.skip(flashcard_id)
    except RemembererError as e:
        _fail(e)
    typer.echo(f"Skipped {flashcard_id}.")


@app.command()
def graduate(
    ctx: typer.Context,
    flashcard_ids: Annotated[list[str], typer.Argument(help="Flashcards to graduate.")],
):
    """Move learned cards into spaced repetition."""
    reviews, _ = get_services(_config(ctx))
    try:
        graduated = reviews.graduate_many(flashcard_ids, _now())
    except RemembererError as e:
        _fail(e)
    typer.echo(f"Graduated {len(graduated)} flashcards.")


# ---------------------------------------------------------------------------
# Topic commands
# ---------------------------------------------------------------------------


@app.command()
def state(
    ctx: typer.Context,
    topic_ids: Annotated[list[str], typer.Argument(help="Topics to classify.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the knowledge state of each topic."""
    _, states = get_services(_config(ctx))
    try:
        result = states.topic_states(topic_ids, _now())
    except RemembererError as e:
        _fail(e)

    if json_output:
        rows = [{"topic_id": topic_id, "state": s.value} for topic_id, s in result]
        typer.echo(json.dumps(rows, indent=2))
        return
    for topic_id, topic_state in result:
        typer.echo(f"{topic_id}: {topic_state.value}")


@app.command()
def summary(
    ctx: typer.Context,
    topic_ids: Annotated[list[str], typer.Argument(help="Topics to summarize.")],
    detail: Annotated[bool, typer.Option("--detail", help="Per-topic breakdown.")] = False,
):
    """Count topics per knowledge state."""
    _, states = get_services(_config(ctx))
    now = _now()
    try:
        counts = states.states_summary(topic_ids, now)
        rows = states.debug_rows(topic_ids, now) if detail else []
    except RemembererError as e:
        _fail(e)

    typer.echo("  ".join(f"{s.value}: {n}" for s, n in counts.items()))
    for row in rows:
        typer.echo(
            f"  {row.topic_id}: {row.state.value}  captured={row.captured}"
            f"  flashcards={row.flashcards}  in_srs={row.in_srs}"
            f"  retention={round(row.retention * 100)}%"
        )


# ---------------------------------------------------------------------------
# Study deck subgroup
# ---------------------------------------------------------------------------


@deck_app.command("list")
def deck_list(ctx: typer.Context):
    """Show topics in the study deck."""
    reviews, _ = get_services(_config(ctx))
    try:
        topics = reviews.study_deck()
    except RemembererError as e:
        _fail(e)
    if not topics:
        typer.secho("Study deck is empty.", fg="yellow")
        return
    for topic_id in topics:
        typer.echo(f"{topic_id}  ({reviews.flashcard_count_for_topic(topic_id)} flashcards)")


@deck_app.command("add")
def deck_add(
    ctx: typer.Context,
    topic_id: Annotated[str, typer.Argument(help="Topic to add.")],
):
    """Add a topic to the study deck."""
    reviews, _ = get_services(_config(ctx))
    try:
        reviews.add_to_study_deck(topic_id)
    except RemembererError as e:
        _fail(e)
    typer.echo(f"Added {topic_id} to the study deck.")


@deck_app.command("remove")
def deck_remove(
    ctx: typer.Context,
    topic_id: Annotated[str, typer.Argument(help="Topic to remove.")],
):
    """Remove a topic from the study deck."""
    reviews, _ = get_services(_config(ctx))
    try:
        reviews.remove_from_study_deck(topic_id)
    except RemembererError as e:
        _fail(e)
    typer.echo(f"Removed {topic_id} from the study deck.")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the local HTTP API."""
    import uvicorn

    config = _config(ctx)
    uvicorn.run(
        "rememberer.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


def main():
    app()


if __name__ == "__main__":
    main()
