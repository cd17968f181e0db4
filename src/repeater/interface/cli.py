"""repeater CLI: drill, check, create and config commands."""

import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from repeater import __version__
from repeater.application.config import resolve_config
from repeater.application.extractor import extract
from repeater.application.factory import get_card_store
from repeater.application.hasher import identity
from repeater.application.planner import build_session_plan
from repeater.application.reconciler import SyncResult, sync_working_set
from repeater.application.session import DrillSession
from repeater.application.stats import CollectionStatsService, MetricsCalculator
from repeater.domain.constants import MARKDOWN_SUFFIX
from repeater.domain.exceptions import DuplicateCardError, RepeaterError
from repeater.domain.models import CardRecord, ParseIssue, Rating
from repeater.interface._common import _resolve_with_overrides, humanize_error
from repeater.interface.drill_view import format_card_text, format_progress

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="repeater: spaced repetition for flashcards kept in Markdown.",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Manage repeater configuration.")
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

DECK_SEPARATOR = "---"

CREATE_TEMPLATE = """
# Write cards below. Lines starting with '#' are dropped.
# Q: question
# A: answer
# C: cloze text with [hidden] words
"""


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


def _version_callback(value: bool):
    if value:
        typer.echo(f"repeater {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    quiet: Annotated[bool, typer.Option("--quiet", help="Only show warnings and errors.")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
        ),
    ] = False,
):
    """Global settings for repeater."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = 0 if quiet else 1 + verbose


def _verbosity(ctx: typer.Context) -> int:
    return (ctx.obj or {}).get("verbose", 1)


def _report_issues(issues: list[ParseIssue]) -> None:
    for issue in issues:
        typer.secho(f"warning: {issue}", fg="yellow", err=True)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def drill(
    ctx: typer.Context,
    paths: Annotated[list[Path], typer.Argument(help="Deck files or directories to drill.")],
    card_limit: Annotated[
        int | None, typer.Option("--card-limit", min=0, help="Maximum cards this session.")
    ] = None,
    new_card_limit: Annotated[
        int | None, typer.Option("--new-card-limit", min=0, help="Maximum new cards this session.")
    ] = None,
):
    """Drill the cards that are due today."""
    config = _resolve_with_overrides(
        card_limit=card_limit, new_card_limit=new_card_limit, verbose=_verbosity(ctx)
    )
    params = config.scheduler_params()

    try:
        with get_card_store(config) as store:
            synced = sync_working_set(store, paths)
            _report_issues(synced.scan.issues)

            plan = build_session_plan(
                synced.working_set,
                date.today(),
                card_limit=config.card_limit,
                new_card_limit=config.new_card_limit,
            )
            if not plan.queue:
                typer.secho("All caught up, nothing due today.", fg="green")
                return

            session = DrillSession(store, synced.working_set, plan.queue, params)
            _run_drill(session)
    except RepeaterError as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1)


def _read_key(prompt: str) -> str:
    return typer.prompt(prompt, default="", show_default=False, prompt_suffix=" ").strip().lower()


def _run_drill(session: DrillSession) -> None:
    """Line-oriented drill loop. Every rating is already saved when the loop ends."""
    try:
        while not session.is_complete():
            entry = session.current()
            typer.echo("")
            typer.echo(format_progress(session.reviewed, session.planned, session.redo_count))
            typer.echo(format_card_text(entry.card, show_answer=False))
            if _read_key("Show answer: Enter (q to quit)") == "q":
                break

            session.reveal()
            typer.echo(format_card_text(entry.card, show_answer=True))
            key = _read_key("1 = Fail, 2 = Pass (q to quit)")
            while key not in ("1", "2", "q"):
                key = _read_key("Please press 1, 2 or q")
            if key == "q":
                break
            outcome = session.rate(Rating.FAIL if key == "1" else Rating.PASS)
            if key == "1":
                typer.secho("Will show again this session.", fg="yellow")
            else:
                typer.secho(f"Next review in {outcome.interval_days} day(s).", fg="green")
    except (KeyboardInterrupt, typer.Abort):
        typer.echo("")

    typer.echo(f"Session over: {session.reviewed} reviewed, {session.failed} failed.")


@app.command()
def check(
    ctx: typer.Context,
    paths: Annotated[list[Path], typer.Argument(help="Deck files or directories to check.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Report card counts and upcoming reviews for the given decks."""
    config = _resolve_with_overrides(verbose=_verbosity(ctx))
    today = date.today()
    service = CollectionStatsService(MetricsCalculator(config.scheduler_params()))

    try:
        with get_card_store(config) as store:
            synced = sync_working_set(store, paths)
            total = store.count()
    except RepeaterError as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1)

    stats = service.summary(synced.working_set, today, total_in_store=total)

    if json_output:
        typer.echo(json.dumps(_check_payload(synced, service, stats, today), indent=2))
        return

    _report_issues(synced.scan.issues)
    typer.echo(f"Cards: {stats.num_cards}  (store holds {stats.total_in_store})")
    typer.echo(f"New: {stats.new_cards}  Reviewed: {stats.reviewed_cards}")
    if stats.overdue_cards:
        typer.secho(f"Due now: {stats.due_cards} ({stats.overdue_cards} overdue)", fg="yellow")
    else:
        typer.secho(f"Due now: {stats.due_cards}", fg="green")

    typer.echo(f"Next 7 days: {stats.upcoming_week_total}")
    for bucket in stats.upcoming_week:
        typer.echo(f"  {bucket.day.isoformat()}  {'#' * bucket.count} {bucket.count}")
    typer.echo(f"Next 30 days: {stats.upcoming_month}")


def _check_payload(synced: SyncResult, service, stats, today: date) -> dict:
    return {
        "num_cards": stats.num_cards,
        "new_cards": stats.new_cards,
        "reviewed_cards": stats.reviewed_cards,
        "due_cards": stats.due_cards,
        "overdue_cards": stats.overdue_cards,
        "upcoming_week": {b.day.isoformat(): b.count for b in stats.upcoming_week},
        "upcoming_month": stats.upcoming_month,
        "total_in_store": stats.total_in_store,
        "issues": [str(issue) for issue in synced.scan.issues],
        "weakest": [
            {
                "id": m.identity,
                "source": m.source,
                "retrievability": round(m.current_retrievability, 4),
                "days_overdue": m.days_overdue,
            }
            for m in service.weakest(synced.working_set, today)
        ],
    }


@app.command()
def create(
    ctx: typer.Context,
    deck: Annotated[Path, typer.Argument(help="Markdown deck file to add cards to.")],
    text: Annotated[
        str | None, typer.Option("--text", "-t", help="Card text. Opens $EDITOR when omitted.")
    ] = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Create the deck file without asking.")
    ] = False,
):
    """Add new cards to a deck and register them for review."""
    config = _resolve_with_overrides(verbose=_verbosity(ctx))

    if deck.is_dir() or deck.suffix.lower() != MARKDOWN_SUFFIX:
        typer.secho(f"Deck must be a {MARKDOWN_SUFFIX} file: {deck}", fg="red", err=True)
        raise typer.Exit(1)

    if not deck.exists():
        if not yes and not typer.confirm(f"Deck '{deck}' does not exist. Create it?"):
            typer.echo("Aborting; card not created.")
            return

    if text is None:
        text = typer.edit(CREATE_TEMPLATE, extension=MARKDOWN_SUFFIX)
        if text is not None:
            text = "\n".join(line for line in text.splitlines() if not line.startswith("#"))
    if not text or not text.strip():
        typer.secho("No card text given; nothing was saved.", fg="yellow")
        raise typer.Exit(1)

    issues: list[ParseIssue] = []
    cards = list(extract(text, deck, issues))
    if issues:
        _report_issues(issues)
        typer.secho("Fix the problems above; nothing was saved.", fg="red", err=True)
        raise typer.Exit(1)
    if not cards:
        typer.secho("No Q:/A: or C: card found in the text.", fg="red", err=True)
        raise typer.Exit(1)

    try:
        ids: list[str] = []
        for card in cards:
            card_id = identity(card)
            if card_id in ids:
                raise DuplicateCardError(card_id, f"{card.source} repeats an earlier card")
            ids.append(card_id)

        with get_card_store(config) as store:
            for card_id in ids:
                if store.exists(card_id):
                    raise DuplicateCardError(card_id)

            _append_to_deck(deck, text)
            now = datetime.now(timezone.utc)
            store.upsert_many(CardRecord.new(card_id, added_at=now) for card_id in ids)
    except RepeaterError as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1)

    logger.info(f"[create] Appended {len(ids)} cards to {deck}")
    typer.secho(f"Added {len(ids)} card(s) to {deck}.", fg="green")


def _append_to_deck(deck: Path, text: str) -> None:
    """Append text after a horizontal rule, so nothing joins the previous card."""
    deck.parent.mkdir(parents=True, exist_ok=True)
    existing = deck.read_text(encoding="utf-8") if deck.exists() else ""
    prefix = ""
    if existing.strip():
        prefix = ("\n" if existing.endswith("\n") else "\n\n") + f"{DECK_SEPARATOR}\n\n"
    with deck.open("a", encoding="utf-8") as fh:
        fh.write(prefix + text.strip("\n") + "\n")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
