"""mnemos CLI: inspect deck files and run review sessions from the terminal."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from mnemos.application.config import AppConfig, resolve_config
from mnemos.application.utils.calendar import resolve_timezone
from mnemos.domain.exceptions import MnemosError, StoreUnavailableError
from mnemos.domain.models import RecallRating, SessionStatus

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemos: spaced-repetition scheduler and review sessions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemos configuration.")
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

DeckFileArg = Annotated[
    Path | None,
    typer.Argument(help="Path to a YAML deck file. Defaults to 'deck_file' in config."),
]
DeckOpt = Annotated[str | None, typer.Option("--deck", help="Limit to one deck.")]
UserOpt = Annotated[str | None, typer.Option("--user", help="User ID. Defaults to config.")]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


def _resolve_with_overrides(**overrides) -> AppConfig:
    try:
        return resolve_config(overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(2) from e


def _now(config: AppConfig) -> datetime:
    tz = resolve_timezone(config.timezone)
    return datetime.now(tz) if tz else datetime.now().astimezone()


def _require_deck_file(config: AppConfig) -> Path:
    if config.deck_file is None:
        typer.secho("No deck file given and no 'deck_file' in config.", fg="red", err=True)
        raise typer.Exit(2)
    return config.deck_file


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
    ] = 0,
):
    """Global settings for mnemos."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    deck_file: DeckFileArg = None,
    deck: DeckOpt = None,
    user: UserOpt = None,
    json_output: JsonOpt = False,
):
    """List cards due now, in session order."""
    from mnemos.application.due_selector import due_breakdown, select_due
    from mnemos.application.factory import get_card_repository

    config = _resolve_with_overrides(deck_file=deck_file, user_id=user)
    _require_deck_file(config)
    repo = get_card_repository(config)
    now = _now(config)

    try:
        cards = asyncio.run(repo.get_cards(config.user_id, deck))
    except StoreUnavailableError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    selected = select_due(cards, now, deck_id=deck, new_card_limit=config.daily_new_limit)
    breakdown = due_breakdown(cards, now, deck_id=deck)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "due": [c.id for c in selected],
                    "new": breakdown.new,
                    "learning": breakdown.learning,
                    "review": breakdown.review,
                },
                indent=2,
            )
        )
        return

    if not selected:
        typer.secho("No cards due.", fg="green")
        return

    typer.echo(
        f"Due: {len(selected)}  (new {breakdown.new}, learning {breakdown.learning}, "
        f"review {breakdown.review})"
    )
    for card in selected:
        typer.echo(f"  {card.id}  [{card.record.state}]  {card.data.get('front') or ''}")


@app.command()
def forecast(
    deck_file: DeckFileArg = None,
    days: Annotated[int | None, typer.Option(help="Forecast horizon in days.")] = None,
    deck: DeckOpt = None,
    user: UserOpt = None,
    json_output: JsonOpt = False,
):
    """Show how many cards become due on each upcoming day."""
    from mnemos.application.factory import get_card_repository
    from mnemos.application.forecast import forecast as build_forecast

    config = _resolve_with_overrides(deck_file=deck_file, user_id=user, forecast_horizon_days=days)
    _require_deck_file(config)
    repo = get_card_repository(config)
    now = _now(config)

    try:
        cards = asyncio.run(repo.get_cards(config.user_id, deck))
    except StoreUnavailableError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    mapping = build_forecast(
        cards, now, config.forecast_horizon_days, resolve_timezone(config.timezone)
    )

    if json_output:
        typer.echo(json.dumps({d.isoformat(): n for d, n in mapping.items()}, indent=2))
        return

    if not mapping:
        typer.echo(f"Nothing due in the next {config.forecast_horizon_days} days.")
        return
    for day, count in mapping.items():
        typer.echo(f"{day.isoformat()}  {count:>4}  {'#' * min(count, 60)}")


@app.command()
def review(
    deck_file: DeckFileArg = None,
    deck: DeckOpt = None,
    user: UserOpt = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Review without writing the deck file.")
    ] = False,
):
    """Run an interactive review session over due cards.

    Press Enter to reveal the answer, then rate 1-4
    (1 Again, 2 Hard, 3 Good, 4 Easy). Enter 'q' to stop early.
    """
    from mnemos.application.factory import build_session_service, get_card_repository
    from mnemos.infrastructure.adapters.memory_store import InMemoryCardRepository

    config = _resolve_with_overrides(deck_file=deck_file, user_id=user)
    _require_deck_file(config)
    repo = get_card_repository(config)

    async def run() -> None:
        if dry_run:
            cards = await repo.get_cards(config.user_id, deck)
            store = InMemoryCardRepository(cards, tz=resolve_timezone(config.timezone))
        else:
            store = repo
        service = build_session_service(config, store)
        orchestrator = service.orchestrator

        status = await service.start(config.user_id, _now(config), deck_id=deck)
        if status is SessionStatus.NOTHING_DUE:
            from mnemos.application.forecast import describe_next_due

            typer.secho("No cards due for review.", fg="green")
            typer.echo(
                describe_next_due(
                    orchestrator.next_due_at, _now(config), orchestrator.tz
                )
            )
            return

        while orchestrator.status is SessionStatus.ACTIVE:
            card = orchestrator.current_card
            typer.echo("")
            typer.secho(
                f"[{orchestrator.cards_left} left] {card.data.get('front') or card.id}",
                bold=True,
            )
            answer = typer.prompt("Enter to show answer, q to quit", default="", show_default=False)
            if answer.strip().lower() == "q":
                service.abandon()
                break
            service.flip()
            typer.echo(f"  -> {card.data.get('back') or ''}")

            rating = _prompt_rating()
            if rating is None:
                service.abandon()
                break

            outcome = await service.rate(rating, _now(config))
            if not outcome.persisted:
                typer.secho("  (could not save this card)", fg="yellow")
            elif outcome.kept_in_session:
                typer.echo("  again later today")

        summary = await service.summary(_now(config))
        if summary is not None:
            _print_summary(summary)

    try:
        asyncio.run(run())
    except StoreUnavailableError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e
    except MnemosError as e:
        typer.secho(f"Review failed: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _prompt_rating() -> RecallRating | None:
    while True:
        raw = typer.prompt("Rating [1 Again, 2 Hard, 3 Good, 4 Easy]").strip().lower()
        if raw == "q":
            return None
        try:
            return RecallRating(int(raw))
        except ValueError:
            typer.secho("Please enter 1, 2, 3, 4 or q.", fg="yellow")


def _print_summary(summary) -> None:
    status = "complete" if summary.is_complete else "stopped early"
    typer.echo("")
    typer.secho(f"Session {status}", bold=True)
    typer.echo(f"Cards reviewed: {summary.cards_reviewed}")
    typer.echo(f"Accuracy: {summary.correct_percentage:.0f}%")
    typer.echo(f"Average time per card: {summary.average_time_per_card_seconds:.1f}s")
    labels = ["Again", "Hard", "Good", "Easy"]
    dist = "  ".join(
        f"{label} {count}" for label, count in zip(labels, summary.rating_distribution)
    )
    typer.echo(f"Ratings: {dist}")
    f = summary.forecast
    typer.echo(
        f"Coming up: tomorrow {f.due_tomorrow}, next 3 days {f.due_three_days}, "
        f"later {f.due_later}"
    )


@app.command()
def insights(
    deck_file: DeckFileArg = None,
    deck: DeckOpt = None,
    user: UserOpt = None,
    json_output: JsonOpt = False,
):
    """List weak cards: lapsed or likely forgotten."""
    from mnemos.application.factory import get_card_repository
    from mnemos.application.stats import CardInsightsService, MetricsCalculator

    config = _resolve_with_overrides(deck_file=deck_file, user_id=user)
    _require_deck_file(config)
    service = CardInsightsService(
        get_card_repository(config),
        MetricsCalculator(graduated_threshold_days=config.graduated_threshold_days),
    )

    try:
        weak = asyncio.run(service.get_weak_cards(config.user_id, _now(config), deck))
    except StoreUnavailableError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "id": c.card_id,
                        "lapses": c.lapse_count,
                        "retrievability": c.current_retrievability,
                        "days_overdue": c.days_overdue,
                    }
                    for c in weak
                ],
                indent=2,
            )
        )
        return

    if not weak:
        typer.secho("No weak cards.", fg="green")
        return
    for c in weak:
        r = "-" if c.current_retrievability is None else f"{c.current_retrievability:.2f}"
        typer.echo(f"  {c.card_id}  lapses={c.lapse_count}  R={r}  state={c.state}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
