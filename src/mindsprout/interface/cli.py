"""MindSprout CLI: root commands and subgroup registration."""

import json
import logging
import os
import sys
import time
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from mindsprout.application.config import AppConfig
from mindsprout.application.factory import get_record_store
from mindsprout.domain.content import CardType, check_typed_answer
from mindsprout.domain.models import Difficulty, Strategy
from mindsprout.interface._common import (
    _loaded_service,
    _resolve_with_overrides,
    _run,
    _stats_service,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mindsprout: spaced-repetition flashcards in your terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

deck_app = typer.Typer(help="Create, edit and delete decks.", no_args_is_help=True)
app.add_typer(deck_app, name="deck")

card_app = typer.Typer(help="Add, list and delete cards.", no_args_is_help=True)
app.add_typer(card_app, name="card")

config_app = typer.Typer(help="Manage mindsprout configuration.")
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


class StudyMode(str, Enum):
    REVEAL = "reveal"
    TYPE = "type"


GRADE_KEYS = {
    "1": Difficulty.VERY_HARD,
    "2": Difficulty.HARD,
    "3": Difficulty.EASY,
    "4": Difficulty.VERY_EASY,
}


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
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding decks and cards.")
    ] = None,
    backend: Annotated[
        str | None, typer.Option(help="Record store backend: json, memory.")
    ] = None,
):
    """Global settings for mindsprout."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "data_dir": data_dir,
        "backend": backend,
        "verbose": 1 + verbose if verbose else None,
    }


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.obj or {}
    config = _resolve_with_overrides(**obj.get("overrides", {}))
    logging.getLogger("mindsprout").setLevel(config.log_level)
    return config


# ---------------------------------------------------------------------------
# Deck subgroup
# ---------------------------------------------------------------------------


@deck_app.command("create")
def deck_create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    color: Annotated[str | None, typer.Option(help="Display color, e.g. '#10b981'.")] = None,
    description: Annotated[str | None, typer.Option(help="Optional description.")] = None,
    limit: Annotated[
        int | None, typer.Option("--limit", min=1, help="Cards per session.")
    ] = None,
    strategy: Annotated[
        Strategy | None, typer.Option(help="Scheduling preset: standard or exam.")
    ] = None,
):
    """Create a new deck."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        kwargs = {"color": color} if color else {}
        return await service.create_deck(
            name,
            description=description,
            session_limit=limit or config.default_session_limit,
            strategy=strategy or config.default_strategy,
            **kwargs,
        )

    deck = _run(run())
    typer.secho(f"Created deck '{deck.name}' ({deck.id}).", fg="green")


@deck_app.command("list")
def deck_list(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List decks with their due/new/mastered counters."""
    config = _config(ctx)

    async def run():
        # One store so both views read the same records
        store = get_record_store(config)
        service = await _loaded_service(config, store)
        overviews = await _stats_service(config, store).get_overviews()
        return service.decks, {o.deck_id: o for o in overviews}

    decks, overviews = _run(run())

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "id": d.id,
                        "name": d.name,
                        "strategy": d.strategy.value,
                        "session_limit": d.session_limit,
                        **{k: v for k, v in asdict(overviews[d.id]).items() if k != "deck_id"},
                    }
                    for d in decks
                    if d.id in overviews
                ],
                indent=2,
            )
        )
        return

    if not decks:
        typer.secho("No decks yet. Create one with 'mindsprout deck create'.", fg="yellow")
        return

    for deck in decks:
        o = overviews.get(deck.id)
        if o is None:
            continue
        typer.echo(
            f"{deck.name}  [{deck.strategy.value}]  "
            f"total={o.total} due={o.due} new={o.new} "
            f"learning={o.learning} mastered={o.mastered}  ({deck.id})"
        )


@deck_app.command("set")
def deck_set(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    name: Annotated[str | None, typer.Option(help="New name.")] = None,
    color: Annotated[str | None, typer.Option(help="New display color.")] = None,
    limit: Annotated[
        int | None, typer.Option("--limit", min=1, help="Cards per session.")
    ] = None,
    strategy: Annotated[
        Strategy | None, typer.Option(help="Scheduling preset: standard or exam.")
    ] = None,
):
    """Change a deck's name, color or settings."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        target = service.find_deck(deck)
        return await service.update_deck(
            target.id, name=name, color=color, session_limit=limit, strategy=strategy
        )

    updated = _run(run())
    typer.secho(
        f"Updated '{updated.name}': limit={updated.session_limit}, "
        f"strategy={updated.strategy.value}",
        fg="green",
    )


@deck_app.command("delete")
def deck_delete(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip the confirmation prompt.")
    ] = False,
):
    """Delete a deck and all of its cards."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        target = service.find_deck(deck)
        count = len(service.deck_cards(target.id))
        if not force and not typer.confirm(
            f"Delete '{target.name}' and its {count} cards?", default=False
        ):
            raise typer.Abort()
        return target, await service.delete_deck(target.id)

    target, removed = _run(run())
    typer.secho(f"Deleted '{target.name}' ({removed} cards).", fg="green")


# ---------------------------------------------------------------------------
# Card subgroup
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    question: Annotated[str, typer.Argument(help="Front text, or the full sentence for cloze.")],
    answer: Annotated[str, typer.Argument(help="Back text (ignored for cloze).")] = "",
    hide: Annotated[
        str | None,
        typer.Option(
            "--hide",
            help="Make a cloze card hiding these 1-based word positions, e.g. '2,5'.",
        ),
    ] = None,
):
    """Add a normal or cloze card to a deck."""
    config = _config(ctx)

    hidden: list[int] | None = None
    if hide:
        try:
            hidden = [int(p) - 1 for p in hide.split(",") if p.strip()]
        except ValueError:
            typer.secho("--hide expects comma-separated word numbers.", fg="red", err=True)
            raise typer.Exit(2) from None

    async def run():
        service = await _loaded_service(config)
        target = service.find_deck(deck)
        if hidden is not None:
            return await service.add_cloze_card(target.id, question, hidden)
        return await service.add_card(target.id, question, answer)

    card = _run(run())
    typer.secho(f"Added {card.type.value} card {card.id}: {card.content.prompt()}", fg="green")


@card_app.command("list")
def card_list(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
):
    """List a deck's cards with their scheduling state."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        return service.deck_cards(service.find_deck(deck).id)

    for card in _run(run()):
        typer.echo(
            f"{card.id}  rep={card.repetition} ivl={card.interval}d "
            f"ef={card.easiness:.2f}  {card.content.prompt()} -> {card.content.reveal()}"
        )


@card_app.command("delete")
def card_delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card id.")],
):
    """Delete a single card."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        await service.delete_card(card_id)

    _run(run())
    typer.secho(f"Deleted card {card_id}.", fg="green")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command("plan")
def plan(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the cards the next session would present, in order."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        return service.plan(service.find_deck(deck).id)

    result = _run(run())

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "deck_id": result.deck_id,
                    "due": result.due_count,
                    "new": result.new_count,
                    "dropped": result.dropped,
                    "cards": [c.id for c in result.cards],
                },
                indent=2,
            )
        )
        return

    if result.is_empty:
        typer.secho("Nothing due. Come back later!", fg="green")
        return

    typer.echo(f"Due: {result.due_count}  New: {result.new_count}  Dropped: {result.dropped}")
    for i, card in enumerate(result.cards, start=1):
        typer.echo(f"  [{i}] {card.content.prompt()}")


@app.command("study")
def study(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    mode: Annotated[
        StudyMode,
        typer.Option(help="'reveal' shows the answer, 'type' checks what you type."),
    ] = StudyMode.REVEAL,
):
    """Run an interactive study session.

    Each card is shown, then graded 1-4 (very hard, hard, easy, very easy).
    Every grade is saved immediately; enter 'q' to stop early.
    """
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        target = service.find_deck(deck)
        session = service.start_session(target.id)

        if session.finished:
            typer.secho("Nothing due. Come back later!", fg="green")
            return

        typer.secho(f"Studying '{target.name}': {session.started} cards", bold=True)
        while not session.finished:
            card = session.current
            shown_at = time.monotonic()
            typer.echo(f"\n[{session.done + 1}/{session.started}] {card.content.prompt()}")

            if mode is StudyMode.TYPE or card.type is CardType.CLOZE:
                typed = typer.prompt("Your answer", default="", show_default=False)
                if check_typed_answer(card.content, typed):
                    typer.secho("Correct!", fg="green")
                else:
                    typer.secho(f"Answer: {card.answer}", fg="red")
            else:
                typer.prompt("Press Enter to reveal", default="", show_default=False)
            typer.secho(card.content.reveal(), bold=True)

            grade = _ask_grade()
            if grade is None:
                typer.echo(f"Stopped. {session.done} graded, {session.remaining} left.")
                return

            duration = int((time.monotonic() - shown_at) * 1000)
            updated = await service.grade(session, grade, duration=duration)
            typer.echo(f"Next review in {updated.interval} day(s).")

        typer.secho(f"\nSession complete: {session.done} cards.", fg="green")

    _run(run())


def _ask_grade() -> Difficulty | None:
    while True:
        raw = typer.prompt("Grade [1 very hard, 2 hard, 3 easy, 4 very easy, q quit]")
        raw = raw.strip().lower()
        if raw == "q":
            return None
        if raw in GRADE_KEYS:
            return GRADE_KEYS[raw]
        typer.secho("Please enter 1, 2, 3, 4 or q.", fg="yellow")


@app.command("stats")
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show retention, maturity, leeches and the 7-day workload."""
    config = _config(ctx)
    report = _run(_stats_service(config).get_report())

    if json_output:
        typer.echo(json.dumps(asdict(report), indent=2))
        return

    m = report.maturity
    typer.echo(f"Cards: {report.total}  Due: {report.due}  New: {report.new}")
    typer.echo(f"Mastered: {report.mastered}")
    typer.echo(f"Seeds: {m.seeds}  Sprouts: {m.sprouts}  Trees: {m.trees}  Forest: {m.forest}")
    typer.echo(
        f"Retention: {report.retention_rate:.1f}% over {report.total_reviews} reviews  "
        f"Avg answer: {report.average_duration_ms / 1000:.1f}s"
    )

    typer.echo("\nNext 7 days:")
    for day in report.workload:
        typer.echo(f"  {day.label:<5} {day.count:>4}  {'#' * min(day.count, 40)}")

    if report.leeches:
        typer.secho(f"\nLeeches: {len(report.leeches)}", fg="yellow")
        for leech in report.leeches:
            typer.echo(
                f"  {leech.question}  (failed {leech.failures}/{leech.reviews}, "
                f"ef={leech.easiness:.2f})"
            )


@app.command("export")
def export(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck id or name.")],
    output: Annotated[Path, typer.Argument(help="Destination .json file.")],
):
    """Export a deck and its cards to a JSON bundle."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        deck_id = service.find_deck(deck).id
        return service.export_deck(deck_id), len(service.deck_cards(deck_id))

    text, count = _run(run())
    output.write_text(text, encoding="utf-8")
    typer.secho(f"Exported {count} cards to {output}.", fg="green")


@app.command("import")
def import_(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Bundle .json file.", exists=True)],
):
    """Import a bundle as a new deck. Cards start over as new."""
    config = _config(ctx)

    async def run():
        service = await _loaded_service(config)
        return await service.import_deck(source.read_text(encoding="utf-8"))

    deck, cards = _run(run())
    typer.secho(f"Imported '{deck.name}' with {len(cards)} cards ({deck.id}).", fg="green")


@app.command("serve")
def serve(
    ctx: typer.Context,
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8778,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Start the local HTTP API."""
    import uvicorn

    config = _config(ctx)
    # uvicorn imports the app by path; settings reach it through the environment
    os.environ["MINDSPROUT_DATA_DIR"] = str(config.data_dir)
    os.environ["MINDSPROUT_BACKEND"] = config.backend
    os.environ["MINDSPROUT_VERBOSE"] = str(config.verbose)

    uvicorn.run("mindsprout.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
