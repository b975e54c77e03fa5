"""
CLI Review Commands.

Commands:
    flipset review start ID...  - Start a session over one or more categories
    flipset review show         - Show the current card (--back to reveal)
    flipset review correct      - Mark the current card correct
    flipset review wrong        - Mark the current card wrong
    flipset review skip         - Ask the current card again later this round
    flipset review reset        - Restart the session from round 1
    flipset review end          - End the session
    flipset review progress     - Show session progress
    flipset review delete-card  - Delete the current card everywhere
"""
from __future__ import annotations

from typing import List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from flipset.cli.context import CLIContext
from flipset.review import OrderMode, ReviewEngine

console = Console()

review_app = typer.Typer(
    name="review",
    help="Review sessions - rounds of cards until everything is answered correctly",
    no_args_is_help=True,
)


def _get_engine(ctx: CLIContext | None = None) -> ReviewEngine:
    """Engine with the persisted session loaded."""
    engine = (ctx or CLIContext()).engine
    engine.load()
    return engine


def _format_progress_bar(fraction: float, width: int = 20) -> str:
    """Format a progress bar."""
    filled = int(fraction * width)
    return "#" * filled + "-" * (width - filled)


def _print_progress(engine: ReviewEngine) -> None:
    progress = engine.get_progress()
    if progress is None:
        return
    rprint(
        f"[cyan]Round {progress.round}[/cyan]  "
        f"card {progress.current_position}/{progress.total_in_round}  "
        f"|{_format_progress_bar(progress.fraction)}| "
        f"{progress.correct_count}/{progress.total_cards} correct"
    )


def _print_current(engine: ReviewEngine, show_back: bool = False) -> None:
    session = engine.session
    if session is None:
        rprint("[yellow]No active session.[/yellow] Start one with: flipset review start <category-id>")
        return
    if session.is_complete:
        rprint(
            f"[green]Session complete![/green] "
            f"{len(session.correct_bucket)} card(s) in {session.current_round} round(s)."
        )
        rprint("  flipset review reset  - study them again")
        rprint("  flipset review end    - finish")
        return

    card = engine.current_card
    _print_progress(engine)
    if card is None:
        rprint(f"[red]Card {session.current_card_id} is missing from the store.[/red]")
        return

    console.print(Panel(escape(card.front_content), title="Front", border_style="cyan"))
    if show_back:
        console.print(Panel(escape(card.back_content), title="Back", border_style="green"))


@review_app.command("start")
def review_start(
    category_ids: List[str] = typer.Argument(..., help="Category ids (__uncategorized__ allowed)"),
    order: Optional[OrderMode] = typer.Option(
        None, "--order", "-o", help="random or ordered (default from settings)"
    ),
) -> None:
    """Start a new session, replacing any existing one."""
    ctx = CLIContext()
    engine = _get_engine(ctx)
    session = engine.start_session(category_ids, order or ctx.settings.default_order_mode)
    if session is None:
        rprint("[yellow]No cards in the selected categories.[/yellow]")
        raise typer.Exit(code=1)

    rprint(f"[green]Started session[/green] with {len(session.original_card_ids)} card(s)")
    _print_current(engine)


@review_app.command("show")
def review_show(
    back: bool = typer.Option(False, "--back", "-b", help="Reveal the answer"),
) -> None:
    """Show the current card."""
    _print_current(_get_engine(), show_back=back)


@review_app.command("correct")
def review_correct() -> None:
    """Mark the current card as answered correctly."""
    engine = _get_engine()
    engine.mark_correct()
    _print_current(engine)


@review_app.command("wrong")
def review_wrong() -> None:
    """Mark the current card as answered wrong; it comes back next round."""
    engine = _get_engine()
    engine.mark_wrong()
    _print_current(engine)


@review_app.command("skip")
def review_skip() -> None:
    """Move the current card to the end of this round."""
    engine = _get_engine()
    engine.skip_card()
    _print_current(engine)


@review_app.command("reset")
def review_reset() -> None:
    """Restart the session from round 1."""
    engine = _get_engine()
    if engine.reset_session() is None:
        rprint("[yellow]No active session.[/yellow]")
        raise typer.Exit(code=1)
    _print_current(engine)


@review_app.command("end")
def review_end() -> None:
    """End the session."""
    _get_engine().end_session()
    rprint("Session ended.")


@review_app.command("progress")
def review_progress() -> None:
    """Show progress of the current session."""
    engine = _get_engine()
    if engine.session is None:
        rprint("[yellow]No active session.[/yellow]")
        return
    progress = engine.get_progress()
    _print_progress(engine)
    rprint(f"Remaining: {progress.remaining_in_session} card(s)")


@review_app.command("delete-card")
def review_delete_card(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete the current card from the store and the session."""
    engine = _get_engine()
    if engine.current_card_id is None:
        rprint("[yellow]No current card.[/yellow]")
        raise typer.Exit(code=1)
    if not yes and not typer.confirm("Delete this card permanently?"):
        raise typer.Abort()

    engine.delete_current_card()
    rprint("[green]Card deleted.[/green]")
    _print_current(engine)
