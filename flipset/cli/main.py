"""
Typer CLI for flipset.

Commands:
    flipset db init                - Initialize database tables
    flipset category list          - List categories with card counts
    flipset category add NAME      - Create a category
    flipset category rename ID NAME
    flipset category delete ID --fate move|uncategorize|delete [--to ID]
    flipset card list              - List cards (--search, --sort, --desc)
    flipset card show ID
    flipset card add --front ... --back ... [-c CATEGORY_ID ...]
    flipset card edit ID [--front ...] [--back ...] [-c CATEGORY_ID ...]
    flipset card delete ID
    flipset data export PATH       - Export all cards and categories to JSON
    flipset data import PATH       - Import a JSON export (--on-conflict merge|overwrite)
    flipset review ...             - Review sessions (see review --help)

Usage:
    flipset --help
    flipset category add "Spanish verbs"
    flipset review start <category-id> --order ordered
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings
from flipset.cli.context import CLIContext
from flipset.cli.review_commands import review_app
from flipset.content import ConflictResolution, ImportValidationError, read_export, write_export
from flipset.db.database import init_db
from flipset.store import (
    CardFate,
    CardNotFoundError,
    CategoryExistsError,
    CategoryNotFoundError,
    SortDirection,
    SortField,
    SortOptions,
)

app = typer.Typer(
    help="flipset: flashcards, categories and round-based review sessions",
    no_args_is_help=True,
)
db_app = typer.Typer(help="Database management", no_args_is_help=True)
category_app = typer.Typer(help="Manage categories", no_args_is_help=True)
card_app = typer.Typer(help="Manage cards", no_args_is_help=True)
data_app = typer.Typer(help="Import and export", no_args_is_help=True)

app.add_typer(db_app, name="db")
app.add_typer(category_app, name="category")
app.add_typer(card_app, name="card")
app.add_typer(data_app, name="data")
app.add_typer(review_app, name="review")

console = Console()

# Errors a user can cause; anything else is a bug and keeps its traceback
USER_ERRORS = (
    CardNotFoundError,
    CategoryExistsError,
    CategoryNotFoundError,
    ImportValidationError,
    ValueError,
)


def _fail(error: Exception) -> None:
    rprint(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


def _preview(content: str, width: int = 50) -> str:
    flat = " ".join(content.split())
    return escape(flat if len(flat) <= width else flat[: width - 3] + "...")


# ========================================
# Database Commands
# ========================================


@db_app.command("init")
def db_init() -> None:
    """Create database tables."""
    init_db()
    rprint(f"[green]Database ready:[/green] {escape(get_settings().database_url)}")


# ========================================
# Category Commands
# ========================================


@category_app.command("list")
def category_list() -> None:
    """List categories with their card counts."""
    ctx = CLIContext()
    table = Table(title="Categories")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Cards", justify="right")

    for category in ctx.card_store.list_categories():
        table.add_row(category.id, escape(category.name), str(category.card_count))

    console.print(table)


@category_app.command("add")
def category_add(name: str = typer.Argument(..., help="Category name")) -> None:
    """Create a category."""
    try:
        category = CLIContext().card_store.create_category(name)
    except USER_ERRORS as e:
        _fail(e)
    rprint(f"[green]Created[/green] {escape(category.name)} ({category.id})")


@category_app.command("rename")
def category_rename(
    category_id: str = typer.Argument(..., help="Category id"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a category."""
    try:
        category = CLIContext().card_store.rename_category(category_id, name)
    except USER_ERRORS as e:
        _fail(e)
    rprint(f"[green]Renamed[/green] to {escape(category.name)}")


@category_app.command("delete")
def category_delete(
    category_id: str = typer.Argument(..., help="Category id"),
    fate: CardFate = typer.Option(..., "--fate", "-f", help="What happens to the cards"),
    to: Optional[str] = typer.Option(None, "--to", help="Target category id for --fate move"),
) -> None:
    """Delete a category, moving, uncategorizing or deleting its cards."""
    ctx = CLIContext()
    try:
        deleted = ctx.card_store.delete_category(category_id, fate, target_category_id=to)
    except USER_ERRORS as e:
        _fail(e)

    ctx.reconcile_session(deleted)
    rprint(f"[green]Category deleted.[/green] {len(deleted)} card(s) deleted with it.")


# ========================================
# Card Commands
# ========================================


@card_app.command("list")
def card_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by text"),
    sort: SortField = typer.Option(SortField.ALPHABETICAL, "--sort", help="Sort field"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
) -> None:
    """List cards."""
    ctx = CLIContext()
    direction = SortDirection.DESC if desc else SortDirection.ASC
    cards = ctx.card_store.list_cards(SortOptions(sort, direction), search=search)

    table = Table(title=f"Cards ({len(cards)})")
    table.add_column("ID", style="dim")
    table.add_column("Front", style="cyan")
    table.add_column("Back")
    table.add_column("Categories", style="magenta")

    for card in cards:
        names = ", ".join(c.name for c in card.categories) or "-"
        table.add_row(
            card.id, _preview(card.front_content), _preview(card.back_content), escape(names)
        )

    console.print(table)


@card_app.command("show")
def card_show(card_id: str = typer.Argument(..., help="Card id")) -> None:
    """Show a card."""
    card = CLIContext().card_store.get_card_by_id(card_id)
    if card is None:
        _fail(CardNotFoundError(card_id))

    rprint(f"[bold]Front:[/bold] {escape(card.front_content)}")
    rprint(f"[bold]Back:[/bold]  {escape(card.back_content)}")
    names = ", ".join(c.name for c in card.categories) or "Uncategorized"
    rprint(f"[dim]Categories: {escape(names)}[/dim]")


@card_app.command("add")
def card_add(
    front: str = typer.Option(..., "--front", help="Front content"),
    back: str = typer.Option(..., "--back", help="Back content"),
    category: Optional[List[str]] = typer.Option(None, "--category", "-c", help="Category id"),
) -> None:
    """Create a card."""
    try:
        card = CLIContext().card_store.create_card(front, back, category or [])
    except USER_ERRORS as e:
        _fail(e)
    rprint(f"[green]Created card[/green] {card.id}")


@card_app.command("edit")
def card_edit(
    card_id: str = typer.Argument(..., help="Card id"),
    front: Optional[str] = typer.Option(None, "--front", help="New front content"),
    back: Optional[str] = typer.Option(None, "--back", help="New back content"),
    category: Optional[List[str]] = typer.Option(
        None, "--category", "-c", help="Replace categories (repeatable)"
    ),
) -> None:
    """Edit a card; omitted options keep their current values."""
    store = CLIContext().card_store
    current = store.get_card_by_id(card_id)
    if current is None:
        _fail(CardNotFoundError(card_id))

    category_ids = category if category is not None else [c.id for c in current.categories]
    try:
        store.update_card(
            card_id,
            front if front is not None else current.front_content,
            back if back is not None else current.back_content,
            category_ids,
        )
    except USER_ERRORS as e:
        _fail(e)
    rprint("[green]Card updated.[/green]")


@card_app.command("delete")
def card_delete(card_id: str = typer.Argument(..., help="Card id")) -> None:
    """Delete a card (and drop it from the active session)."""
    ctx = CLIContext()
    engine = ctx.engine
    engine.load()
    if not engine.delete_card(card_id):
        _fail(CardNotFoundError(card_id))
    rprint("[green]Card deleted.[/green]")


# ========================================
# Import / Export Commands
# ========================================


@data_app.command("export")
def data_export(path: Path = typer.Argument(..., help="Output JSON file")) -> None:
    """Export all cards and categories."""
    data = CLIContext().exchange.export_data()
    write_export(data, path)
    rprint(
        f"[green]Exported[/green] {len(data.cards)} card(s) and "
        f"{len(data.categories)} category(ies) to {escape(str(path))}"
    )


@data_app.command("import")
def data_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export file"),
    on_conflict: ConflictResolution = typer.Option(
        ConflictResolution.MERGE,
        "--on-conflict",
        help="merge keeps existing cards; overwrite replaces cards owned by the category",
    ),
) -> None:
    """Import a JSON export."""
    ctx = CLIContext()
    try:
        data = read_export(path)
    except (ImportValidationError, OSError) as e:
        _fail(e)

    conflicts = ctx.exchange.find_import_conflicts(data)
    if conflicts:
        rprint(
            f"[yellow]Existing categories ({on_conflict.value}):[/yellow] "
            f"{escape(', '.join(conflicts))}"
        )

    result = ctx.exchange.import_data(data, {name: on_conflict for name in conflicts})
    ctx.reconcile_session(result.cards_deleted)
    rprint(
        f"[green]Imported[/green] {result.cards_imported} card(s), "
        f"{result.categories_imported} new category(ies)"
    )


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="1 MB", retention=3)

    app()


if __name__ == "__main__":
    main()
