# src/annals/cli.py
"""
Annals Command Line Interface (CLI).

The operator's terminal front-end, built with `typer` and `rich`. It talks to
the same `EventService` as the HTTP API, acting as the owner: whoever holds
the store credentials in their environment already has write access.

Usage
-----
    $ annals list --category person
    $ annals add --year=-44 --name "Assassination of Caesar" --category event
    $ annals update 6f1c... --end-year 476
    $ annals delete 6f1c...
    $ annals serve --port 8000
"""

from __future__ import annotations

from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from annals.core.contracts import CATEGORY_STYLES, Category, TimelineEvent
from annals.core.formatting import format_year_range
from annals.core.result import Failure
from annals.core.settings import load_settings
from annals.service import EventService

load_dotenv()

app = typer.Typer(
    help="Annals: keep a single-owner timeline in a versioned JSON document.",
    rich_markup_mode="markdown",
    no_args_is_help=True,
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _service() -> EventService:
    """Build the service from the current settings (patched in tests)."""
    return EventService.from_settings(load_settings())


def _fail(failure: Failure) -> typer.Exit:
    where = f" ({failure.field})" if failure.field else ""
    console.print(f"[bold red]{failure.kind.value}{where}:[/bold red] {failure.message}")
    return typer.Exit(code=1)


def _render_event(event: TimelineEvent) -> None:
    style = CATEGORY_STYLES[event.category]
    console.print(
        f"[bold]{event.name}[/bold]  [{style.color}]{style.label}[/]  "
        f"{format_year_range(event.year, event.end_year)}  [dim]{event.id}[/dim]"
    )


def _collect(**options: Any) -> dict[str, Any]:
    """Keep only the options the user actually passed, keyed by wire name."""
    return {key: value for key, value in options.items() if value is not None}


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command("list")
def list_events(
    category: Annotated[
        Category | None, typer.Option("--category", "-c", help="Only this category")
    ] = None,
) -> None:
    """Show the timeline, newest year first."""
    result = _service().list_events()
    if result.is_err():
        raise _fail(result.unwrap_err())
    collection = result.unwrap()

    events = [
        e for e in collection.sorted_newest_first() if category is None or e.category == category
    ]
    table = Table(title=f"Timeline ({len(events)} events)")
    table.add_column("When", justify="right", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Region")
    table.add_column("Id", style="dim")
    for event in events:
        style = CATEGORY_STYLES[event.category]
        table.add_row(
            format_year_range(event.year, event.end_year),
            event.name,
            f"[{style.color}]{style.label}[/]",
            event.region or "",
            event.id,
        )
    console.print(table)


@app.command()
def categories() -> None:
    """List the allowed categories."""
    for category, style in CATEGORY_STYLES.items():
        console.print(f"[{style.color}]●[/] {category.value:<13} {style.label}")


@app.command()
def add(
    year: Annotated[int, typer.Option(help="Start year; negative for BC")],
    name: Annotated[str, typer.Option(help="Event name")],
    category: Annotated[Category, typer.Option(help="Event category")],
    end_year: Annotated[int | None, typer.Option(help="Optional end year")] = None,
    region: Annotated[str | None, typer.Option()] = None,
    description: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Create an event."""
    fields = _collect(
        year=year,
        name=name,
        category=category.value,
        endYear=end_year,
        region=region,
        description=description,
    )
    result = _service().create_event(fields, is_owner=True)
    if result.is_err():
        raise _fail(result.unwrap_err())
    console.print("[green]Created[/green]")
    _render_event(result.unwrap())


@app.command()
def update(
    event_id: Annotated[str, typer.Argument(help="Id of the event to change")],
    year: Annotated[int | None, typer.Option()] = None,
    name: Annotated[str | None, typer.Option()] = None,
    category: Annotated[Category | None, typer.Option()] = None,
    end_year: Annotated[int | None, typer.Option()] = None,
    region: Annotated[str | None, typer.Option()] = None,
    description: Annotated[str | None, typer.Option()] = None,
    clear: Annotated[
        list[str] | None,
        typer.Option(help="Clear an optional field: endYear, region or description"),
    ] = None,
) -> None:
    """Change some fields of an event; the id never changes."""
    fields = _collect(
        year=year,
        name=name,
        category=category.value if category else None,
        endYear=end_year,
        region=region,
        description=description,
    )
    for key in clear or []:
        fields[key] = None
    if not fields:
        console.print("[yellow]Nothing to update.[/yellow]")
        raise typer.Exit(code=2)

    result = _service().update_event(event_id, fields, is_owner=True)
    if result.is_err():
        raise _fail(result.unwrap_err())
    console.print("[green]Updated[/green]")
    _render_event(result.unwrap())


@app.command()
def delete(
    event_id: Annotated[str, typer.Argument(help="Id of the event to remove")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Remove an event."""
    if not yes and not Confirm.ask(f"Delete event {event_id}?", default=False):
        raise typer.Exit(code=1)
    result = _service().delete_event(event_id, is_owner=True)
    if result.is_err():
        raise _fail(result.unwrap_err())
    console.print(f"[green]Deleted[/green] {event_id}")


@app.command()
def export() -> None:
    """Print the collection as JSON to stdout (pipe-friendly)."""
    result = _service().list_events()
    if result.is_err():
        raise _fail(result.unwrap_err())
    typer.echo(result.unwrap().to_document().decode("utf-8"), nl=False)


@app.command()
def serve(
    host: Annotated[str, typer.Option()] = "127.0.0.1",
    port: Annotated[int, typer.Option()] = 8000,
    reload: Annotated[bool, typer.Option()] = False,
) -> None:
    """Run the HTTP API with uvicorn."""
    from annals.api.server import main

    main(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
