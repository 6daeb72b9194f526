"""
Root Typer application for the serverview CLI.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from typer import Typer

from serverview.cli.utils import console, fail, load_records, output_json, render_servers
from serverview.core.errors import ServerViewError
from serverview.core.filters import FilterConfig, PinConfig
from serverview.core.logging import configure_logging
from serverview.core.ordering import SortDirection, SortOrder
from serverview.core.pipeline import ServerListing
from serverview.core.query import describe_terms, explain_query
from serverview.core.settings import ServerViewSettings

app = Typer(
    name="serverview",
    help="serverview — search, filter and sort live server listings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from serverview import __version__

        typer.echo(f"serverview {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """serverview CLI — query and order server listings."""


def _settings(data_dir: Path | None) -> ServerViewSettings:
    settings = ServerViewSettings(data_dir=data_dir) if data_dir else ServerViewSettings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    return settings


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("list")
def list_servers(
    path: Path = typer.Argument(..., help="JSON file with the server list."),
    search: str = typer.Option("", "--search", "-s", help="Search query."),
    hide_empty: bool = typer.Option(False, "--hide-empty", help="Hide servers with no players."),
    hide_full: bool = typer.Option(False, "--hide-full", help="Hide full servers."),
    max_ping: int = typer.Option(0, "--max-ping", min=0, help="Hide servers at or above this ping (0 = off)."),
    pins: list[str] = typer.Option([], "--pin", help="Pinned server address (repeatable)."),
    pin_if_empty: bool = typer.Option(False, "--pin-if-empty", help="Keep empty pinned servers visible."),
    sort: str | None = typer.Option(None, "--sort", help="Sort column (default: persisted order)."),
    descending: bool = typer.Option(False, "--desc", help="Sort --sort column descending."),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Preference directory."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Filter and sort a server list."""
    settings = _settings(data_dir)

    try:
        records = load_records(path)
    except ServerViewError as e:
        fail(e)

    listing = ServerListing.from_settings(settings)
    if sort:
        direction = SortDirection.DESC if descending else SortDirection.ASC
        listing.set_sort_order(SortOrder(sort, direction))
    listing.set_pin_config(PinConfig.of(pins, pin_if_empty) if pins else None)
    listing.set_filters(
        FilterConfig(
            search_text=search,
            hide_empty=hide_empty,
            hide_full=hide_full,
            max_ping=max_ping,
        )
    )
    listing.set_records(records)

    if json_out:
        output_json(
            {
                "sort_order": listing.sort_order.to_list(),
                "total": len(listing.records),
                "servers": [
                    {**record.to_dict(), "pinned": listing.is_pinned(record)}
                    for record in listing.sorted_servers
                ],
            }
        )
        return

    render_servers(listing, title=str(path.name))


@app.command("explain")
def explain(
    query: str = typer.Argument(..., help="Search query to parse."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show how a search query is split into terms."""
    rows = explain_query(query)

    if json_out:
        output_json(
            [
                {
                    "raw": raw,
                    "kind": type(term).__name__ if term else None,
                    "negated": term.negated if term else False,
                    "status": status,
                }
                for raw, term, status in rows
            ]
        )
        return

    if not rows:
        console.print("[dim]Empty query: matches every server.[/dim]")
        return

    for raw, term, status in rows:
        if term is None:
            console.print(f"  [dim]{escape(repr(raw))}: skipped (too short)[/dim]")
            continue
        rendered = escape(describe_terms([term])[0])
        style = "green" if status == "active" else "red"
        console.print(f"  [cyan]{escape(repr(raw))}[/cyan] → {type(term).__name__} {rendered} [{style}]{status}[/{style}]")


@app.command("sort")
def sort_column(
    column: str = typer.Argument(..., help="Column header to click (e.g. name, players, ping)."),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Preference directory."),
) -> None:
    """Apply a column-header click to the persisted sort order."""
    settings = _settings(data_dir)
    listing = ServerListing.from_settings(settings)
    listing.update_sorting(column)

    order = listing.sort_order
    console.print(f"Sort order: [bold]{order.key}[/bold] {order.direction.value}")


if __name__ == "__main__":
    app()
