"""
CLI utility helpers — record loading and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from serverview.core.errors import RecordError, ServerViewError
from serverview.core.ordering import COLUMNS
from serverview.core.pipeline import ServerListing
from serverview.core.records import PING_UNKNOWN, Record, ServerRecord

console = Console()
err_console = Console(stderr=True)


# ── Input ────────────────────────────────────────────────────────────────


def load_records(path: Path) -> list[ServerRecord]:
    """Load server records from a JSON file.

    The file holds either a list of server objects or an object with a
    ``"servers"`` list.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RecordError(f"Cannot read {path}", cause=e) from e
    except ValueError as e:
        raise RecordError(f"{path} is not valid JSON", cause=e) from e

    if isinstance(payload, dict):
        payload = payload.get("servers", [])
    if not isinstance(payload, list):
        raise RecordError(f"{path} must contain a list of servers")

    return [ServerRecord.from_dict(item) for item in payload]


def fail(error: ServerViewError) -> None:
    """Print an error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


# ── Output ───────────────────────────────────────────────────────────────


def _ping_text(ping: int) -> str:
    return "?" if ping == PING_UNKNOWN else str(ping)


def _cell(record: Record, column: str, listing: ServerListing) -> str:
    if column == "icon":
        return "*" if listing.is_pinned(record) else ""
    if column == "name":
        return escape(record.stripped_name)
    if column == "players":
        return f"{record.current_players}/{record.max_players}"
    if column == "ping":
        return _ping_text(record.ping)
    return escape(str(record.get_sortable(column)))


def render_servers(listing: ServerListing, *, title: str = "") -> None:
    """Render the listing's sorted view as a Rich table."""
    servers: Sequence[Record] = listing.sorted_servers
    if not servers:
        console.print("[dim]No servers match.[/dim]")
        return

    order = listing.sort_order
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for column, _label in COLUMNS:
        heading = column if column != "icon" else ""
        if column == order.key:
            heading += " ▲" if order.direction.value == "+" else " ▼"
        table.add_column(heading, overflow="fold")
    table.add_column("address", style="dim")

    for record in servers:
        table.add_row(*(_cell(record, column, listing) for column, _ in COLUMNS), record.address)

    console.print(table)
    console.print(
        f"\n[dim]Showing {len(servers)} of {len(listing.records)}"
        f" (sorted by {order.key} {order.direction.value})[/dim]"
    )


def output_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))
