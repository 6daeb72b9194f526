"""
CLI layer for serverview.

Provides a Typer application that drives ``serverview.core`` from the
terminal: load a JSON server dump, filter and sort it, inspect how a search
string is parsed, and change the persisted sort order. All listing logic
lives in core; this package handles argument parsing and rendering.

Entry point::

    serverview --help
"""

from serverview.cli.app import app

__all__ = ["app"]
