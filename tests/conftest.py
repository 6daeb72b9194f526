"""
Shared pytest fixtures for serverview tests.

This module provides:
- A ``make_server`` factory for ServerRecord instances
- A controllable monotonic clock for coalescing tests
- A small, varied server collection

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.
"""

import sys
from pathlib import Path
from typing import Any, Callable

import pytest
import structlog

# Ensure serverview package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from serverview.core.preferences import InMemoryPreferenceStore
from serverview.core.records import ServerRecord


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "cli" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def make_server() -> Callable[..., ServerRecord]:
    """Factory with sensible defaults; every call gets a unique address."""
    counter = {"n": 0}

    def _make(name: str = "Server", **fields: Any) -> ServerRecord:
        counter["n"] += 1
        fields.setdefault("address", f"10.0.0.{counter['n']}:30120")
        fields.setdefault("current_players", 1)
        fields.setdefault("max_players", 32)
        fields.setdefault("ping", 50)
        return ServerRecord(name=name, **fields)

    return _make


@pytest.fixture
def servers(make_server) -> list[ServerRecord]:
    """Mixed collection: empty, full, unreachable and tagged servers."""
    return [
        make_server("Alpha Roleplay", address="a1", current_players=10, ping=40,
                    data={"tags": ["rp", "serious"], "gametype": "Roleplay"}),
        make_server("Beta Racing", address="a2", current_players=0, ping=20,
                    data={"tags": ["racing"], "gametype": "Race"}),
        make_server("Gamma PvP", address="a3", current_players=32, max_players=32, ping=80,
                    data={"tags": ["pvp", "vanilla"]}),
        make_server("Delta Freeroam", address="a4", current_players=5, ping=9999,
                    data={"mapname": "Los Santos"}),
    ]


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo configure_logging() so later tests never write to a closed capture stream."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
