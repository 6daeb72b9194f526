"""
Filter configuration and the composed inclusion predicate.

``build_predicate`` layers four short-circuiting checks, in this order:

1. the compiled search query must match;
2. ``hide_empty`` drops servers with no players, unless the server is pinned
   and ``pin_if_empty`` is set;
3. ``hide_full`` drops servers at or above capacity, pinned or not;
4. ``max_ping`` (0 disables it) drops servers at or above the ceiling,
   except those reporting the unknown-latency sentinel.

The search string is recompiled on every call: filters are cheap to build
and the text may have changed since the last evaluation.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from dataclasses import dataclass

from serverview.core.query import compile_query
from serverview.core.records import PING_UNKNOWN, Record

__all__ = ["FilterConfig", "PinConfig", "Predicate", "build_predicate", "is_pinned"]

Predicate = Callable[[Record], bool]


@dataclass(frozen=True)
class FilterConfig:
    """User-facing list filters."""

    search_text: str = ""
    hide_empty: bool = False
    hide_full: bool = False
    max_ping: int = 0


@dataclass(frozen=True)
class PinConfig:
    """Pinned server addresses and whether pins survive ``hide_empty``."""

    pinned_servers: frozenset[str] | None = None
    pin_if_empty: bool = False

    @classmethod
    def of(cls, addresses: Collection[str] | None, pin_if_empty: bool = False) -> PinConfig:
        return cls(
            pinned_servers=frozenset(addresses) if addresses is not None else None,
            pin_if_empty=pin_if_empty,
        )


def is_pinned(record: Record, pin_config: PinConfig | None) -> bool:
    """True iff pin config and its server list exist and contain the address."""
    if pin_config is None or pin_config.pinned_servers is None:
        return False
    return record.address in pin_config.pinned_servers


def build_predicate(filters: FilterConfig, pin_config: PinConfig | None = None) -> Predicate:
    """Compose search, occupancy, pin and ping rules into one inclusion test."""
    matches_query = compile_query(filters.search_text)
    pin_if_empty = pin_config is not None and pin_config.pin_if_empty

    def include(record: Record) -> bool:
        if not matches_query(record):
            return False

        if filters.hide_empty and record.current_players == 0:
            if not (pin_if_empty and is_pinned(record, pin_config)):
                return False

        if filters.hide_full and record.current_players >= record.max_players:
            return False

        if (
            filters.max_ping > 0
            and record.ping >= filters.max_ping
            and record.ping != PING_UNKNOWN
        ):
            return False

        return True

    return include
