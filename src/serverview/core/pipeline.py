"""
Server listing pipeline — keeps a sorted, filtered view of live records.

The pipeline owns the inputs of the listing (records, filters, pins, sort
order) and publishes ``sorted_servers``, recomputed from scratch whenever
they change.

Manifesto:
    Server lists churn constantly: every status ping updates a record.
    Re-sorting on each notification wastes work and makes rows jump around,
    while never re-sorting leaves the view stale. The pipeline splits the
    two kinds of change:

    - **Input changes** (new record set, filters, pins, sort order) are
      explicit user or source actions and recompute immediately.
    - **Record changes** are coalesced: notifications within one window
      collapse into a single recompute at the end of the window.

Architecture:
    ::

        set_records / set_filters / set_pin_config / set_sort_order
              │                                   update_sorting(column)
              ▼                                          │
        subscribe new addresses ──► recompute() ◄────────┘
                                         ▲
        record.on_changed ──► ChangeCoalescer.signal() ── (window) ──┘

        recompute():
            sort_and_filter(records, filters, pins, order)
            publish sorted_servers
            save_sort_order(store, order)   failures logged, never raised
            on_publish(view)

Examples:
    >>> listing = ServerListing(InMemoryPreferenceStore())
    >>> listing.set_records([a, b, c])
    >>> listing.set_filters(FilterConfig(search_text="tag:pvp", hide_empty=True))
    >>> [s.address for s in listing.sorted_servers]
    ['10.0.0.3:30120']
    >>> listing.update_sorting("name")
    >>> listing.sort_order.to_list()
    ['name', '+']

Guardrails:
    Single-threaded by contract: all mutators, record notifications and
    ``poll()`` are expected on one thread (or one asyncio loop). No locking.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence

from serverview.core.coalesce import ChangeCoalescer
from serverview.core.errors import PreferenceStoreError
from serverview.core.events import SubscriptionHandle
from serverview.core.filters import FilterConfig, PinConfig, is_pinned
from serverview.core.logging import get_logger
from serverview.core.ordering import SortOrder, sort_and_filter
from serverview.core.preferences import (
    JsonFilePreferenceStore,
    PreferenceStore,
    load_sort_order,
    save_sort_order,
)
from serverview.core.records import Record
from serverview.core.settings import ServerViewSettings

__all__ = ["DEFAULT_WINDOW_SECONDS", "ServerListing"]

logger = get_logger(__name__)

DEFAULT_WINDOW_SECONDS = 1.0


class ServerListing:
    """Change-driven, coalesced recompute of the sorted server view.

    Args:
        store: Preference store holding the persisted sort order
        window_seconds: Coalescing window for record-change notifications
        clock: Monotonic clock used when no loop is given
        loop: asyncio loop that fires coalesced recomputes on its own;
            without one the owner calls ``poll()``
        on_publish: Called with the new view after every recompute
    """

    def __init__(
        self,
        store: PreferenceStore,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
        on_publish: Callable[[Sequence[Record]], None] | None = None,
    ):
        self._store = store
        self._on_publish = on_publish

        self._records: list[Record] = []
        self._filters = FilterConfig()
        self._pin_config: PinConfig | None = None
        self._sort_order = load_sort_order(store)

        self._subscriptions: dict[str, SubscriptionHandle] = {}
        self._sorted: tuple[Record, ...] = ()
        self._dirty = True
        self._recompute_count = 0

        self._coalescer = ChangeCoalescer(
            window_seconds, self.recompute, clock=clock, loop=loop
        )

    @classmethod
    def from_settings(cls, settings: ServerViewSettings, **kwargs) -> ServerListing:
        """Build a listing backed by the preference file in ``settings.data_dir``."""
        return cls(
            JsonFilePreferenceStore(settings.preferences_path),
            window_seconds=settings.coalesce_window_seconds,
            **kwargs,
        )

    # ── Published state ──────────────────────────────────────────

    @property
    def sorted_servers(self) -> tuple[Record, ...]:
        return self._sorted

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @property
    def filters(self) -> FilterConfig:
        return self._filters

    @property
    def pin_config(self) -> PinConfig | None:
        return self._pin_config

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def pending(self) -> bool:
        """True while a coalesced recompute is waiting for its window to close."""
        return self._coalescer.pending

    @property
    def recompute_count(self) -> int:
        return self._recompute_count

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def is_pinned(self, record: Record) -> bool:
        return is_pinned(record, self._pin_config)

    # ── Input changes ────────────────────────────────────────────

    def set_records(self, records: Iterable[Record] | None) -> None:
        """Replace the record collection; subscribes to addresses not seen before."""
        self._records = list(records or [])
        self._subscribe(self._records)
        self._input_changed("records")

    def set_filters(self, filters: FilterConfig) -> None:
        self._filters = filters
        self._input_changed("filters")

    def set_pin_config(self, pin_config: PinConfig | None) -> None:
        self._pin_config = pin_config
        self._input_changed("pin_config")

    def set_sort_order(self, sort_order: SortOrder) -> None:
        self._sort_order = sort_order
        self._input_changed("sort_order")

    def update_sorting(self, column: str) -> None:
        """Column-header click: sort by a new column ascending, or flip the current one."""
        self._sort_order = self._sort_order.select(column)
        logger.debug(
            "sorting_updated",
            key=self._sort_order.key,
            direction=self._sort_order.direction.value,
        )
        self._input_changed("sort_order")

    # ── Record changes ───────────────────────────────────────────

    def _subscribe(self, records: Iterable[Record]) -> None:
        for record in records:
            if record.address in self._subscriptions:
                continue
            self._subscriptions[record.address] = record.on_changed.subscribe(
                self._record_changed
            )

    def _record_changed(self) -> None:
        self._dirty = True
        self._coalescer.signal()

    def poll(self) -> bool:
        """Run the coalesced recompute if its window has closed."""
        return self._coalescer.poll()

    def flush(self) -> bool:
        """Run a pending coalesced recompute now."""
        return self._coalescer.flush()

    # ── Recompute ────────────────────────────────────────────────

    def _input_changed(self, reason: str) -> None:
        self._dirty = True
        self._coalescer.reset()
        logger.debug("listing_input_changed", reason=reason)
        self.recompute()

    def recompute(self) -> tuple[Record, ...]:
        """Filter and sort the current records, publish the view and persist the order."""
        started = time.perf_counter()
        view = tuple(
            sort_and_filter(self._records, self._filters, self._pin_config, self._sort_order)
        )

        self._sorted = view
        self._dirty = False
        self._recompute_count += 1

        logger.debug(
            "recompute_completed",
            visible=len(view),
            total=len(self._records),
            sort_key=self._sort_order.key,
            sort_direction=self._sort_order.direction.value,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
        )

        self._persist_sort_order()

        if self._on_publish is not None:
            self._on_publish(view)
        return view

    def _persist_sort_order(self) -> None:
        try:
            save_sort_order(self._store, self._sort_order)
        except PreferenceStoreError as e:
            logger.warning("sort_order_persist_failed", error=str(e))
