"""
Deterministic ordering of the filtered server list.

Comparator chain (first non-zero result wins):

::

    1. pin priority      pinned before unpinned
    2. user sort order   SortOrder.key, "+" ascending / "-" descending
    3. ping              ascending, always
    4. name              ascending, always

The sort is Python's stable sort, so records still tied after all four keys
keep their input order.

Examples:
    >>> order = SortOrder("ping", SortDirection.ASC)
    >>> order.select("name")
    SortOrder(key='name', direction=<SortDirection.ASC: '+'>)
    >>> order.select("ping")
    SortOrder(key='ping', direction=<SortDirection.DESC: '-'>)
    >>> SortOrder.from_json('["players", "-"]').to_json()
    '["players", "-"]'
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any

from serverview.core.errors import InvalidSortOrderError
from serverview.core.filters import FilterConfig, PinConfig, build_predicate, is_pinned
from serverview.core.records import Orderable, Record, sortable_value

__all__ = [
    "COLUMNS",
    "DEFAULT_SORT_ORDER",
    "Comparator",
    "SortDirection",
    "SortOrder",
    "build_comparator",
    "compare_values",
    "sort_and_filter",
]

# (column, label key) pairs rendered as list headings
COLUMNS: tuple[tuple[str, str], ...] = (
    ("icon", ""),
    ("name", "#ServerList_Name"),
    ("players", "#ServerList_Players"),
    ("ping", "#ServerList_Ping"),
)

Comparator = Callable[[Record, Record], int]


class SortDirection(str, Enum):
    ASC = "+"
    DESC = "-"

    def flipped(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortOrder:
    """The single user-chosen primary sort key and its direction."""

    key: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key:
            raise InvalidSortOrderError([self.key, self.direction], "Sort key must be a non-empty string")
        if not isinstance(self.direction, SortDirection):
            try:
                object.__setattr__(self, "direction", SortDirection(self.direction))
            except ValueError as e:
                raise InvalidSortOrderError(
                    [self.key, self.direction], "Sort direction must be '+' or '-'", cause=e
                ) from e

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    def select(self, column: str) -> SortOrder:
        """Order after a click on ``column``: new column ascending, same column flipped."""
        if column != self.key:
            return SortOrder(column, SortDirection.ASC)
        return SortOrder(column, self.direction.flipped())

    def to_list(self) -> list[str]:
        return [self.key, self.direction.value]

    def to_json(self) -> str:
        return json.dumps(self.to_list())

    @classmethod
    def from_value(cls, value: Any) -> SortOrder:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise InvalidSortOrderError(value)
        return cls(value[0], value[1])

    @classmethod
    def from_json(cls, text: str) -> SortOrder:
        """Parse a persisted ``["key", "+"|"-"]`` pair.

        Raises:
            InvalidSortOrderError: text is not JSON or not a valid pair.
        """
        try:
            value = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidSortOrderError(text, cause=e) from e
        return cls.from_value(value)


DEFAULT_SORT_ORDER = SortOrder("ping", SortDirection.ASC)


def compare_values(a: Orderable, b: Orderable) -> int:
    """Three-way compare of two sortable values.

    Numbers compare numerically and strings lexicographically. Values of
    incomparable types fall back to comparing their string forms.
    """
    try:
        if a > b:
            return 1
        if a < b:
            return -1
        return 0
    except TypeError:
        return compare_values(str(a), str(b))


def _by_key(key: str, descending: bool = False) -> Comparator:
    def compare(a: Record, b: Record) -> int:
        result = compare_values(sortable_value(a, key), sortable_value(b, key))
        return -result if descending else result

    return compare


def build_comparator(sort_order: SortOrder, pin_config: PinConfig | None = None) -> Comparator:
    """Chain pin priority, the user's key, then ping and name."""

    def by_pin(a: Record, b: Record) -> int:
        a_pinned = is_pinned(a, pin_config)
        b_pinned = is_pinned(b, pin_config)
        if a_pinned == b_pinned:
            return 0
        return -1 if a_pinned else 1

    chain: tuple[Comparator, ...] = (
        by_pin,
        _by_key(sort_order.key, sort_order.descending),
        _by_key("ping"),
        _by_key("name"),
    )

    def compare(a: Record, b: Record) -> int:
        for entry in chain:
            result = entry(a, b)
            if result != 0:
                return result
        return 0

    return compare


def sort_and_filter(
    records: Iterable[Record],
    filters: FilterConfig,
    pin_config: PinConfig | None,
    sort_order: SortOrder,
) -> list[Record]:
    """Filter ``records`` through the composed predicate, then sort the rest."""
    include = build_predicate(filters, pin_config)
    visible = [record for record in records if include(record)]
    visible.sort(key=cmp_to_key(build_comparator(sort_order, pin_config)))
    return visible
