"""
Server records and field access.

The listing core never owns records: they are populated and mutated by a
record source and only read here. ``Record`` is the structural contract the
core relies on; ``ServerRecord`` is the concrete dataclass the CLI and tests
use.

Field access comes in two flavours:

- ``sortable_value(record, key)`` delegates to the record's own sortable
  projection. Only ``ping`` and ``name`` are assumed to exist, as the fixed
  fallback sort keys.
- ``category_value(record, category)`` resolves a category-scoped search
  field in two steps: the category name itself, then its pluralized form
  (``category + "s"``), the latter only when it holds a list.

Examples:
    >>> rec = ServerRecord(address="10.0.0.1:30120", name="^1Red ^7Server",
    ...                    data={"tags": ["pvp", "vanilla"]})
    >>> rec.stripped_name
    'Red Server'
    >>> category_value(rec, "tag")
    ['pvp', 'vanilla']
    >>> category_value(rec, "gametype") is None
    True
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from dataclasses import fields as dataclass_fields
from typing import Any, Protocol, Union, runtime_checkable

from serverview.core.errors import RecordError
from serverview.core.events import ChangeEmitter, Subscribable

__all__ = [
    "PING_UNKNOWN",
    "Scalar",
    "FieldValue",
    "Orderable",
    "Record",
    "ServerRecord",
    "category_value",
    "field_text",
    "sortable_value",
    "strip_colors",
]

# Latency reported for servers that have not answered a ping (yet).
PING_UNKNOWN = 9999

Scalar = Union[str, int, float, bool]
FieldValue = Union[Scalar, list[Scalar]]
Orderable = Union[str, int, float]

_COLOR_CODE_RE = re.compile(r"\^[0-9]")


def strip_colors(name: str) -> str:
    """Remove ``^0``..``^9`` colour codes from a display name."""
    return _COLOR_CODE_RE.sub("", name)


@runtime_checkable
class Record(Protocol):
    """Read-only view of a server as consumed by the listing core."""

    address: str
    stripped_name: str
    current_players: int
    max_players: int
    ping: int
    data: Mapping[str, Any]
    on_changed: Subscribable

    def get_sortable(self, key: str) -> Orderable:
        ...


def field_text(value: Any) -> str:
    """String form of a scalar field value, as matched by category terms."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def category_value(record: Record, category: str) -> FieldValue | None:
    """Resolve ``category`` on the record's open field mapping.

    Looks up ``category`` first; when absent, falls back to ``category + "s"``
    but only accepts it when it is a list. Returns ``None`` when neither
    resolves.
    """
    value = record.data.get(category)
    if value is not None:
        return value

    plural = record.data.get(category + "s")
    if isinstance(plural, (list, tuple)):
        return list(plural)

    return None


def sortable_value(record: Record, key: str) -> Orderable:
    """Orderable projection of ``key`` for sorting."""
    return record.get_sortable(key)


@dataclass(eq=False)
class ServerRecord:
    """
    A live server entry.

    ``eq=False`` keeps identity semantics: two entries are the same record
    only if they are the same object, even when every field matches.
    Mutating fields through ``update()`` notifies subscribers.
    """

    address: str
    name: str = ""
    current_players: int = 0
    max_players: int = 0
    ping: int = PING_UNKNOWN
    data: dict[str, Any] = field(default_factory=dict)
    stripped_name: str = ""
    on_changed: ChangeEmitter = field(default_factory=ChangeEmitter, repr=False)

    def __post_init__(self) -> None:
        if not self.stripped_name:
            self.stripped_name = strip_colors(self.name)

    def get_sortable(self, key: str) -> Orderable:
        if key == "name":
            return self.stripped_name.lower()
        if key == "players":
            return self.current_players
        if key == "max_players":
            return self.max_players
        if key == "ping":
            return self.ping

        value = category_value(self, key)
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(field_text(v) for v in value).lower()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return field_text(value).lower()

    def update(self, **fields: Any) -> None:
        """Set one or more data fields and emit a change notification."""
        unknown = sorted(set(fields) - _UPDATABLE_FIELDS)
        if unknown:
            raise RecordError(f"Unknown record field: {', '.join(unknown)}").with_context(
                address=self.address
            )
        for key, value in fields.items():
            setattr(self, key, value)

        if "name" in fields and "stripped_name" not in fields:
            self.stripped_name = strip_colors(self.name)

        self.on_changed.emit()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ServerRecord:
        """Build a record from a JSON-style mapping.

        Accepts both the short keys used in fixtures (``address``, ``name``,
        ``players``) and the server-info style keys (``EndPoint``,
        ``hostname``, ``clients``, ``sv_maxclients``). Every other key lands
        in ``data`` for category-scoped search.
        """
        if not isinstance(payload, Mapping):
            raise RecordError("Record payload must be a mapping").with_context(
                payload_type=type(payload).__name__
            )

        values = dict(payload)
        address = values.pop("address", None) or values.pop("EndPoint", None)
        if not address:
            raise RecordError("Record payload has no address").with_context(
                keys=sorted(payload.keys())
            )

        name = values.pop("name", None) or values.pop("hostname", "")
        try:
            current = int(_pop_first(values, ("players", "clients"), 0))
            maximum = int(_pop_first(values, ("max_players", "sv_maxclients"), 0))
            ping = int(values.pop("ping", PING_UNKNOWN))
        except (TypeError, ValueError) as e:
            raise RecordError(
                f"Record {address} has a non-numeric count", cause=e
            ).with_context(address=address) from e

        extra = values.pop("data", None)
        data: dict[str, Any] = dict(extra) if isinstance(extra, Mapping) else {}
        data.update(values)

        return cls(
            address=str(address),
            name=str(name),
            current_players=current,
            max_players=maximum,
            ping=ping,
            data=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "players": self.current_players,
            "max_players": self.max_players,
            "ping": self.ping,
            "data": dict(self.data),
        }


def _pop_first(values: dict[str, Any], keys: Sequence[str], default: Any) -> Any:
    for key in keys:
        if key in values:
            return values.pop(key)
    return default


_UPDATABLE_FIELDS = frozenset(f.name for f in dataclass_fields(ServerRecord)) - {"on_changed"}
