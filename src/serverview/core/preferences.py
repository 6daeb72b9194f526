"""
Durable key/value preferences.

The listing persists exactly one value, its sort order, under the key
``"sortOrder"`` as a JSON ``["key", "+"|"-"]`` pair. Stores hold plain
strings; encoding is the caller's concern.

Architecture:
    ::

        PreferenceStore (Protocol)
        ├── InMemoryPreferenceStore  — tests, ephemeral sessions
        └── JsonFilePreferenceStore  — one JSON object on disk

        API: get(key) → str | None
             set(key, value)
             delete(key)

Examples:
    >>> store = InMemoryPreferenceStore()
    >>> load_sort_order(store)
    SortOrder(key='ping', direction=<SortDirection.ASC: '+'>)
    >>> save_sort_order(store, SortOrder("name", "-"))
    >>> store.get(SORT_ORDER_KEY)
    '["name", "-"]'

Guardrails:
    A missing or malformed stored value is never an error for the caller:
    ``load_sort_order`` falls back to ``DEFAULT_SORT_ORDER``.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from serverview.core.errors import InvalidSortOrderError, PreferenceStoreError
from serverview.core.logging import get_logger
from serverview.core.ordering import DEFAULT_SORT_ORDER, SortOrder

__all__ = [
    "SORT_ORDER_KEY",
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "load_sort_order",
    "save_sort_order",
]

logger = get_logger(__name__)

SORT_ORDER_KEY = "sortOrder"


@runtime_checkable
class PreferenceStore(Protocol):
    """Protocol for string key/value preference storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``. No-op if absent."""
        ...


class InMemoryPreferenceStore:
    """Dictionary-backed store. Values live as long as the instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self.writes += 1

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFilePreferenceStore:
    """Preferences kept as one JSON object in a file.

    The file is re-read on every ``get`` so edits by another process are
    picked up, and written atomically (temp file + rename) on ``set``.
    A missing file reads as empty; an unreadable one also reads as empty,
    with a warning.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise PreferenceStoreError(
                f"Cannot read preferences from {self.path}", cause=e
            ) from e

        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            # UnicodeDecodeError is a ValueError too
            logger.warning("preferences_file_corrupt", path=str(self.path))
            return {}

        if not isinstance(data, dict):
            logger.warning("preferences_file_corrupt", path=str(self.path))
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, values: dict[str, str]) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(values, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PreferenceStoreError(
                f"Cannot write preferences to {self.path}", cause=e
            ) from e
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = value
        self._write(values)

    def delete(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)


def load_sort_order(store: PreferenceStore) -> SortOrder:
    """Read the persisted sort order, falling back to ping ascending."""
    try:
        raw = store.get(SORT_ORDER_KEY)
    except PreferenceStoreError as e:
        logger.warning("sort_order_read_failed", error=str(e))
        return DEFAULT_SORT_ORDER

    if raw is None:
        return DEFAULT_SORT_ORDER

    try:
        order = SortOrder.from_json(raw)
    except InvalidSortOrderError:
        logger.info("sort_order_malformed", value=raw)
        return DEFAULT_SORT_ORDER

    logger.debug("sort_order_restored", key=order.key, direction=order.direction.value)
    return order


def save_sort_order(store: PreferenceStore, order: SortOrder) -> None:
    """Overwrite the persisted sort order.

    Raises:
        PreferenceStoreError: the store could not be written.
    """
    store.set(SORT_ORDER_KEY, order.to_json())
