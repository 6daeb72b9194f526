"""
Per-record change notification.

Each server record owns a ``ChangeEmitter``; the listing pipeline subscribes
to it once per address and forwards every notification into its coalesced
recompute signal. Notifications carry no payload.

Delivery is synchronous and in subscription order. A failing handler is
logged and does not stop delivery to the remaining handlers, so one bad
subscriber cannot starve the others.

Example::

    emitter = ChangeEmitter()
    handle = emitter.subscribe(lambda: print("changed"))
    emitter.emit()      # prints "changed"
    handle.unsubscribe()
    emitter.emit()      # nothing
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from serverview.core.logging import get_logger

__all__ = ["ChangeHandler", "ChangeEmitter", "Subscribable", "SubscriptionHandle"]

logger = get_logger(__name__)

ChangeHandler = Callable[[], None]


@dataclass
class SubscriptionHandle:
    """Handle returned by ``subscribe``; detaches the handler when unsubscribed."""

    id: str
    _emitter: ChangeEmitter | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._emitter is not None and self.id in self._emitter._handlers

    def unsubscribe(self) -> None:
        if self._emitter is not None:
            self._emitter._handlers.pop(self.id, None)
            self._emitter = None


@runtime_checkable
class Subscribable(Protocol):
    """Anything that can notify subscribers that it changed."""

    def subscribe(self, handler: ChangeHandler) -> SubscriptionHandle:
        ...


class ChangeEmitter:
    """Synchronous, payload-free change notifier."""

    def __init__(self) -> None:
        self._handlers: dict[str, ChangeHandler] = {}

    def subscribe(self, handler: ChangeHandler) -> SubscriptionHandle:
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        self._handlers[sub_id] = handler
        return SubscriptionHandle(id=sub_id, _emitter=self)

    def emit(self) -> None:
        """Notify every current subscriber."""
        for sub_id, handler in list(self._handlers.items()):
            try:
                handler()
            except Exception as e:
                logger.warning(
                    "change_handler_error",
                    subscription_id=sub_id,
                    error=str(e),
                )

    @property
    def subscription_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._handlers)
