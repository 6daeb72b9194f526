"""Change coalescing — time-windowed debounce for recompute triggers.

Bursts of change notifications (dozens of servers answering a ping at
once) must not cause one recompute each. ``ChangeCoalescer`` collapses every
signal that arrives within ``window_seconds`` of the previous one into a
single callback at the end of the window.

ARCHITECTURE
────────────
::

    signal() ──► deadline = clock() + window   (re-armed on every signal)
                      │
          ┌───────────┴────────────┐
          │ loop given             │ no loop
          ▼                        ▼
    loop.call_at(deadline)     poll() by the owner
          │                        │
          └──────► fire() ◄────────┘
                     │
                 callback()   (deadline cleared first)

A new signal inside the window extends the deadline instead of firing
early. There is no cancellation beyond ``flush()`` (fire now) and
``reset()`` (drop the pending deadline).

Example::

    coalescer = ChangeCoalescer(1.0, listing.recompute)
    for _ in range(50):
        coalescer.signal()
    coalescer.poll()        # too early, nothing happens
    ...                     # one second later
    coalescer.poll()        # listing.recompute() runs once
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from serverview.core.logging import get_logger

__all__ = ["ChangeCoalescer"]

logger = get_logger(__name__)


class ChangeCoalescer:
    """Debounce signals into at most one callback per quiet window.

    Args:
        window_seconds: Quiet period that must elapse after the last signal
        callback: Invoked once per coalesced burst
        clock: Monotonic clock; ignored when ``loop`` is given (``loop.time`` is used)
        loop: Optional asyncio loop that fires the callback via ``call_at``
    """

    def __init__(
        self,
        window_seconds: float,
        callback: Callable[[], None],
        *,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.window_seconds = window_seconds
        self._callback = callback
        self._loop = loop
        self._clock = loop.time if loop is not None else clock
        self._deadline: float | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._signals = 0
        self._fired = 0

    @property
    def pending(self) -> bool:
        """True while a coalesced callback is scheduled."""
        return self._deadline is not None

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def fired_count(self) -> int:
        return self._fired

    def signal(self) -> None:
        """Record a change; (re)arm the deadline one window from now."""
        self._signals += 1
        self._deadline = self._clock() + self.window_seconds

        if self._loop is not None:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = self._loop.call_at(self._deadline, self._on_timer)

    def poll(self) -> bool:
        """Fire the callback if the deadline has passed. Returns True if it fired."""
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self.fire()
        return True

    def flush(self) -> bool:
        """Fire immediately if a callback is pending."""
        if self._deadline is None:
            return False
        self.fire()
        return True

    def reset(self) -> None:
        """Forget any pending callback without firing it."""
        self._deadline = None
        self._signals = 0
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def fire(self) -> None:
        coalesced = self._signals
        self.reset()
        self._fired += 1
        logger.debug("changes_coalesced", signals=coalesced, window_seconds=self.window_seconds)
        self._callback()

    def _on_timer(self) -> None:
        # Every signal() cancels the previous handle, so this one is current
        self._handle = None
        if self._deadline is not None:
            self.fire()
