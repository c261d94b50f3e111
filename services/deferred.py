"""Single-slot deferred callback used for debouncing."""
from __future__ import annotations

import asyncio
from typing import Callable, Optional


class DeferredTask:
    """Runs ``callback`` once ``delay`` seconds after the last :meth:`arm`.

    Arming while a call is pending replaces it, so a burst of arms results in
    exactly one call.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.delay = delay
        self._callback = callback
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Schedule on ``loop`` from now on instead of the caller's running loop."""
        self._loop = loop

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    reset = arm

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


__all__ = ["DeferredTask"]
