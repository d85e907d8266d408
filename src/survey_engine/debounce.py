"""Debouncer — collapses bursts of keystroke-level saves into one.

Free-text inputs call :meth:`Debouncer.push` on every change; the
callback only runs once input has been quiet for ``wait`` seconds.
Each push replaces the pending arguments, so the last value wins.

    saver = Debouncer(lambda v, c: engine.save_response("q1", v, c))
    saver.push("h", None)
    saver.push("hello", None)   # only this one is saved, 0.5s later
    saver.flush()               # ... or right now
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from survey_engine.constants import DEFAULT_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)


class Debouncer:
    """Trailing-edge debounce on top of the running event loop.

    Args:
        callback: called with the arguments of the most recent push.
        wait: quiet period in seconds.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        wait: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._callback = callback
        self._wait = wait
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple = ()
        self._kwargs: dict[str, Any] = {}

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback, cancelling any call still waiting.

        Must be called from within a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._args = args
        self._kwargs = kwargs
        self._handle = loop.call_later(self._wait, self._fire)

    def flush(self) -> bool:
        """Run the pending call immediately.  Returns False if none was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        """Drop the pending call without running it."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._args = ()
        self._kwargs = {}

    def _fire(self) -> None:
        args, kwargs = self._args, self._kwargs
        self._handle = None
        self._args = ()
        self._kwargs = {}
        self._callback(*args, **kwargs)
