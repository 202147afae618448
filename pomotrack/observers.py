"""Callback lists shared by the timer, statistics and storage layers."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional


Unsubscribe = Callable[[], None]


class Subscribers:
    """Ordered list of callbacks with per-callback fault isolation.

    A callback that raises is logged and skipped; the remaining callbacks
    are still invoked, and the caller never sees the exception.
    """

    def __init__(self, name: str, *, logger: Optional[logging.Logger] = None):
        self._name = name
        self._logger = logger or logging.getLogger("pomotrack.observers")
        self._callbacks: list[Callable[..., Any]] = []

    def add(self, callback: Callable[..., Any]) -> Unsubscribe:
        """Register *callback* and return a function that removes it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass  # already removed or cleared

        return unsubscribe

    def notify(self, *args: Any) -> None:
        # Iterate over a copy so callbacks may unsubscribe themselves.
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                self._logger.exception("Error in %s subscriber %r", self._name, callback)

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)
