"""Explicit cancellation tokens shared between callers and blocking workers."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class CancelToken:
    """One-shot cancellation flag with resource-release callbacks.

    Workers register callbacks (closing a socket, dismissing a prompt) with
    :meth:`add_callback`; :meth:`cancel` runs each of them exactly once. A
    callback registered after cancellation runs immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            _run_callback(callback)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        _run_callback(callback)
        return lambda: None

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass


def _run_callback(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:  # pragma: no cover
        logger.exception("Cancellation callback %r failed", callback)


__all__ = ["CancelToken"]
