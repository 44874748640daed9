"""Date-keyed fetch, cache and present pipeline for APOD records."""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, Optional

from .api_client import ApodClient, FetchCancelled, NetworkError
from .cache import DateKeyedCache
from .cancellation import CancelToken
from .models import (
    ApodError,
    ApodRecord,
    Error,
    Loading,
    Ready,
    ViewState,
    as_date_key,
    format_date,
)

StateCallback = Callable[[ViewState], None]
Dispatcher = Callable[[Callable[[], None]], object]
Runner = Callable[[Callable[[], None]], object]

logger = logging.getLogger(__name__)


def call_directly(callback: Callable[[], None]) -> None:
    callback()


def run_in_thread(job: Callable[[], None]) -> threading.Thread:
    thread = threading.Thread(target=job, name="apod-fetch", daemon=True)
    thread.start()
    return thread


class RequestHandle:
    """Caller-side view of one :meth:`FetchCachePipeline.request` call."""

    def __init__(self, day: date, token: CancelToken) -> None:
        self.date = day
        self.token = token
        self._lock = threading.RLock()
        self._done = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        """Abort the request; no state is delivered once this returns."""

        with self._lock:
            self.token.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def _deliver(self, on_state: StateCallback, state: ViewState) -> None:
        with self._lock:
            if self.token.cancelled:
                return
            on_state(state)

    def _finish(self) -> None:
        self._done.set()


class FetchCachePipeline:
    """Serve APOD records for a day, always revalidating against the network.

    A cached record is shown while the fetch is in flight and kept on screen
    if it fails; only successfully parsed records enter the cache.
    """

    def __init__(
        self,
        client: ApodClient,
        cache: DateKeyedCache | None = None,
        *,
        today: Callable[[], date] = date.today,
        dispatch: Dispatcher | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else DateKeyedCache()
        self.today = today
        self.dispatch = dispatch or call_directly
        self.runner = runner or run_in_thread

    def request(
        self,
        day: Optional[date],
        on_state: StateCallback,
        *,
        shown: Optional[ApodRecord] = None,
    ) -> RequestHandle:
        """Load ``day`` (default: the shown record's day, then today).

        ``shown`` is a record already on screen, e.g. restored after a
        restart; it is displayed while loading instead of the cached one.
        """

        load_date = as_date_key(day or (shown.date if shown else None) or self.today())
        shown_data = shown or self.cache.get(load_date)
        handle = RequestHandle(load_date, CancelToken())

        self._emit(handle, on_state, Loading(shown_data=shown_data))
        self.runner(lambda: self._load(handle, on_state, shown_data))
        return handle

    def _load(
        self,
        handle: RequestHandle,
        on_state: StateCallback,
        shown_data: Optional[ApodRecord],
    ) -> None:
        try:
            if handle.cancelled:
                return
            try:
                record = self.client.fetch_record(handle.date, handle.token)
            except FetchCancelled:
                logger.debug("APOD request for %s cancelled", handle.date)
                return
            except ApodError as exc:
                logger.warning("APOD request for %s failed: %r", handle.date, exc)
                message = _error_message(exc, handle.date)
                self._emit(handle, on_state, Error(message, shown_data=shown_data))
                return
            except Exception:
                logger.exception("Unexpected failure loading APOD for %s", handle.date)
                message = f"Unable to load picture for {format_date(handle.date)}"
                self._emit(handle, on_state, Error(message, shown_data=shown_data))
                return

            with handle._lock:
                if handle.cancelled:
                    return
                self.cache.put(handle.date, record)
            self._emit(handle, on_state, Ready(data=record))
        finally:
            handle._finish()

    def _emit(self, handle: RequestHandle, on_state: StateCallback, state: ViewState) -> None:
        if handle.cancelled:
            return
        self.dispatch(lambda: handle._deliver(on_state, state))


def _error_message(exc: ApodError, day: date) -> str:
    if isinstance(exc, NetworkError):
        return f"Unable to load picture for {format_date(day)}"
    return f"Received an invalid response for {format_date(day)}"


__all__ = [
    "FetchCachePipeline",
    "RequestHandle",
    "call_directly",
    "run_in_thread",
]
