"""Screen controller tying the pipeline to a presenter and a date chooser."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, Protocol

from .cancellation import CancelToken
from .models import ApodRecord, ViewState, as_date_key
from .pipeline import FetchCachePipeline, RequestHandle

FUTURE_DATE_NOTICE = "Please select current date or before"

logger = logging.getLogger(__name__)


class Presenter(Protocol):
    def on_state_changed(self, state: ViewState) -> None:
        ...


class DateChooser(Protocol):
    def choose_date(self, current: Optional[date], token: CancelToken) -> Optional[date]:
        """Block until the user picks a day; ``None`` means they cancelled.

        Implementations release any prompt they hold once ``token`` is
        cancelled.
        """
        ...


class ApodScreen:
    """Holds the day on screen and routes user actions into the pipeline."""

    def __init__(
        self,
        pipeline: FetchCachePipeline,
        presenter: Presenter,
        *,
        today: Callable[[], date] | None = None,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.presenter = presenter
        self.today = today or pipeline.today
        self.notify = notify or (lambda message: logger.info("%s", message))
        self.screen_date: date = as_date_key(self.today())
        self.active_request: RequestHandle | None = None
        self._chooser_token: CancelToken | None = None

    def load(self, shown: Optional[ApodRecord] = None) -> RequestHandle:
        """Initial load, optionally starting from a restored record."""

        if shown is not None and shown.date is not None:
            self.screen_date = shown.date
        return self._request(None if shown is not None else self.screen_date, shown=shown)

    def refresh(self) -> RequestHandle:
        return self._request(self.screen_date)

    def choose_date(self, chooser: DateChooser) -> CancelToken:
        """Ask ``chooser`` for a day on the worker context and load it."""

        if self._chooser_token is not None:
            self._chooser_token.cancel()
        token = CancelToken()
        self._chooser_token = token
        current = self.screen_date

        def job() -> None:
            picked = chooser.choose_date(current, token)
            if token.cancelled or picked is None:
                return
            self.pipeline.dispatch(lambda: self._apply_choice(picked, token))

        self.pipeline.runner(job)
        return token

    def select_date(self, day: date) -> RequestHandle | None:
        """Switch to ``day`` unless it lies in the future."""

        day = as_date_key(day)
        if day > as_date_key(self.today()):
            self.notify(FUTURE_DATE_NOTICE)
            return None
        self.screen_date = day
        return self._request(day)

    def close(self) -> None:
        if self._chooser_token is not None:
            self._chooser_token.cancel()
            self._chooser_token = None
        if self.active_request is not None:
            self.active_request.cancel()
            self.active_request = None

    def _apply_choice(self, picked: date, token: CancelToken) -> None:
        if token.cancelled:
            return
        self.select_date(picked)

    def _request(self, day: Optional[date], *, shown: Optional[ApodRecord] = None) -> RequestHandle:
        self.active_request = self.pipeline.request(
            day,
            self.presenter.on_state_changed,
            shown=shown,
        )
        return self.active_request


__all__ = [
    "ApodScreen",
    "DateChooser",
    "FUTURE_DATE_NOTICE",
    "Presenter",
]
