"""Plain-text rendering of pipeline view states."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from .models import ApodRecord, Error, Loading, Ready, ViewState, format_date

LOADING_PLACEHOLDER = "loading.."
ERROR_TITLE = "error"


def render_record(record: ApodRecord) -> str:
    lines = [
        format_date(record.date) if record.date else "",
        record.title or "",
        record.description or "",
    ]
    return "\n".join(lines).strip("\n")


def render_state(state: ViewState) -> str:
    """Return the text a screen would show for ``state``."""

    if isinstance(state, Ready):
        return render_record(state.data)
    if isinstance(state, Loading):
        shown = state.shown_data or ApodRecord(title=LOADING_PLACEHOLDER)
        return render_record(shown)
    if isinstance(state, Error):
        header = f"{ERROR_TITLE}: {state.message}"
        if state.shown_data is None:
            return header
        return f"{header}\n\n{render_record(state.shown_data)}"
    raise TypeError(f"Unknown view state: {state!r}")


class ConsolePresenter:
    """Write each view state to a text stream as it arrives."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.last_state: Optional[ViewState] = None

    def on_state_changed(self, state: ViewState) -> None:
        self.last_state = state
        self.stream.write(render_state(state) + "\n")
        self.stream.flush()


__all__ = [
    "ConsolePresenter",
    "ERROR_TITLE",
    "LOADING_PLACEHOLDER",
    "render_record",
    "render_state",
]
