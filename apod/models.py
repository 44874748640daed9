"""Core data models for Astronomy Picture of the Day records and view states."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional, Union

from dateutil import parser as date_parser

APOD_DATE_FORMAT = "%Y-%m-%d"
_APOD_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class ApodError(RuntimeError):
    """Base class for failures while loading a picture of the day."""


class ParseError(ApodError):
    """Raised when a response body is not a well-formed JSON object."""


class FormatError(ApodError):
    """Raised when a ``date`` value does not match ``YYYY-MM-DD``."""


def parse_date(text: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a calendar day."""

    if not isinstance(text, str) or not _APOD_DATE_PATTERN.fullmatch(text):
        raise FormatError(f"Invalid APOD date value: {text!r}")
    try:
        return date_parser.isoparse(text).date()
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Invalid APOD date value: {text!r}") from exc


def format_date(value: date) -> str:
    return as_date_key(value).strftime(APOD_DATE_FORMAT)


def as_date_key(value: date | datetime | str) -> date:
    """Normalize ``value`` to a plain ``date`` usable as a lookup key.

    Datetimes keep the calendar day of their own representation; the time of
    day and any tzinfo are dropped so equal days always hash the same.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        return parse_date(value)
    raise TypeError(f"Cannot use {type(value).__name__} as a date key")


@dataclass(slots=True, frozen=True)
class ApodRecord:
    """Display model of a single picture of the day."""

    date: Optional[date] = None
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, object]) -> "ApodRecord":
        date_value = _coerce_optional_str(payload.get("date"))
        return cls(
            date=parse_date(date_value) if date_value else None,
            title=_coerce_optional_str(payload.get("title")),
            description=_coerce_optional_str(payload.get("explanation")),
        )

    def to_api_payload(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.date is not None:
            payload["date"] = format_date(self.date)
        if self.title is not None:
            payload["title"] = self.title
        if self.description is not None:
            payload["explanation"] = self.description
        return payload


def parse_response(body: str) -> ApodRecord:
    """Convert an APOD response body into an :class:`ApodRecord`.

    Missing fields become ``None``; a present but malformed ``date`` raises
    :class:`FormatError` and a body that is not a JSON object raises
    :class:`ParseError`.
    """

    try:
        payload = json.loads(body)
    except (TypeError, ValueError, RecursionError) as exc:
        raise ParseError("Received invalid JSON from APOD endpoint") from exc
    if not isinstance(payload, dict):
        raise ParseError("Expected top-level JSON object from APOD endpoint")
    return ApodRecord.from_api_payload(payload)


def record_to_json(record: ApodRecord) -> str:
    return json.dumps(record.to_api_payload(), ensure_ascii=False)


@dataclass(slots=True, frozen=True)
class Loading:
    """A fetch is in flight; ``shown_data`` is the stale record kept on screen."""

    shown_data: Optional[ApodRecord] = None

    @property
    def record(self) -> Optional[ApodRecord]:
        return self.shown_data


@dataclass(slots=True, frozen=True)
class Error:
    """The last fetch failed; ``shown_data`` is the cached record, if any."""

    message: str
    shown_data: Optional[ApodRecord] = None

    @property
    def record(self) -> Optional[ApodRecord]:
        return self.shown_data


@dataclass(slots=True, frozen=True)
class Ready:
    data: ApodRecord

    @property
    def record(self) -> Optional[ApodRecord]:
        return self.data


ViewState = Union[Loading, Error, Ready]


def _coerce_optional_str(value: object) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


__all__ = [
    "APOD_DATE_FORMAT",
    "ApodError",
    "ApodRecord",
    "Error",
    "FormatError",
    "Loading",
    "ParseError",
    "Ready",
    "ViewState",
    "as_date_key",
    "format_date",
    "parse_date",
    "parse_response",
    "record_to_json",
]
