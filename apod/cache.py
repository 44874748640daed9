"""Bounded least-recently-used cache of APOD records keyed by calendar day."""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Optional

from .models import ApodRecord, FormatError, as_date_key

DEFAULT_CAPACITY = 100

logger = logging.getLogger(__name__)


class DateKeyedCache:
    """In-memory LRU cache; both hits and insertions count as a use.

    Entries never expire by time and are only dropped by capacity pressure.
    Not thread-safe: callers serialize access themselves.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._entries: OrderedDict[date, ApodRecord] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: date | datetime | str) -> Optional[ApodRecord]:
        day = as_date_key(key)
        record = self._entries.get(day)
        if record is not None:
            self._entries.move_to_end(day)
        return record

    def put(self, key: date | datetime | str, value: ApodRecord) -> None:
        day = as_date_key(key)
        self._entries[day] = value
        self._entries.move_to_end(day)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached APOD for %s", evicted)

    def keys(self) -> list[date]:
        """Cached days ordered from least to most recently used."""

        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        try:
            return as_date_key(key) in self._entries  # type: ignore[arg-type]
        except (TypeError, FormatError):
            return False

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["DEFAULT_CAPACITY", "DateKeyedCache"]
