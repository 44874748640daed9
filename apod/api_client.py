"""HTTP client for NASA's Astronomy Picture of the Day endpoint."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from urllib.parse import urlencode

import requests
from requests import Response, Session
from requests.exceptions import RequestException

from .cancellation import CancelToken
from .models import ApodError, ApodRecord, format_date, parse_response

APOD_URL = "https://api.nasa.gov/planetary/apod"
DEMO_KEY = "DEMO_KEY"
DEFAULT_TIMEOUT = 15
CHUNK_SIZE = 8192

logger = logging.getLogger(__name__)


class NetworkError(ApodError):
    """Raised when the APOD endpoint cannot be reached or answers non-2xx."""


class FetchCancelled(ApodError):
    """Raised when a fetch is abandoned through its cancel token."""


class ApodClient:
    """Single-attempt downloader for APOD records.

    Retries are left to the caller; every :meth:`fetch` issues exactly one GET.
    """

    def __init__(
        self,
        api_key: str = DEMO_KEY,
        base_url: str = APOD_URL,
        *,
        session: Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.api_key = api_key
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_url(self, day: date) -> str:
        query = urlencode({"api_key": self.api_key, "date": format_date(day)})
        return f"{self.base_url}?{query}"

    def fetch(self, url: str, token: Optional[CancelToken] = None) -> str:
        """Return the response body for ``url``.

        The body is streamed so that cancelling ``token`` closes the
        connection mid-read; in that case :class:`FetchCancelled` is raised
        and nothing is returned.
        """

        token = token or CancelToken()
        if token.cancelled:
            raise FetchCancelled("Request cancelled before it started")

        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except RequestException as exc:
            raise NetworkError(f"APOD request failed: {exc}") from exc

        unregister = token.add_callback(response.close)
        try:
            self._raise_for_status(response)
            return self._read_body(response, token)
        finally:
            unregister()
            response.close()

    def fetch_record(self, day: date, token: Optional[CancelToken] = None) -> ApodRecord:
        url = self.build_url(day)
        logger.debug("Fetching APOD for %s", format_date(day))
        return parse_response(self.fetch(url, token))

    def _raise_for_status(self, response: Response) -> None:
        try:
            response.raise_for_status()
        except RequestException as exc:
            raise NetworkError(f"APOD request failed: {exc}") from exc

    def _read_body(self, response: Response, token: CancelToken) -> str:
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if token.cancelled:
                    break
                chunks.append(chunk)
        except (RequestException, OSError, ValueError) as exc:
            if not token.cancelled:
                raise NetworkError(f"APOD response interrupted: {exc}") from exc
        except AttributeError:
            # urllib3 drops its file object when cancel() closes the response.
            if not token.cancelled:
                raise
        if token.cancelled:
            raise FetchCancelled("Request cancelled while reading the response")
        return _decode(b"".join(chunks), response.encoding)


def _decode(body: bytes, encoding: Optional[str]) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        logger.warning("Unknown response charset %r, decoding as utf-8", encoding)
        return body.decode("utf-8", errors="replace")


__all__ = [
    "APOD_URL",
    "ApodClient",
    "DEMO_KEY",
    "FetchCancelled",
    "NetworkError",
]
