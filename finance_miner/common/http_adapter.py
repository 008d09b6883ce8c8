"""
HTTP adapter for finance-miner (requests-based).

This module provides the transport used for every Finam download: a thin
adapter over a ``requests.Session`` that issues a single GET, checks the status,
and decodes the body from the provider's legacy 8-bit Cyrillic encoding.

Design notes
------------
- Headers are stored and exposed as ``Mapping[str, str]`` (no ``bytes`` values).
- Default headers (including ``Accept-Charset``), timeout and the body encoding
  are injected at construction time.
- Network/client exceptions are translated into the package's error taxonomy:
  ``TransportError`` for connection problems, ``HttpStatusError`` for non-2xx
  responses, ``EncodingError`` for decode failures.
- Retries and caching are out of scope; rate limiting belongs to the batch
  orchestrator (see ``common.rate_limit``).

Thread-safety
-------------
``requests.Session`` is shared by the worker pool. The adapter never mutates
session state after construction, which keeps concurrent GETs safe in practice;
use one adapter per process.
"""

from __future__ import annotations

import codecs
import logging
from types import MappingProxyType, TracebackType
from typing import Any, Mapping, Optional, Type

import requests
from requests import Response, Session

from finance_miner.common.errors import EncodingError, HttpStatusError, TransportError

_logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "finance-miner/0.1"
DEFAULT_ENCODING = "cp1251"


def _headers_dict(headers: Mapping[str, Any]) -> dict[str, str]:
    """Convert a headers mapping to ``dict[str, str]`` with string values only."""
    return {str(k): str(v) for k, v in headers.items()}


def ensure_http_success(
    response: Response, *, logger: Optional[logging.Logger] = None
) -> Response:
    """Return ``response`` if its status is 2xx, else raise ``HttpStatusError``."""
    if 200 <= response.status_code < 300:
        (logger or _logger).info("Got success response: %s", response.status_code)
        return response
    raise HttpStatusError(response)


class HttpRequestsAdapter:
    """Requests-based HTTP adapter with legacy-encoding decode.

    Parameters
    ----------
    user_agent:
        String for the ``User-Agent`` header. Will be inserted into default
        headers if not already present.
    default_timeout:
        Timeout in seconds applied when a per-request timeout is not supplied.
        Bounds the duration of every fetch.
    default_headers:
        Mapping of default headers applied to all requests.
    encoding:
        Codec used by ``decode`` (Finam serves ``cp1251``).
    accept_charset:
        Value of the ``Accept-Charset`` request header.
    logger:
        Logger for download diagnostics (defaults to this module's logger).

    Raises
    ------
    EncodingError
        If ``encoding`` does not name a known codec.
    """

    source: str = "http"
    default_headers: Mapping[str, str]

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        default_timeout: float = 30.0,
        default_headers: Optional[Mapping[str, str]] = None,
        encoding: str = DEFAULT_ENCODING,
        accept_charset: str = "utf-8",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._log = logger or _logger
        try:
            self.encoding = codecs.lookup(encoding).name
        except LookupError as exc:
            raise EncodingError(f"Unknown encoding: {encoding}") from exc

        self._session: Session = requests.Session()

        base: dict[str, str] = {
            "User-Agent": user_agent,
            "Accept": "*/*",
            "Accept-Charset": accept_charset,
        }
        if default_headers:
            base.update(default_headers)
        self._session.headers.update(base)

        self._default_timeout = float(default_timeout)
        self.default_headers = MappingProxyType(_headers_dict(self._session.headers))

    @property
    def default_timeout(self) -> float:
        return self._default_timeout

    def fetch(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Perform a GET request and return the raw body.

        Raises
        ------
        ValueError
            If ``url`` is empty.
        TransportError
            If the request fails before a response is received.
        HttpStatusError
            If the response status is not 2xx.
        """
        if not url:
            raise ValueError("HttpRequestsAdapter.fetch: url must be a non-empty string.")

        self._log.info("Downloading financial data from: %s", url)
        try:
            resp: Response = self._session.request(
                method="GET",
                url=url,
                headers=dict(headers or {}),
                timeout=float(timeout or self._default_timeout),
            )
        except requests.RequestException as exc:
            raise TransportError(url, str(exc)) from exc

        return ensure_http_success(resp, logger=self._log).content

    def decode(self, data: bytes) -> str:
        """Decode ``data`` with the configured encoding, replacing bad bytes."""
        try:
            return data.decode(self.encoding, errors="replace")
        except (UnicodeError, LookupError) as exc:
            raise EncodingError(str(exc)) from exc

    def fetch_text(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Fetch ``url`` and return the decoded document text."""
        return self.decode(self.fetch(url, headers=headers, timeout=timeout))

    def describe(self) -> str:
        """Human-readable description of this adapter (for logs and diagnostics)."""
        return f"HTTP adapter via 'requests' (decoding {self.encoding})"

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> HttpRequestsAdapter:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
