"""
Downloader for Finam emitent profile pages.

Public API
----------
- profile_url(base_url, slug) -> str
- download_emitent_profile(fetcher, url) -> str
    Returns the page decoded from the provider's legacy encoding.

Notes
-----
The fetcher is normally `HttpRequestsAdapter`; tests pass any object with a
``fetch_text(url)`` method.
"""

from __future__ import annotations

from typing import Protocol

PROFILES_BASE_URL: str = "http://www.finam.ru/profile/"


class TextFetcher(Protocol):
    def fetch_text(self, url: str) -> str: ...


def profile_url(base_url: str, slug: str) -> str:
    """Join ``base_url`` and ``slug`` with exactly one slash."""
    return f"{base_url.rstrip('/')}/{slug.lstrip('/')}"


def download_emitent_profile(fetcher: TextFetcher, url: str) -> str:
    """
    Fetch an emitent profile page and return its decoded text.

    Raises
    ------
    TransportError, HttpStatusError, EncodingError
        Propagated from the fetcher.
    """
    return fetcher.fetch_text(url)
