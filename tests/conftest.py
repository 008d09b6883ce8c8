from __future__ import annotations

from pathlib import Path
from typing import Mapping, Union

import pytest

DATA_DIR = Path(__file__).parent / "sources" / "finam" / "data"


class FakeFetcher:
    """In-memory stand-in for `HttpRequestsAdapter.fetch_text`.

    ``pages`` maps URL -> document text, or URL -> exception to raise.
    Every requested URL is recorded in ``calls``.
    """

    def __init__(self, pages: Mapping[str, Union[str, BaseException]]) -> None:
        self.pages = dict(pages)
        self.calls: list[str] = []

    def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise KeyError(f"unexpected url in test: {url}")
        if isinstance(page, BaseException):
            raise page
        return page


@pytest.fixture
def fake_fetcher_cls() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def icharts_text() -> str:
    return (DATA_DIR / "icharts_sample.js").read_text(encoding="utf-8")


@pytest.fixture
def profile_html() -> str:
    return (DATA_DIR / "profile_sber.html").read_text(encoding="utf-8")
