"""
Parser for Finam emitent profile pages.

A profile page embeds the emitent's details in one script assignment:

    Main.issue = {"quote": {"code": "SBER", "market": {"title": "MICEX"}, ...}, ...};

`extract_issue` finds and parses that literal. The resolvers then read the
trading code (``quote.code``) and the market title (``quote.market.title``);
they degrade to an empty string with an info line instead of failing, since a
page with a missing field is still a usable page.

Helpers (`extract_issue`, `resolve_code`, `resolve_market_name`) are factored
out for granular testing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Optional

import yaml
from bs4 import BeautifulSoup

from finance_miner.common.errors import BlockNotFoundError
from finance_miner.common.types import LiteralValue
from finance_miner.sources.finam.common.models import Emitent
from finance_miner.sources.finam.literals.extractor import parse_literal
from finance_miner.sources.finam.profiles.downloader import (
    TextFetcher,
    download_emitent_profile,
)

ISSUE_RE = re.compile(r"Main\.issue = (.*);")

_logger = logging.getLogger(__name__)


def _script_texts(document: str) -> list[str]:
    """Return the text of every <script> block, or the whole document if none."""
    soup = BeautifulSoup(document, "html.parser")
    scripts = [str(s.string or "") for s in soup.find_all("script")]
    return scripts or [document]


def extract_issue(
    document: str, *, logger: Optional[logging.Logger] = None
) -> LiteralValue:
    """
    Extract the ``Main.issue`` literal from a profile page.

    Args:
        document: Decoded HTML of the profile page (or a bare script).
        logger: Logger for diagnostics.

    Returns:
        The first parsed top-level value of the assignment.

    Raises:
        BlockNotFoundError: If the assignment is absent or not a valid literal.
    """
    log = logger or _logger

    match: Optional[re.Match[str]] = None
    for text in _script_texts(document):
        match = ISSUE_RE.search(text)
        if match is not None:
            break
    if match is None:
        raise BlockNotFoundError("Emitent captures not found")

    capture = match.group(1)
    if not capture:
        raise BlockNotFoundError("Emitent capture doesn't exist")
    try:
        values = parse_literal(capture)
    except yaml.YAMLError as exc:
        log.debug("Main.issue literal rejected: %s", exc)
        raise BlockNotFoundError(f"Literal block cannot be decoded: {exc}") from exc
    if not values:
        raise BlockNotFoundError("Literal block cannot be decoded")
    return values[0]


def fetch_detail(
    fetcher: TextFetcher, url: str, *, logger: Optional[logging.Logger] = None
) -> LiteralValue:
    """Download a profile page and return its ``Main.issue`` literal."""
    document = download_emitent_profile(fetcher, url)
    return extract_issue(document, logger=logger)


def _dig(value: LiteralValue, *path: str) -> Optional[str]:
    """Follow ``path`` through nested mappings; return the leaf if it is a str."""
    node = value
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) else None


def resolve_code(
    issue: LiteralValue, *, label: str = "", logger: Optional[logging.Logger] = None
) -> str:
    """Return ``quote.code`` from the issue literal, or ``""``."""
    code = _dig(issue, "quote", "code")
    if code is None:
        (logger or _logger).info("Code cannot be decoded for: %s", label)
        return ""
    return code


def resolve_market_name(
    issue: LiteralValue, *, label: str = "", logger: Optional[logging.Logger] = None
) -> str:
    """Return ``quote.market.title`` from the issue literal, or ``""``."""
    title = _dig(issue, "quote", "market", "title")
    if title is None:
        (logger or _logger).info("Market name cannot be decoded for: %s", label)
        return ""
    return title


def resolve_emitent(
    emitent: Emitent, issue: LiteralValue, *, logger: Optional[logging.Logger] = None
) -> Emitent:
    """Return a copy of ``emitent`` with code and market name filled in."""
    code = resolve_code(issue, label=emitent.name, logger=logger)
    market_name = resolve_market_name(issue, label=emitent.name, logger=logger)
    return replace(emitent, code=code, market_name=market_name)
