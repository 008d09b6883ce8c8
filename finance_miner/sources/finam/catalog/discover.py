"""
finance_miner.sources.finam.catalog.discover

Build the emitent catalog from the Finam icharts script.

The icharts document (``icharts.js``) carries every instrument in four
independent script assignments:

    var aEmitentIds = [...];       provider ids            (positional base)
    var aEmitentNames = [...];     display names           (joined by position)
    var aEmitentMarkets = [...];   market ids              (joined by position)
    var aEmitentUrls = {...};      id -> profile URL slug  (joined by id)

The ids array defines the record set; each later collection only fills fields
of records that already exist. Values with no matching record are orphans:
they are logged and dropped. Any of the four regions being absent, repeated,
or of the wrong container type is fatal, since the positional joins need all
of them.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Protocol

from finance_miner.common.errors import LiteralShapeError
from finance_miner.common.types import LiteralValue
from finance_miner.sources.finam.common.models import Emitent
from finance_miner.sources.finam.literals.extractor import (
    extract_one,
    to_display_string,
)

CATALOG_URL: str = "http://www.finam.ru/cache/icharts/icharts.js"

IDS_RE = re.compile(r"var aEmitentIds = (\[.*?\]);")
NAMES_RE = re.compile(r"var aEmitentNames = (\[.*?\]);")
MARKETS_RE = re.compile(r"var aEmitentMarkets = (\[.*?\]);")
URLS_RE = re.compile(r"var aEmitentUrls = (\{.*?\});")

_logger = logging.getLogger(__name__)


class TextFetcher(Protocol):
    def fetch_text(self, url: str) -> str: ...


def preprocess_catalog(text: str) -> str:
    """
    Prepare raw icharts text for literal extraction.

    Line breaks are removed so every assignment sits on one line for the
    non-greedy patterns, and JS-escaped single quotes (``\\'``) become the
    doubled form (``''``) the literal parser understands.
    """
    return text.replace("\r\n", "").replace("\n", "").replace("\\'", "''")


def _extract_list(
    pattern: re.Pattern[str], text: str, label: str, log: logging.Logger
) -> list[LiteralValue]:
    value = extract_one(pattern, text, label=label, logger=log)
    if not isinstance(value, list):
        raise LiteralShapeError(label, "a sequence", value)
    return value


def _join_by_position(
    emitents: dict[int, Emitent],
    values: list[LiteralValue],
    apply: Callable[[Emitent, str], None],
    log: logging.Logger,
) -> None:
    for internal_id, raw in enumerate(values):
        emitent = emitents.get(internal_id)
        if emitent is None:
            log.warning("Emitent with internal id: %s not found", internal_id)
            continue
        apply(emitent, to_display_string(raw, logger=log))


def assemble(
    catalog_text: str, *, logger: Optional[logging.Logger] = None
) -> list[Emitent]:
    """
    Correlate the four embedded collections into `Emitent` records.

    Args:
        catalog_text: Preprocessed icharts text (see `preprocess_catalog`).
        logger: Logger for orphan/duplicate diagnostics.

    Returns:
        One record per element of the ids array (minus duplicate ids), ordered
        by `internal_id`.

    Raises:
        RegionNotFoundError: A collection is absent from the document.
        AmbiguousRegionError: A collection appears more than once.
        LiteralShapeError: A collection has the wrong container type.
    """
    log = logger or _logger

    # 1) ids define the record set, keyed by position
    ids = _extract_list(IDS_RE, catalog_text, "aEmitentIds", log)
    by_position: dict[int, Emitent] = {
        internal_id: Emitent(
            internal_id=internal_id, id=to_display_string(raw, logger=log)
        )
        for internal_id, raw in enumerate(ids)
    }

    # 2-3) positional joins
    names = _extract_list(NAMES_RE, catalog_text, "aEmitentNames", log)
    _join_by_position(by_position, names, lambda e, v: setattr(e, "name", v), log)

    markets = _extract_list(MARKETS_RE, catalog_text, "aEmitentMarkets", log)
    _join_by_position(
        by_position, markets, lambda e, v: setattr(e, "market_id", v), log
    )

    # 4) re-key by provider id; a duplicate id replaces the earlier record
    by_id: dict[str, Emitent] = {}
    for internal_id in sorted(by_position):
        emitent = by_position[internal_id]
        previous = by_id.get(emitent.id)
        if previous is not None:
            log.warning(
                "Duplicate emitent id %r at internal ids %s and %s; keeping the later",
                emitent.id,
                previous.internal_id,
                internal_id,
            )
        by_id[emitent.id] = emitent

    # 5) id-keyed join of profile slugs
    urls = extract_one(URLS_RE, catalog_text, label="aEmitentUrls", logger=log)
    if not isinstance(urls, dict):
        raise LiteralShapeError("aEmitentUrls", "a mapping", urls)
    for raw_id, raw_uri in urls.items():
        emitent_id = to_display_string(raw_id, logger=log)
        target = by_id.get(emitent_id)
        if target is None:
            log.warning("Emitent with id: %s not found", emitent_id)
            continue
        target.uri = to_display_string(raw_uri, logger=log)

    return sorted(by_id.values(), key=lambda e: e.internal_id)


def download_catalog(fetcher: TextFetcher, url: str = CATALOG_URL) -> str:
    """Fetch and decode the raw icharts document."""
    return fetcher.fetch_text(url)


def build_catalog(
    fetcher: TextFetcher,
    url: str = CATALOG_URL,
    *,
    logger: Optional[logging.Logger] = None,
) -> list[Emitent]:
    """
    Download, preprocess and assemble the emitent catalog.

    Transport, status and encoding failures propagate unchanged; the caller
    decides whether they end the run.
    """
    raw = download_catalog(fetcher, url)
    return assemble(preprocess_catalog(raw), logger=logger)
