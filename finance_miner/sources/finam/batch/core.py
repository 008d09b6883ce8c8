"""
Core helpers for Finam profile batch orchestration.

This module keeps the orchestration (`run.py`) thin by factoring out:
- result typing (`BatchStats`, `EntryResult`)
- quick skip predicate (`should_skip`)
- a single-emitent processing unit (`process_one_emitent`)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional, Tuple

from finance_miner.common.errors import MinerError
from finance_miner.common.rate_limit import TokenBucket
from finance_miner.common.types import LiteralValue
from finance_miner.sources.finam.common.models import Emitent
from finance_miner.sources.finam.profiles.downloader import TextFetcher, profile_url
from finance_miner.sources.finam.profiles.parser import fetch_detail, resolve_emitent

Status = Literal["ok", "skip", "err"]

_logger = logging.getLogger(__name__)

# ---------- Result typing ----------


@dataclass(frozen=True)
class EntryResult:
    status: Status
    emitent: Emitent
    reason: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchStats:
    ok: int = 0
    skip: int = 0
    err: int = 0
    results: Tuple[EntryResult, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return self.ok + self.skip + self.err

    @property
    def emitents(self) -> list[Emitent]:
        """Emitents in input order; unresolved ones keep empty code/market."""
        return [r.emitent for r in self.results]


# ---------- Policies / Predicates ----------


def should_skip(emitent: Emitent) -> Tuple[bool, Optional[str]]:
    """
    Decide whether an emitent's profile can be fetched at all.

    Returns:
      (skip?, reason) where reason is "no uri" when the catalog gave no slug.
    """
    if not emitent.uri:
        return (True, "no uri")
    return (False, None)


# ---------- Single-emitent processing unit ----------


def process_one_emitent(
    *,
    fetcher: TextFetcher,
    emitent: Emitent,
    base_url: str,
    limiter: Optional[TokenBucket] = None,
    fetch: Callable[..., LiteralValue] = fetch_detail,
    resolve: Callable[..., Emitent] = resolve_emitent,
    logger: Optional[logging.Logger] = None,
) -> EntryResult:
    """
    Process a single emitent:
      - skip if it has no profile slug
      - wait for a rate-limiter token
      - download the profile page and extract ``Main.issue``
      - resolve code and market name into a new record
    Returns an `EntryResult`; failures are reported as status "err" with the
    original, unresolved emitent, never raised.
    """
    log = logger or _logger

    do_skip, reason = should_skip(emitent)
    if do_skip:
        log.info("Skipping emitent %s (%s): %s", emitent.id, emitent.name, reason)
        return EntryResult(status="skip", emitent=emitent, reason=reason)

    if limiter is not None:
        waited = limiter.acquire()
        if waited:
            log.debug("Waited %.2fs for a request slot (%s)", waited, emitent.id)

    url = profile_url(base_url, emitent.uri)
    try:
        issue = fetch(fetcher, url, logger=log)
    except MinerError as exc:
        log.warning("Cannot get emitent data for %s: %s", emitent.name, exc)
        return EntryResult(status="err", emitent=emitent, error=str(exc))

    return EntryResult(status="ok", emitent=resolve(emitent, issue, logger=log))
