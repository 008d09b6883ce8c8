from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from finance_miner.common.rate_limit import TokenBucket
from finance_miner.sources.finam.batch.core import (
    BatchStats,
    EntryResult,
    process_one_emitent,
)
from finance_miner.sources.finam.common.models import Emitent
from finance_miner.sources.finam.profiles.downloader import (
    PROFILES_BASE_URL,
    TextFetcher,
)

_logger = logging.getLogger(__name__)


def run_batch(
    fetcher: TextFetcher,
    emitents: Sequence[Emitent],
    *,
    base_url: str = PROFILES_BASE_URL,
    workers: int = 4,
    limiter: Optional[TokenBucket] = None,
    process: Callable[..., EntryResult] = process_one_emitent,
    on_result: Optional[Callable[[EntryResult], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> BatchStats:
    """
    Thin orchestrator:
      1) submit one `process_one_emitent` per emitent to a bounded pool
      2) every worker draws from the shared rate limiter before fetching
      3) collect results in input order and count ok / skip / err
      4) on interrupt, cancel pending work and re-raise

    ``on_result`` is called from the calling thread as results are collected
    (in input order), e.g. for progress output.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    log = logger or _logger

    results: list[EntryResult] = []
    ok = skip = err = 0

    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="finam-profile")
    try:
        futures: list[Future[EntryResult]] = [
            pool.submit(
                process,
                fetcher=fetcher,
                emitent=emitent,
                base_url=base_url,
                limiter=limiter,
                logger=log,
            )
            for emitent in emitents
        ]
        for future in futures:
            result = future.result()
            results.append(result)
            if result.status == "ok":
                ok += 1
            elif result.status == "skip":
                skip += 1
            else:
                err += 1
            if on_result is not None:
                on_result(result)
    except BaseException:
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown(wait=True)

    log.info("Profile batch finished: ok=%s skip=%s err=%s", ok, skip, err)
    return BatchStats(ok=ok, skip=skip, err=err, results=tuple(results))
