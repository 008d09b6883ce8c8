"""
Bootstrap wiring for finance-miner.

Builds the transport (a requests-based HTTP adapter) and the profile rate
limiter from the package config. It performs **no implicit side effects on
import**; callers invoke these helpers from an explicit entry point (CLI,
script, or test) once the config is loaded.

Configuration
-------------
The HTTP adapter is configured under ``sources.finam.http``, the codec under
``sources.finam.encoding``, and the limiter under ``sources.finam.batch``:

    sources:
      finam:
        encoding: "cp1251"
        http:
          user_agent: "finance-miner/0.1"
          default_timeout: 30.0
          accept_charset: "utf-8"
          default_headers:
            Accept: "*/*"
        batch:
          rate_per_second: 0.3333
          burst: 1

Usage
-----
    from finance_miner.config.config import load_config
    from finance_miner.bootstrap import build_http_adapter

    cfg = load_config()
    with build_http_adapter(cfg) as adapter:
        ...
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from omegaconf import DictConfig, OmegaConf

from finance_miner.common.http_adapter import (
    DEFAULT_USER_AGENT,
    HttpRequestsAdapter,
)
from finance_miner.common.rate_limit import TokenBucket
from finance_miner.config.config import (
    finam_batch_view,
    finam_http_view,
    finam_view,
)


def _coerce_headers(node: Any) -> Optional[Mapping[str, str]]:
    if node is None:
        return None
    if isinstance(node, DictConfig):
        node = OmegaConf.to_container(node, resolve=True)
    if not isinstance(node, Mapping):
        return None
    return {str(k): str(v) for k, v in node.items()}


def build_http_adapter(
    cfg: DictConfig, *, logger: Optional[logging.Logger] = None
) -> HttpRequestsAdapter:
    """Create an `HttpRequestsAdapter` from `sources.finam.http`."""
    http = finam_http_view(cfg)
    return HttpRequestsAdapter(
        user_agent=str(http.get("user_agent", DEFAULT_USER_AGENT)),
        default_timeout=float(http.get("default_timeout", 30.0)),
        default_headers=_coerce_headers(http.get("default_headers")),
        encoding=str(finam_view(cfg).encoding),
        accept_charset=str(http.get("accept_charset", "utf-8")),
        logger=logger,
    )


def build_rate_limiter(
    cfg: DictConfig, *, rate_per_second: Optional[float] = None
) -> TokenBucket:
    """Create the shared profile-fetch `TokenBucket` from `sources.finam.batch`."""
    batch = finam_batch_view(cfg)
    rate = rate_per_second if rate_per_second is not None else batch.rate_per_second
    return TokenBucket(rate=float(rate), burst=int(batch.burst))
