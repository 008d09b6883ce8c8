"""
Config loading and views for finance-miner.

- load_config(path, overrides):  packaged defaults <- user YAML <- dotlist overrides
- finam_view(cfg):               source-level settings for Finam (URLs, encoding)
- finam_http_view(cfg):          HTTP adapter config
- finam_batch_view(cfg):         worker pool / rate limiter config
- ensure_finam_config(cfg):      raise ConfigError if required keys are missing
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from omegaconf import DictConfig, OmegaConf

from finance_miner.common.errors import ConfigError

SOURCE_FINAM = "finam"
CONFIG_ENV_VAR = "FINANCE_MINER_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


def load_config(
    path: Optional[Path | str] = None,
    overrides: Sequence[str] = (),
) -> DictConfig:
    """Compose the runtime configuration.

    Layers, later wins:
      1) packaged ``default.yaml``
      2) ``path`` if given, else ``$FINANCE_MINER_CONFIG`` if set
      3) ``overrides`` in OmegaConf dotlist form (``"sources.finam.batch.workers=2"``)

    The returned config is resolved and read-only.

    Raises:
      FileNotFoundError: If the user config file does not exist.
    """
    layers: list[DictConfig] = [OmegaConf.load(DEFAULT_CONFIG_PATH)]  # type: ignore[list-item]

    user_path = path or os.environ.get(CONFIG_ENV_VAR)
    if user_path:
        user_file = Path(user_path)
        if not user_file.is_file():
            raise FileNotFoundError(f"Config file not found: {user_file}")
        layers.append(OmegaConf.load(user_file))  # type: ignore[arg-type]

    if overrides:
        layers.append(OmegaConf.from_dotlist(list(overrides)))

    cfg = OmegaConf.merge(*layers)
    assert isinstance(cfg, DictConfig)
    OmegaConf.resolve(cfg)
    OmegaConf.set_readonly(cfg, True)
    return cfg


def _view(cfg: DictConfig, key: str) -> DictConfig:
    node = OmegaConf.select(cfg, key)
    if not isinstance(node, DictConfig):
        raise ConfigError(f"Missing config section: {key}")
    return node


def finam_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.finam`."""
    return _view(cfg, f"sources.{SOURCE_FINAM}")


def finam_http_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.finam.http`."""
    return _view(cfg, f"sources.{SOURCE_FINAM}.http")


def finam_batch_view(cfg: DictConfig) -> DictConfig:
    """Read-only view rooted at `sources.finam.batch`."""
    return _view(cfg, f"sources.{SOURCE_FINAM}.batch")


def _must_have(d: DictConfig, path: str, keys: Iterable[str]) -> None:
    missing = [k for k in keys if k not in d]
    if missing:
        raise ConfigError(f"Missing keys at {path}: {', '.join(missing)}")


def ensure_finam_config(cfg: DictConfig) -> None:
    f = finam_view(cfg)
    _must_have(
        f,
        "sources.finam",
        ("catalog_url", "profiles_base_url", "encoding", "http", "batch"),
    )
    _must_have(
        finam_http_view(cfg),
        "sources.finam.http",
        ("user_agent", "default_timeout", "accept_charset"),
    )
    batch = finam_batch_view(cfg)
    _must_have(
        batch, "sources.finam.batch", ("workers", "rate_per_second", "burst", "limit")
    )
    if int(batch.workers) < 1:
        raise ConfigError("sources.finam.batch.workers must be >= 1")
    if float(batch.rate_per_second) <= 0:
        raise ConfigError("sources.finam.batch.rate_per_second must be > 0")


__all__ = [
    "SOURCE_FINAM",
    "CONFIG_ENV_VAR",
    "load_config",
    "finam_view",
    "finam_http_view",
    "finam_batch_view",
    "ensure_finam_config",
]
