from __future__ import annotations

from pathlib import Path

import pytest
from omegaconf import OmegaConf
from omegaconf.errors import ReadonlyConfigError

from finance_miner.common.errors import ConfigError
from finance_miner.config.config import (
    CONFIG_ENV_VAR,
    ensure_finam_config,
    finam_batch_view,
    finam_http_view,
    finam_view,
    load_config,
)


@pytest.fixture(autouse=True)
def _no_user_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def test_defaults_load_and_validate() -> None:
    cfg = load_config()
    ensure_finam_config(cfg)

    finam = finam_view(cfg)
    assert finam.catalog_url == "http://www.finam.ru/cache/icharts/icharts.js"
    assert finam.profiles_base_url == "http://www.finam.ru/profile/"
    assert finam.encoding == "cp1251"
    assert finam_http_view(cfg).accept_charset == "utf-8"
    assert finam_batch_view(cfg).workers == 4
    assert finam_batch_view(cfg).limit is None


def test_config_is_read_only() -> None:
    cfg = load_config()
    with pytest.raises(ReadonlyConfigError):
        cfg.sources.finam.encoding = "utf-8"


def test_dotlist_overrides_win() -> None:
    cfg = load_config(
        overrides=["sources.finam.batch.workers=2", "sources.finam.batch.limit=3"]
    )
    assert finam_batch_view(cfg).workers == 2
    assert finam_batch_view(cfg).limit == 3


def test_user_file_layer(tmp_path: Path) -> None:
    user = tmp_path / "miner.yaml"
    user.write_text(
        "sources:\n  finam:\n    http:\n      default_timeout: 5\n", encoding="utf-8"
    )
    cfg = load_config(user)

    assert finam_http_view(cfg).default_timeout == 5
    # untouched defaults survive the merge
    assert finam_http_view(cfg).user_agent == "finance-miner/0.1"


def test_env_var_points_to_user_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    user = tmp_path / "env.yaml"
    user.write_text("sources:\n  finam:\n    encoding: koi8-r\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(user))

    assert finam_view(load_config()).encoding == "koi8-r"


def test_missing_user_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_ensure_reports_missing_keys() -> None:
    cfg = OmegaConf.create(
        {"sources": {"finam": {"catalog_url": "x", "http": {}, "batch": {}}}}
    )
    with pytest.raises(ConfigError) as info:
        ensure_finam_config(cfg)
    assert "profiles_base_url" in str(info.value)
    assert "encoding" in str(info.value)


def test_ensure_rejects_bad_batch_values() -> None:
    cfg = load_config(overrides=["sources.finam.batch.workers=0"])
    with pytest.raises(ConfigError):
        ensure_finam_config(cfg)


def test_missing_section_raises_config_error() -> None:
    with pytest.raises(ConfigError):
        finam_view(OmegaConf.create({"sources": {}}))
