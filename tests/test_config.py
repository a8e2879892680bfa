from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from fragkit.config import (
    DEFAULT_DENYLIST,
    FragkitConfig,
    ensure_install_token,
    load_config,
)
from fragkit.home import ensure_fragkit_layout


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    paths = ensure_fragkit_layout(tmp_path)
    cfg = load_config(paths)
    assert isinstance(cfg, FragkitConfig)
    assert cfg.network.bind_host == "127.0.0.1"
    assert cfg.cookies.path == "/"
    assert cfg.cookies.httponly is False
    assert set(DEFAULT_DENYLIST) <= set(cfg.state_urls.denylist)


def test_load_config_validation_error(tmp_path: Path) -> None:
    paths = ensure_fragkit_layout(tmp_path)

    paths.config_path.write_text(
        json.dumps({"network": {"port": "not-an-int"}}),
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        load_config(paths)


def test_load_config_rejects_unknown_samesite(tmp_path: Path) -> None:
    paths = ensure_fragkit_layout(tmp_path)
    paths.config_path.write_text(
        json.dumps({"cookies": {"samesite": "sometimes"}}), encoding="utf-8"
    )

    with pytest.raises(ValidationError):
        load_config(paths)


def test_ensure_install_token_persists_once(tmp_path: Path) -> None:
    paths = ensure_fragkit_layout(tmp_path)

    cfg = ensure_install_token(paths, load_config(paths))
    token = cfg.auth.install_token
    assert token

    reloaded = load_config(paths)
    assert reloaded.auth.install_token == token
    assert ensure_install_token(paths, reloaded).auth.install_token == token


def test_deny_extends_denylist() -> None:
    settings = FragkitConfig().state_urls.deny("sort", "token")

    assert "sort" in settings.denylist
    assert settings.denylist.count("token") == 1
    assert "sort" not in FragkitConfig().state_urls.denylist
