from pathlib import Path

import pytest

from snapclean.paths import APP_NAME, cache_root, config_root
from snapclean.util.logging import use_color


@pytest.fixture()
def clean_color_env(monkeypatch):
    for var in ("NO_COLOR", "CLICOLOR", "FORCE_COLOR", "CLICOLOR_FORCE"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_use_color_defaults_on(clean_color_env) -> None:
    assert use_color()


@pytest.mark.parametrize("var,value", [("NO_COLOR", "1"), ("NO_COLOR", ""), ("CLICOLOR", "0")])
def test_use_color_can_be_disabled(clean_color_env, var: str, value: str) -> None:
    clean_color_env.setenv(var, value)
    assert not use_color()


def test_force_color_wins_over_no_color(clean_color_env) -> None:
    clean_color_env.setenv("NO_COLOR", "1")
    clean_color_env.setenv("FORCE_COLOR", "1")
    assert use_color()

    clean_color_env.setenv("FORCE_COLOR", "0")
    assert not use_color()


def test_xdg_roots(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xc"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xf"))
    assert cache_root() == tmp_path / "xc" / APP_NAME
    assert config_root() == tmp_path / "xf" / APP_NAME
    assert cache_root().is_dir()


def test_roots_fall_back_to_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert cache_root() == tmp_path / ".cache" / APP_NAME
    assert config_root() == tmp_path / ".config" / APP_NAME
