import logging
from pathlib import Path

import pytest

from mindsprout.application.config import AppConfig, resolve_config
from mindsprout.domain.models import Strategy


def test_defaults(mock_home):
    config = AppConfig()

    assert config.backend == "json"
    assert config.default_session_limit == 20
    assert config.default_strategy is Strategy.STANDARD
    assert config.data_dir == mock_home / ".local/share/mindsprout"


def test_toml_file(mock_home):
    cfg_dir = mock_home / ".config/mindsprout"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text('backend = "memory"\ndefault_strategy = "exam"\n')

    config = AppConfig()

    assert config.backend == "memory"
    assert config.default_strategy is Strategy.EXAM


def test_env_beats_toml(mock_home, monkeypatch):
    (mock_home / ".mindsprout.toml").write_text("default_session_limit = 10\n")
    monkeypatch.setenv("MINDSPROUT_DEFAULT_SESSION_LIMIT", "30")

    assert AppConfig().default_session_limit == 30


def test_cli_overrides_win_and_none_is_ignored(mock_home, monkeypatch, tmp_path):
    monkeypatch.setenv("MINDSPROUT_BACKEND", "memory")

    config = resolve_config({"backend": "json", "data_dir": str(tmp_path), "verbose": None})

    assert config.backend == "json"
    assert config.data_dir == Path(tmp_path).resolve()
    assert config.verbose == 1


@pytest.mark.parametrize(
    "verbose,level",
    [("0", logging.WARNING), ("1", logging.INFO), ("2", logging.DEBUG), ("3", logging.DEBUG)],
)
def test_verbose_env_sets_log_level(mock_home, monkeypatch, verbose, level):
    monkeypatch.setenv("MINDSPROUT_VERBOSE", verbose)

    assert AppConfig().log_level == level
