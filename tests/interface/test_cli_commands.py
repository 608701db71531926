"""Tests for CLI commands: help, decks, cards, plan, study, stats, bundles, config and serve."""

import asyncio
import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from mindsprout import server
from mindsprout.interface.cli import app

runner = CliRunner()


@pytest.fixture
def cli(tmp_path, mock_home):
    """Invoke the app against an isolated JSON data dir."""
    data_dir = tmp_path / "data"

    def _invoke(*args, input=None):
        return runner.invoke(app, ["--data-dir", str(data_dir), *args], input=input)

    return _invoke


def _deck_id(cli, name):
    result = cli("deck", "list", "--json")
    return next(d["id"] for d in json.loads(result.stdout) if d["name"] == name)


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition flashcards" in result.stdout
    assert "study" in result.stdout
    assert "deck" in result.stdout


# --- Decks ---


def test_deck_create_and_list(cli):
    result = cli("deck", "create", "Spanish", "--strategy", "exam", "--limit", "5")
    assert result.exit_code == 0
    assert "Created deck 'Spanish'" in result.stdout

    decks = json.loads(cli("deck", "list", "--json").stdout)
    assert len(decks) == 1
    assert decks[0]["name"] == "Spanish"
    assert decks[0]["strategy"] == "exam"
    assert decks[0]["session_limit"] == 5
    assert decks[0]["total"] == 0


def test_deck_list_empty(cli):
    result = cli("deck", "list")
    assert result.exit_code == 0
    assert "No decks yet" in result.stdout


def test_deck_set(cli):
    cli("deck", "create", "A")
    result = cli("deck", "set", "A", "--limit", "3", "--strategy", "exam")

    assert result.exit_code == 0
    assert "limit=3, strategy=exam" in result.stdout


def test_unknown_deck_is_a_clean_error(cli):
    result = cli("plan", "nope")
    assert result.exit_code == 1
    assert "Deck not found: nope" in result.output


def test_deck_delete_cascades(cli):
    cli("deck", "create", "A")
    cli("card", "add", "A", "Q1", "A1")
    cli("card", "add", "A", "Q2", "A2")

    result = cli("deck", "delete", "A", "--force")
    assert result.exit_code == 0
    assert "(2 cards)" in result.stdout
    assert json.loads(cli("deck", "list", "--json").stdout) == []


def test_deck_delete_can_be_cancelled(cli):
    cli("deck", "create", "A")
    result = cli("deck", "delete", "A", input="n\n")

    assert result.exit_code != 0
    assert len(json.loads(cli("deck", "list", "--json").stdout)) == 1


# --- Cards ---


def test_card_add_normal_and_cloze(cli):
    cli("deck", "create", "A")

    normal = cli("card", "add", "A", "Hola", "Hello")
    cloze = cli("card", "add", "A", "El gato es negro", "--hide", "2,4")

    assert normal.exit_code == 0
    assert "normal card" in normal.stdout
    assert cloze.exit_code == 0
    assert "El ____ es ____" in cloze.stdout

    listing = cli("card", "list", "A")
    assert "Hola -> Hello" in listing.stdout
    assert "El ____ es ____ -> El gato es negro" in listing.stdout


def test_card_add_bad_hide(cli):
    cli("deck", "create", "A")
    result = cli("card", "add", "A", "a b", "--hide", "x")
    assert result.exit_code == 2


# --- Plan & study ---


def test_plan_json(cli):
    cli("deck", "create", "A", "--limit", "2")
    for i in range(3):
        cli("card", "add", "A", f"Q{i}", "x")

    plan = json.loads(cli("plan", "A", "--json").stdout)

    assert plan["due"] == 3
    assert plan["dropped"] == 1
    assert len(plan["cards"]) == 2


def test_study_session_saves_each_grade(cli):
    cli("deck", "create", "A")
    cli("card", "add", "A", "Q", "Answer")

    result = cli("study", "A", input="\n4\n")

    assert result.exit_code == 0, result.output
    assert "Answer" in result.stdout
    assert "Session complete: 1 cards." in result.stdout

    stats = json.loads(cli("stats", "--json").stdout)
    assert stats["total_reviews"] == 1
    assert stats["due"] == 0


def test_study_typed_mode_and_quit(cli):
    cli("deck", "create", "A")
    cli("card", "add", "A", "Capital of Peru?", "Lima")
    cli("card", "add", "A", "Capital of Chile?", "Santiago")

    result = cli("study", "A", "--mode", "type", input="lima\n3\n\nq\n")

    assert result.exit_code == 0, result.output
    assert "Correct!" in result.stdout
    assert "Stopped. 1 graded, 1 left." in result.stdout


def test_study_nothing_due(cli):
    cli("deck", "create", "A")
    result = cli("study", "A")
    assert "Nothing due" in result.stdout


# --- Stats ---


def test_stats_text(cli):
    cli("deck", "create", "A")
    cli("card", "add", "A", "Q", "A")

    result = cli("stats")

    assert result.exit_code == 0
    assert "Cards: 1  Due: 1  New: 1" in result.stdout
    assert "Today" in result.stdout


# --- Export / import ---


def test_export_import(cli, tmp_path):
    cli("deck", "create", "Bio")
    cli("card", "add", "Bio", "Q", "A")
    bundle = tmp_path / "bio.json"

    exported = cli("export", "Bio", str(bundle))
    assert exported.exit_code == 0
    assert "Exported 1 cards" in exported.stdout
    assert json.loads(bundle.read_text())["version"] == 1

    imported = cli("import", str(bundle))
    assert imported.exit_code == 0
    assert "Imported 'Bio' with 1 cards" in imported.stdout
    assert len(json.loads(cli("deck", "list", "--json").stdout)) == 2


def test_import_bad_bundle(cli, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"version": 99}')

    result = cli("import", str(bad))

    assert result.exit_code == 1
    assert "Unsupported bundle version" in result.output


# --- Config ---


@patch("mindsprout.interface.cli._resolve_with_overrides")
def test_config_show_command(mock_resolve):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "data_dir": Path("/tmp/mindsprout"),
        "backend": "json",
        "verbose": 1,
    }
    mock_config.log_level = logging.INFO
    mock_resolve.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    shown = json.loads(result.stdout)
    assert shown["data_dir"] == "/tmp/mindsprout"
    assert shown["backend"] == "json"


# --- Server ---


@patch("uvicorn.run")
def test_serve_command(mock_run, mock_home):
    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "mindsprout.server:app", host="127.0.0.1", port=9000, reload=False
    )


@patch("uvicorn.run")
def test_serve_uses_global_data_dir(mock_run, cli, tmp_path, mock_home, monkeypatch):
    monkeypatch.setattr(server, "_service", None)

    result = cli("serve")
    assert result.exit_code == 0

    service = asyncio.run(server.get_study_service())
    asyncio.run(service.create_deck("Served"))

    assert (tmp_path / "data" / "decks.json").exists()
    assert not (mock_home / ".local/share/mindsprout").exists()


@patch("uvicorn.run")
def test_serve_uses_global_backend(mock_run, cli, tmp_path, monkeypatch):
    monkeypatch.setattr(server, "_service", None)

    cli("--backend", "memory", "serve")
    service = asyncio.run(server.get_study_service())
    asyncio.run(service.create_deck("Scratch"))

    assert not (tmp_path / "data").exists()


# --- Verbosity ---


def test_verbose_flag_enables_debug(cli):
    logger = logging.getLogger("mindsprout")
    previous = logger.level
    try:
        result = cli("-v", "deck", "list")
        assert result.exit_code == 0
        assert logger.level == logging.DEBUG

        cli("deck", "list")
        assert logger.level == logging.INFO
    finally:
        logger.setLevel(previous)
