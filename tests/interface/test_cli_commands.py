"""Tests for CLI commands: enroll, review, queries, remove, config and server."""

import json
import os
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from mastery.application.config import resolve_config
from mastery.interface.cli import app

runner = CliRunner()


@pytest.fixture
def store(tmp_path, mock_home):
    return tmp_path / "cards.json"


def invoke(store, *args, **kwargs):
    return runner.invoke(app, ["--backend", "json", "--store-path", str(store), *args], **kwargs)


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition scheduling" in result.stdout
    assert "review" in result.stdout
    assert "phases" in result.stdout


# --- Cards ---


def test_enroll_and_review(store):
    result = invoke(store, "enroll", "two-sum", "lru-cache")
    assert result.exit_code == 0
    assert "two-sum" in result.stdout
    assert "new" in result.stdout

    result = invoke(store, "review", "two-sum", "--rating", "8", "-t", "600")
    assert result.exit_code == 0
    assert "learning" in result.stdout
    assert "Next review in 9 days" in result.stdout

    data = json.loads(store.read_text())
    assert {c["problem_id"] for c in data["cards"]} == {"two-sum", "lru-cache"}
    assert data["reviews"][0]["elapsed_seconds"] == 600


def test_review_json_output(store):
    invoke(store, "enroll", "p1")
    result = invoke(store, "review", "p1", "-r", "1", "--json")

    assert result.exit_code == 0
    card = json.loads(result.stdout)
    assert card["state"] == "learning"
    assert card["lapses"] == 1
    assert card["version"] == 1


def test_review_invalid_rating(store):
    invoke(store, "enroll", "p1")
    result = invoke(store, "review", "p1", "--rating", "11")

    assert result.exit_code == 1
    assert "Rating must be an integer between 1 and 10" in result.output
    assert json.loads(store.read_text())["cards"][0]["reps"] == 0


def test_review_unknown_card(store):
    result = invoke(store, "review", "ghost", "--rating", "5")

    assert result.exit_code == 1
    assert "No card for problem 'ghost'" in result.output


def test_preview(store):
    invoke(store, "enroll", "p1")
    result = invoke(store, "preview", "p1")

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 10
    assert lines[0].strip().startswith("1:")


def test_remove_with_confirmation(store):
    invoke(store, "enroll", "p1")

    aborted = invoke(store, "remove", "p1", input="n\n")
    assert aborted.exit_code == 1
    assert json.loads(store.read_text())["cards"]

    result = invoke(store, "remove", "p1", input="y\n")
    assert result.exit_code == 0
    assert json.loads(store.read_text())["cards"] == []


def test_remove_force_unknown(store):
    result = invoke(store, "remove", "ghost", "--force")
    assert result.exit_code == 1


def test_history(store):
    invoke(store, "enroll", "p1")
    invoke(store, "review", "p1", "-r", "6")

    result = invoke(store, "history", "p1")

    assert result.exit_code == 0
    logs = json.loads(result.stdout)
    assert len(logs) == 1
    assert logs[0]["state_before"] == "new"


# --- Queries ---


def test_due(store):
    result = invoke(store, "due")
    assert result.exit_code == 0
    assert "Nothing due." in result.stdout

    invoke(store, "enroll", "a", "b")
    invoke(store, "review", "a", "-r", "9")

    result = invoke(store, "due", "--json")
    assert result.exit_code == 0
    assert [c["problem_id"] for c in json.loads(result.stdout)] == ["b"]


def test_stats_empty(store):
    result = invoke(store, "stats")

    assert result.exit_code == 0
    stats = json.loads(result.stdout)
    assert stats["total"] == 0
    assert stats["retention_rate"] == 0.0


def test_phases_with_content(store, tmp_path):
    content = tmp_path / "problems.yaml"
    content.write_text(
        "problems:\n"
        "  - id: a\n    phase: encode\n"
        "  - id: b\n    phase: recall\n    unresolved_errors: [1]\n"
    )
    invoke(store, "enroll", "a", "b")

    result = invoke(store, "--content-file", str(content), "phases")
    assert result.exit_code == 0, result.output
    assert "Recommended focus: encode" in result.stdout

    result = invoke(store, "--content-file", str(content), "phases", "--json")
    assert json.loads(result.stdout)["counts"] == {"1": 0, "2": 1, "3": 1, "4": 0}

    result = invoke(store, "--content-file", str(content), "recommend")
    recs = json.loads(result.stdout)
    assert [r["problem_id"] for r in recs["tier_1_critical"]] == ["b"]
    assert [r["problem_id"] for r in recs["tier_2_due"]] == ["a"]


def test_phases_without_content(store):
    result = invoke(store, "phases")
    assert result.exit_code == 0
    assert "All caught up." in result.stdout


# --- Config ---


def test_config_show(store):
    result = invoke(store, "config", "show")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["backend"] == "json"
    assert data["store_path"] == str(store.resolve())
    assert data["model"]["desired_retention"] == 0.9


# --- Server ---


@patch("uvicorn.run")
def test_server_command(mock_run):
    result = runner.invoke(app, ["server", "--port", "9000"])
    assert result.exit_code == 0
    mock_run.assert_called_with("mastery.server:app", host="127.0.0.1", port=9000, reload=False)


@patch("uvicorn.run")
def test_server_command_forwards_global_options(mock_run, tmp_path, mock_home):
    store = tmp_path / "server-cards.json"

    with patch.dict(os.environ):
        result = runner.invoke(app, ["--backend", "memory", "--store-path", str(store), "server"])

        assert result.exit_code == 0
        assert os.environ["MASTERY_BACKEND"] == "memory"
        assert os.environ["MASTERY_STORE_PATH"] == str(store)
        assert "MASTERY_CONTENT_FILE" not in os.environ

        config = resolve_config()
        assert config.backend == "memory"
        assert config.store_path == store.resolve()

    mock_run.assert_called_once()
