"""Tests for CLI commands: help, config, create, check and drill."""

import json
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from repeater import __version__
from repeater.application.deck_loader import load_cards
from repeater.application.scheduler import DEFAULT_WEIGHTS
from repeater.domain.exceptions import DuplicateCardError, StoreError
from repeater.domain.models import CardRecord, CardState
from repeater.infrastructure.store import SqliteCardStore
from repeater.interface._common import humanize_error
from repeater.interface.cli import app

runner = CliRunner()


@pytest.fixture
def deck(mock_home, mock_deck_dir):
    path = mock_deck_dir / "deck.md"
    path.write_text("# Arithmetic\n\nQ: 2+2?\nA: 4\n")
    return path


def check_json(*paths):
    result = runner.invoke(app, ["check", "--json", *map(str, paths)])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "drill" in result.stdout
    assert "check" in result.stdout
    assert "create" in result.stdout
    assert "config" in result.stdout


def test_cli_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == f"repeater {__version__}"


# --- Config ---


@patch("repeater.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "db_path": Path("/tmp/cards.db"),
        "card_limit": 30,
        "verbose": 1,
    }
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["db_path"] == str(Path("/tmp/cards.db"))
    assert output_data["card_limit"] == 30


# --- Create ---


def test_create_appends_and_registers(deck):
    result = runner.invoke(app, ["create", str(deck), "--text", "C: The sky is [blue]."])

    assert result.exit_code == 0, result.output
    assert "Added 1 card(s)" in result.stdout
    assert deck.read_text() == "# Arithmetic\n\nQ: 2+2?\nA: 4\n\n---\n\nC: The sky is [blue].\n"
    data = check_json(deck)
    assert data["num_cards"] == 2
    assert data["total_in_store"] == 2


def test_create_rejects_stored_identity(deck):
    text = "Q: capital of France\nA: Paris"
    assert runner.invoke(app, ["create", str(deck), "--text", text]).exit_code == 0
    before = deck.read_text()

    result = runner.invoke(app, ["create", str(deck), "--text", "Q: Capital of  France?\nA: paris"])

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert deck.read_text() == before


def test_create_rejects_repeated_card_in_one_text(deck):
    before = deck.read_text()
    text = "Q: capital of France\nA: Paris\n\nQ: capital of france\nA: Paris"

    result = runner.invoke(app, ["create", str(deck), "--text", text])

    assert result.exit_code == 1
    assert deck.read_text() == before


def test_create_rejects_parse_issues(mock_home, mock_deck_dir):
    path = mock_deck_dir / "new.md"

    result = runner.invoke(app, ["create", str(path), "--text", "Q: lonely question", "--yes"])

    assert result.exit_code == 1
    assert "question has no 'A:' answer" in result.output
    assert not path.exists()


def test_create_requires_markdown_file(mock_home, mock_deck_dir):
    result = runner.invoke(app, ["create", str(mock_deck_dir), "--text", "Q: a\nA: b"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["create", str(mock_deck_dir / "x.txt"), "--text", "Q: a\nA: b"])
    assert result.exit_code == 1


def test_create_new_deck_after_confirmation(mock_home, mock_deck_dir):
    path = mock_deck_dir / "sub" / "fresh.md"

    declined = runner.invoke(app, ["create", str(path), "--text", "Q: a q\nA: b"], input="n\n")
    assert declined.exit_code == 0
    assert "Aborting" in declined.stdout
    assert not path.exists()

    accepted = runner.invoke(app, ["create", str(path), "--text", "Q: a q\nA: b"], input="y\n")
    assert accepted.exit_code == 0, accepted.output
    assert path.read_text() == "Q: a q\nA: b\n"


def test_create_keeps_existing_cards_intact(deck):
    before = {card_id for card_id, _ in load_cards([deck]).cards}

    text = "Some context note\nQ: capital of Italy?\nA: Rome"
    result = runner.invoke(app, ["create", str(deck), "--text", text])

    assert result.exit_code == 0, result.output
    after = {card_id for card_id, _ in load_cards([deck]).cards}
    assert before < after
    assert len(after) == 2


@patch("repeater.interface.cli.typer.edit")
def test_create_uses_editor_without_text(mock_edit, deck):
    mock_edit.return_value = "# a comment line\nQ: edited question\nA: edited answer\n"

    result = runner.invoke(app, ["create", str(deck)])

    assert result.exit_code == 0, result.output
    mock_edit.assert_called_once()
    assert deck.read_text().endswith("\nQ: edited question\nA: edited answer\n")


@patch("repeater.interface.cli.typer.edit", return_value=None)
def test_create_with_closed_editor_saves_nothing(mock_edit, deck):
    before = deck.read_text()
    result = runner.invoke(app, ["create", str(deck)])
    assert result.exit_code == 1
    assert deck.read_text() == before


# --- Check ---


def test_check_json_counts(deck):
    data = check_json(deck)

    assert data["num_cards"] == 1
    assert data["new_cards"] == 1
    assert data["due_cards"] == 1
    assert data["overdue_cards"] == 0
    assert data["upcoming_week"] == {}
    assert data["issues"] == []


def test_check_reports_issues(deck):
    deck.write_text(deck.read_text() + "\nC: nothing hidden\n")

    result = runner.invoke(app, ["check", str(deck)])

    assert result.exit_code == 0
    assert "warning:" in result.output
    assert "cloze has no [bracketed] deletion" in result.output
    assert "Cards: 1" in result.stdout


def test_check_store_error_exits_1(deck):
    with patch("repeater.interface.cli.sync_working_set", side_effect=StoreError("disk full")):
        result = runner.invoke(app, ["check", str(deck)])
    assert result.exit_code == 1
    assert "disk full" in result.output


def test_check_uses_configured_weights(deck, mock_home, monkeypatch):
    card_id = load_cards([deck]).cards[0][0]
    last_review = datetime.now().astimezone() - timedelta(days=20)
    record = CardRecord(
        identity=card_id,
        state=CardState.REVIEW,
        stability=5.0,
        difficulty=5.0,
        due_date=last_review.date() + timedelta(days=5),
        last_reviewed_at=last_review,
        reps=1,
    )
    with SqliteCardStore(mock_home / ".local/share/repeater/cards.db") as store:
        store.upsert(record)

    default_r = check_json(deck)["weakest"][0]["retrievability"]
    weights = [*DEFAULT_WEIGHTS[:20], 0.6]
    monkeypatch.setenv("REPEATER_FSRS_WEIGHTS", json.dumps(weights))
    custom_r = check_json(deck)["weakest"][0]["retrievability"]

    assert custom_r != default_r


# --- Drill ---


def test_drill_pass_schedules_card(deck):
    result = runner.invoke(app, ["drill", str(deck)], input="\n2\n")

    assert result.exit_code == 0, result.output
    assert "2+2?" in result.stdout
    assert "Session over: 1 reviewed, 0 failed." in result.stdout

    data = check_json(deck)
    assert data["reviewed_cards"] == 1
    assert data["due_cards"] == 0

    again = runner.invoke(app, ["drill", str(deck)])
    assert "All caught up" in again.stdout


def test_drill_failed_card_comes_back(deck):
    result = runner.invoke(app, ["drill", str(deck)], input="\n1\n\n2\n")

    assert result.exit_code == 0, result.output
    assert "Session over: 2 reviewed, 1 failed." in result.stdout


def test_drill_masks_cloze_until_revealed(mock_home, mock_deck_dir):
    path = mock_deck_dir / "cloze.md"
    path.write_text("C: Water boils at [100] degrees\n")

    result = runner.invoke(app, ["drill", str(path)], input="\n2\n")

    masked = result.stdout.index("Water boils at [___] degrees")
    revealed = result.stdout.index("Water boils at [100] degrees")
    assert masked < revealed


def test_drill_quit_keeps_earlier_reviews(deck):
    deck.write_text(deck.read_text() + "\nQ: 3+3?\nA: 6\n")

    result = runner.invoke(app, ["drill", str(deck)], input="\n2\nq\n")

    assert "Session over: 1 reviewed, 0 failed." in result.stdout
    assert check_json(deck)["reviewed_cards"] == 1


def test_drill_end_of_input_ends_session(deck):
    result = runner.invoke(app, ["drill", str(deck)], input="")
    assert result.exit_code == 0
    assert "Session over: 0 reviewed" in result.stdout


def test_drill_respects_new_card_limit(deck):
    deck.write_text(deck.read_text() + "\nQ: 3+3?\nA: 6\n")

    result = runner.invoke(app, ["drill", str(deck), "--new-card-limit", "1"], input="\n2\n")

    assert "Session over: 1 reviewed" in result.stdout
    assert check_json(deck)["new_cards"] == 1


# --- Errors ---


def test_humanize_error():
    assert "already exists" in humanize_error(DuplicateCardError("a" * 64))
    assert humanize_error(StoreError("boom")) == "Card store error: boom"
    assert humanize_error(ValueError("plain")) == "plain"
