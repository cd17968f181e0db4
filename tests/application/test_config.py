"""Tests for layered configuration."""

import pytest
from pydantic import ValidationError

from repeater.application.config import AppConfig, resolve_config
from repeater.application.scheduler import DEFAULT_WEIGHTS


def test_defaults(mock_home):
    config = resolve_config()

    assert config.db_path == mock_home / ".local/share/repeater/cards.db"
    assert config.card_limit is None
    assert config.new_card_limit is None
    assert config.desired_retention == 0.9
    assert config.maximum_interval == 256
    assert config.verbose == 1


def test_toml_file_is_read(mock_home):
    cfg = mock_home / ".config/repeater/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('card_limit = 40\nnew_card_limit = 10\ndb_path = "~/decks.db"\n')

    config = resolve_config()

    assert config.card_limit == 40
    assert config.new_card_limit == 10
    assert config.db_path == mock_home / "decks.db"


def test_env_beats_toml_and_cli_beats_env(mock_home, monkeypatch):
    cfg = mock_home / ".config/repeater/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text("card_limit = 40\n")
    monkeypatch.setenv("REPEATER_CARD_LIMIT", "25")

    assert resolve_config().card_limit == 25
    assert resolve_config({"card_limit": 5}).card_limit == 5


def test_none_overrides_are_ignored(mock_home, monkeypatch):
    monkeypatch.setenv("REPEATER_NEW_CARD_LIMIT", "7")
    assert resolve_config({"new_card_limit": None}).new_card_limit == 7


def test_maximum_interval_is_bounded(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(maximum_interval=300)
    with pytest.raises(ValidationError):
        AppConfig(maximum_interval=0)


def test_weights_must_be_complete(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(fsrs_weights=[0.1, 0.2])


def test_scheduler_params(mock_home):
    params = AppConfig(maximum_interval=60, desired_retention=0.85).scheduler_params()
    assert params.weights == DEFAULT_WEIGHTS
    assert params.maximum_interval == 60
    assert params.desired_retention == 0.85

    custom = [w * 1.01 for w in DEFAULT_WEIGHTS]
    assert AppConfig(fsrs_weights=custom).scheduler_params().weights == tuple(custom)


def test_weights_out_of_range_are_rejected(mock_home):
    weights = list(DEFAULT_WEIGHTS)
    weights[8] = -1.0
    with pytest.raises(ValidationError, match="fsrs_weights\\[8\\]"):
        AppConfig(fsrs_weights=weights)
