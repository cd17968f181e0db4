from datetime import date
from pathlib import Path

import pytest

from repeater.domain.models import BasicContent, RawCard, SourceLocation
from repeater.infrastructure.store import SqliteCardStore


@pytest.fixture
def mock_deck_dir(tmp_path):
    """Creates a temporary directory holding Markdown decks."""
    d = tmp_path / "decks"
    d.mkdir()
    return d


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config and database from the real home directory
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "REPEATER_DB_PATH",
        "REPEATER_CARD_LIMIT",
        "REPEATER_NEW_CARD_LIMIT",
        "REPEATER_FSRS_WEIGHTS",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def store(tmp_path):
    with SqliteCardStore(tmp_path / "cards.db") as s:
        yield s


@pytest.fixture
def today():
    return date(2024, 3, 15)


def make_card(front: str, back: str = "answer", path: str = "deck.md", line: int = 1) -> RawCard:
    return RawCard(BasicContent(front=front, back=back), SourceLocation(Path(path), line, line + 1))


@pytest.fixture
def card_factory():
    return make_card
