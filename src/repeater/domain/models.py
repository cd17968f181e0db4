"""
Domain models for cards and their scheduling state.

These are pure data structures with no I/O or external dependencies.
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_NEW_DIFFICULTY,
    DEFAULT_NEW_STABILITY,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
)
from .exceptions import CorruptRecordError

CardIdentity = str


class CardKind(str, Enum):
    BASIC = "basic"
    CLOZE = "cloze"


class CardState(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class Rating(str, Enum):
    FAIL = "fail"
    PASS = "pass"


# ---------- Card content ----------


@dataclass(frozen=True)
class ClozeSpan:
    """A bracketed deletion; offsets index the cloze text, brackets included."""

    start: int
    end: int

    def inner(self, text: str) -> str:
        return text[self.start + 1 : self.end - 1]


@dataclass(frozen=True)
class BasicContent:
    front: str
    back: str


@dataclass(frozen=True)
class ClozeContent:
    text: str
    spans: tuple[ClozeSpan, ...]


CardContent = BasicContent | ClozeContent


@dataclass(frozen=True)
class SourceLocation:
    """
    Where a card block was found.

    Attributes:
        path: Deck file the block came from.
        start_line: First line of the block (1-based).
        end_line: Last line of the block (1-based, inclusive).
    """

    path: Path
    start_line: int
    end_line: int

    def __str__(self) -> str:
        if self.start_line <= 0:
            return str(self.path)
        if self.start_line == self.end_line:
            return f"{self.path}:{self.start_line}"
        return f"{self.path}:{self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class RawCard:
    """A card as parsed from a deck. Never persisted."""

    content: CardContent
    source: SourceLocation

    @property
    def kind(self) -> CardKind:
        match self.content:
            case BasicContent():
                return CardKind.BASIC
            case ClozeContent():
                return CardKind.CLOZE


@dataclass(frozen=True)
class ParseIssue:
    """A malformed block or unreadable file, reported but not fatal."""

    location: SourceLocation
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


# ---------- Scheduling state ----------


@dataclass(frozen=True)
class CardRecord:
    """
    Persisted scheduling state for one card identity.

    Attributes:
        identity: Content digest of the card (primary key).
        state: Position in the scheduling state machine.
        stability: Days until recall probability drops to the target retention.
        difficulty: Intrinsic hardness on the 1-10 scale.
        due_date: Calendar day the card is next due. None only while New.
        last_reviewed_at: Timestamp of the most recent rating.
        reps: Total number of ratings.
        lapses: Number of Fail ratings given while in Review.
        added_at: When the identity was first seen.
    """

    identity: CardIdentity
    state: CardState = CardState.NEW
    stability: float = DEFAULT_NEW_STABILITY
    difficulty: float = DEFAULT_NEW_DIFFICULTY
    due_date: date | None = None
    last_reviewed_at: datetime | None = None
    reps: int = 0
    lapses: int = 0
    added_at: datetime | None = None

    @classmethod
    def new(cls, identity: CardIdentity, added_at: datetime | None = None) -> "CardRecord":
        return cls(identity=identity, added_at=added_at or datetime.now(timezone.utc))

    @property
    def is_new(self) -> bool:
        return self.state is CardState.NEW

    def validate(self) -> "CardRecord":
        """Raise CorruptRecordError unless every field is in range."""
        if not self.identity:
            raise CorruptRecordError(None, "empty identity")
        if not isinstance(self.state, CardState):
            raise CorruptRecordError(self.identity, f"unknown state {self.state!r}")
        if not math.isfinite(self.stability) or self.stability <= 0:
            raise CorruptRecordError(self.identity, f"stability {self.stability!r} out of range")
        if not math.isfinite(self.difficulty) or not (
            MIN_DIFFICULTY <= self.difficulty <= MAX_DIFFICULTY
        ):
            raise CorruptRecordError(
                self.identity, f"difficulty {self.difficulty!r} out of range"
            )
        if self.reps < 0 or self.lapses < 0:
            raise CorruptRecordError(self.identity, "negative review counters")
        if self.state is not CardState.NEW and self.due_date is None:
            raise CorruptRecordError(self.identity, f"state {self.state.value} without due date")
        return self

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CardRecord":
        """Decode a store row, raising CorruptRecordError on any bad field."""
        identity = row.get("card_hash")
        try:
            record = cls(
                identity=str(identity) if identity else "",
                state=CardState(row["state"]),
                stability=float(row["stability"]),
                difficulty=float(row["difficulty"]),
                due_date=_parse_date(row.get("due_date")),
                last_reviewed_at=_parse_datetime(row.get("last_reviewed_at")),
                reps=int(row["reps"]),
                lapses=int(row["lapses"]),
                added_at=_parse_datetime(row.get("added_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptRecordError(identity, f"undecodable field: {e}") from e
        return record.validate()

    def to_row(self) -> dict[str, Any]:
        return {
            "card_hash": self.identity,
            "added_at": self.added_at.isoformat() if self.added_at else None,
            "state": self.state.value,
            "stability": self.stability,
            "difficulty": self.difficulty,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "last_reviewed_at": (
                self.last_reviewed_at.isoformat() if self.last_reviewed_at else None
            ),
            "reps": self.reps,
            "lapses": self.lapses,
        }


@dataclass(frozen=True)
class ReviewEvent:
    """A single rating, consumed by the scheduler and then discarded."""

    identity: CardIdentity
    rating: Rating
    reviewed_at: datetime
    prior: CardRecord


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return date.fromisoformat(str(value))


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


# ---------- Working set ----------


@dataclass
class WorkingCard:
    card: RawCard
    record: CardRecord

    @property
    def identity(self) -> CardIdentity:
        return self.record.identity


@dataclass
class WorkingSet:
    """
    Join of the cards found in the current decks with their records.

    Insertion ordered: iteration follows the order cards were found in,
    which is sorted file order and then position within the file.
    """

    entries: dict[CardIdentity, WorkingCard] = field(default_factory=dict)

    def add(self, card: RawCard, record: CardRecord) -> bool:
        """Add a card; returns False if the identity is already present."""
        if record.identity in self.entries:
            return False
        self.entries[record.identity] = WorkingCard(card=card, record=record)
        return True

    def get(self, identity: CardIdentity) -> WorkingCard | None:
        return self.entries.get(identity)

    def replace(self, record: CardRecord) -> None:
        entry = self.entries[record.identity]
        self.entries[record.identity] = replace(entry, record=record)

    def records(self) -> list[CardRecord]:
        return [entry.record for entry in self.entries.values()]

    def __contains__(self, identity: object) -> bool:
        return identity in self.entries

    def __iter__(self) -> Iterator[WorkingCard]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)
