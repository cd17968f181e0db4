"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from .models import CardIdentity, CardRecord


class CardStore(ABC):
    """
    Port for reading and writing scheduling records.

    There is deliberately no delete: records whose cards disappear from the
    decks stay in the store until their text comes back.

    Implementations:
        - SqliteCardStore: a single-file SQLite database.
    """

    @abstractmethod
    def fetch_rows(self, identities: Iterable[CardIdentity]) -> dict[CardIdentity, dict[str, Any]]:
        """
        Fetch the raw stored rows for the given identities.

        Rows are returned undecoded so a corrupt record can be handled per
        record by the caller. Identities with no row are absent from the result.
        """

    @abstractmethod
    def exists(self, identity: CardIdentity) -> bool:
        """Return True if a record is stored under this identity."""

    @abstractmethod
    def upsert(self, record: CardRecord) -> None:
        """Insert or update one record and commit it durably."""

    @abstractmethod
    def upsert_many(self, records: Iterable[CardRecord]) -> int:
        """Insert or update records in a single transaction. Returns the count written."""

    @abstractmethod
    def count(self) -> int:
        """Total number of records in the store, orphans included."""
