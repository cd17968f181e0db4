"""
Reconciliation of freshly parsed cards against stored scheduling records.

Identity is content-derived, so editing a card's wording gives it a new
identity: the old record is left orphaned in the store (never deleted) and
the edited card starts over as New. Orphans are excluded from the working
set until their text reappears in a deck.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from repeater.application.deck_loader import DeckScan, load_cards
from repeater.domain.exceptions import CorruptRecordError
from repeater.domain.models import CardIdentity, CardRecord, RawCard, WorkingSet
from repeater.domain.ports import CardStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    working_set: WorkingSet
    pending: list[CardRecord] = field(default_factory=list)  # records to upsert
    repaired: list[CardIdentity] = field(default_factory=list)  # corrupt rows reset to New
    duplicates: int = 0  # cards sharing an identity with an earlier card


def reconcile(
    cards: Iterable[tuple[CardIdentity, RawCard]],
    stored_rows: Mapping[CardIdentity, Mapping[str, Any]],
    now: datetime | None = None,
) -> ReconcileResult:
    """
    Join identified cards with their stored records.

    Args:
        cards: (identity, card) pairs in deck order.
        stored_rows: Raw store rows for (at least) those identities.
        now: Timestamp recorded as added_at on new records.

    Returns:
        ReconcileResult. Running it again over the same decks after the
        pending records have been persisted yields no pending records.
    """
    now = now or datetime.now(timezone.utc)
    result = ReconcileResult(working_set=WorkingSet())

    for card_id, card in cards:
        if card_id in result.working_set:
            # Identical wording elsewhere shares one history.
            result.duplicates += 1
            logger.debug(f"[reconcile] {card.source} duplicates {card_id[:12]}")
            continue

        row = stored_rows.get(card_id)
        if row is None:
            record = CardRecord.new(card_id, added_at=now)
            result.pending.append(record)
        else:
            try:
                record = CardRecord.from_row(row)
            except CorruptRecordError as e:
                logger.warning(f"[reconcile] {e}; resetting {card.source} to New")
                record = CardRecord.new(card_id, added_at=now)
                result.pending.append(record)
                result.repaired.append(card_id)

        result.working_set.add(card, record)

    return result


@dataclass
class SyncResult:
    scan: DeckScan
    reconciled: ReconcileResult
    written: int

    @property
    def working_set(self) -> WorkingSet:
        return self.reconciled.working_set


def sync_working_set(
    store: CardStore, paths: Iterable[Path | str], now: datetime | None = None
) -> SyncResult:
    """Scan decks, reconcile against the store, and persist new records."""
    scan = load_cards(paths)
    rows = store.fetch_rows(card_id for card_id, _ in scan.cards)
    reconciled = reconcile(scan.cards, rows, now=now)
    written = store.upsert_many(reconciled.pending) if reconciled.pending else 0
    if written:
        logger.info(f"[reconcile] Registered {written} new or repaired cards")
    return SyncResult(scan=scan, reconciled=reconciled, written=written)
