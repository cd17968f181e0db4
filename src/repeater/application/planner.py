"""
Session planner for drill sessions.

Builds the ordered study queue for a day by:
1. Collecting reviewed cards that are overdue or due today
2. Ordering them most-overdue first (ties broken by identity)
3. Appending New cards in deck order, up to the new-card cap
4. Truncating the whole sequence from the tail to the card cap
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from repeater.domain.models import CardIdentity, WorkingCard, WorkingSet

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    """Result of planning, with the partitions kept for reporting."""

    queue: list[CardIdentity]
    overdue: list[CardIdentity] = field(default_factory=list)
    due_today: list[CardIdentity] = field(default_factory=list)
    new: list[CardIdentity] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.queue)


def build_session_plan(
    working_set: WorkingSet,
    today: date,
    card_limit: int | None = None,
    new_card_limit: int | None = None,
) -> SessionPlan:
    """
    Plan a drill session.

    Args:
        working_set: Cards in the current decks with their records.
        today: The calendar day being planned.
        card_limit: Maximum total cards, regardless of state.
        new_card_limit: Maximum New cards.

    Returns:
        SessionPlan whose queue has at most card_limit entries, at most
        new_card_limit of them New.
    """
    for name, limit in (("card_limit", card_limit), ("new_card_limit", new_card_limit)):
        if limit is not None and limit < 0:
            raise ValueError(f"{name} must not be negative, got {limit}")

    due: list[WorkingCard] = []
    new: list[CardIdentity] = []
    overdue_ids: list[CardIdentity] = []
    today_ids: list[CardIdentity] = []

    for entry in working_set:
        record = entry.record
        if record.is_new:
            new.append(record.identity)
        elif record.due_date is not None and record.due_date <= today:
            due.append(entry)
            if record.due_date < today:
                overdue_ids.append(record.identity)
            else:
                today_ids.append(record.identity)

    # Earliest due date = most overdue.
    due.sort(key=lambda e: (e.record.due_date, e.identity))
    queue = [e.identity for e in due]

    selected_new = new if new_card_limit is None else new[:new_card_limit]
    queue.extend(selected_new)

    if card_limit is not None:
        queue = queue[:card_limit]

    logger.debug(
        f"[plan] {today}: overdue={len(overdue_ids)} today={len(today_ids)} "
        f"new={len(new)} -> queue={len(queue)}"
    )
    return SessionPlan(queue=queue, overdue=overdue_ids, due_today=today_ids, new=new)


def plan(
    working_set: WorkingSet,
    today: date,
    card_limit: int | None = None,
    new_card_limit: int | None = None,
) -> list[CardIdentity]:
    return build_session_plan(working_set, today, card_limit, new_card_limit).queue
