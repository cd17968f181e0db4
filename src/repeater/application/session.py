"""Drill session state: presents planned cards and records each rating durably."""

import logging
from collections import deque
from collections.abc import Iterable
from datetime import datetime

from repeater.application.scheduler import FsrsParameters, ReviewOutcome, apply_review
from repeater.domain.models import CardIdentity, Rating, ReviewEvent, WorkingCard, WorkingSet
from repeater.domain.ports import CardStore

logger = logging.getLogger(__name__)


class DrillSession:
    """
    Walks a planned queue, one card at a time.

    Every rating is committed to the store before the session advances, so
    aborting at any point keeps all reviews rated so far. Failed cards are
    queued again and shown once the planned cards are exhausted.
    """

    def __init__(
        self,
        store: CardStore,
        working_set: WorkingSet,
        queue: Iterable[CardIdentity],
        params: FsrsParameters,
    ):
        self.store = store
        self.working_set = working_set
        self.params = params
        self._pending: deque[CardIdentity] = deque(queue)
        self._redo: deque[CardIdentity] = deque()
        self.show_answer = False
        self.last_rating: Rating | None = None
        self.reviewed = 0
        self.failed = 0

    @property
    def planned(self) -> int:
        return len(self._pending)

    @property
    def redo_count(self) -> int:
        return len(self._redo)

    def is_complete(self) -> bool:
        return not self._pending and not self._redo

    def current(self) -> WorkingCard | None:
        if not self._pending:
            if not self._redo:
                return None
            self._pending, self._redo = self._redo, deque()
        return self.working_set.get(self._pending[0])

    def reveal(self) -> None:
        """Show the answer side. Has no scheduling effect."""
        self.show_answer = True

    def rate(self, rating: Rating, reviewed_at: datetime | None = None) -> ReviewOutcome:
        entry = self.current()
        if entry is None:
            raise RuntimeError("No card left to rate in this session")

        event = ReviewEvent(
            identity=entry.identity,
            rating=rating,
            reviewed_at=reviewed_at or datetime.now().astimezone(),
            prior=entry.record,
        )
        outcome = apply_review(event, self.params)
        self.store.upsert(outcome.record)
        self.working_set.replace(outcome.record)

        self._pending.popleft()
        if rating is Rating.FAIL:
            self._redo.append(entry.identity)
            self.failed += 1
        self.reviewed += 1
        self.last_rating = rating
        self.show_answer = False

        logger.debug(
            f"[drill] {entry.identity[:12]} {rating.value} -> {outcome.record.state.value}, "
            f"due {outcome.record.due_date} (+{outcome.interval_days}d)"
        )
        return outcome
