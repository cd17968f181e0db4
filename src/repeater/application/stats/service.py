"""
Collection statistics for the check report.

Everything here is derived from the working set and the given day; the only
store-wide figure is the total record count, passed in by the caller.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta

from repeater.domain.constants import UPCOMING_MONTH_DAYS, UPCOMING_WEEK_DAYS
from repeater.domain.models import WorkingSet

from .metrics_calculator import CardMetrics, MetricsCalculator

logger = logging.getLogger(__name__)


@dataclass
class UpcomingCount:
    day: date
    count: int


@dataclass
class CollectionStats:
    num_cards: int = 0
    new_cards: int = 0
    reviewed_cards: int = 0
    due_cards: int = 0  # due today, overdue, or new
    overdue_cards: int = 0
    upcoming_week: list[UpcomingCount] = field(default_factory=list)
    upcoming_month: int = 0
    total_in_store: int = 0

    @property
    def upcoming_week_total(self) -> int:
        return sum(bucket.count for bucket in self.upcoming_week)


def collection_stats(
    working_set: WorkingSet, today: date, total_in_store: int = 0
) -> CollectionStats:
    stats = CollectionStats(num_cards=len(working_set), total_in_store=total_in_store)
    week_horizon = today + timedelta(days=UPCOMING_WEEK_DAYS)
    month_horizon = today + timedelta(days=UPCOMING_MONTH_DAYS)
    week: Counter[date] = Counter()

    for entry in working_set:
        record = entry.record
        if record.is_new or record.due_date is None:
            stats.new_cards += 1
            stats.due_cards += 1
            continue

        stats.reviewed_cards += 1
        due = record.due_date
        if due <= today:
            stats.due_cards += 1
            if due < today:
                stats.overdue_cards += 1
            continue

        if due <= week_horizon:
            week[due] += 1
        if due <= month_horizon:
            stats.upcoming_month += 1

    stats.upcoming_week = [UpcomingCount(day=d, count=c) for d, c in sorted(week.items())]
    return stats


class CollectionStatsService:
    """
    Builds the check report for a working set.
    """

    def __init__(self, calculator: MetricsCalculator):
        self._calc = calculator

    def summary(
        self, working_set: WorkingSet, today: date, total_in_store: int = 0
    ) -> CollectionStats:
        return collection_stats(working_set, today, total_in_store)

    def card_metrics(self, working_set: WorkingSet, today: date) -> list[CardMetrics]:
        return [self._calc.enrich(entry, today) for entry in working_set]

    def weakest(
        self, working_set: WorkingSet, today: date, limit: int = 5
    ) -> list[CardMetrics]:
        """
        Reviewed cards with the lowest current retrievability.
        """
        scored = [
            m
            for m in self.card_metrics(working_set, today)
            if m.current_retrievability is not None
        ]
        scored.sort(key=lambda m: (m.current_retrievability, m.identity))
        return scored[:limit]
