"""
Metrics calculator for deriving insights from scheduling records.

This is a pure computation module with no I/O.
"""

from dataclasses import dataclass
from datetime import date

from repeater.application.scheduler import FsrsParameters, elapsed_days, retrievability
from repeater.domain.models import WorkingCard


@dataclass
class CardMetrics:
    """
    A record enriched with computed metrics.
    """

    identity: str
    source: str
    state: str
    reps: int
    lapses: int
    due_date: date | None

    # FSRS core
    stability: float | None
    difficulty: float | None

    # Computed metrics
    current_retrievability: float | None
    lapse_rate: float | None  # lapses / reps
    days_overdue: int | None  # Negative if not yet due


class MetricsCalculator:
    """
    Computes derived metrics for working-set entries.

    Stateless and side-effect free.
    """

    def __init__(self, params: FsrsParameters):
        self.params = params

    def enrich(self, entry: WorkingCard, today: date) -> CardMetrics:
        record = entry.record
        reviewed = not record.is_new
        return CardMetrics(
            identity=record.identity,
            source=str(entry.card.source),
            state=record.state.value,
            reps=record.reps,
            lapses=record.lapses,
            due_date=record.due_date,
            stability=record.stability if reviewed else None,
            difficulty=record.difficulty if reviewed else None,
            current_retrievability=self._compute_retrievability(entry, today),
            lapse_rate=record.lapses / record.reps if record.reps else None,
            days_overdue=(today - record.due_date).days if record.due_date else None,
        )

    def _compute_retrievability(self, entry: WorkingCard, today: date) -> float | None:
        """
        Current recall probability from stability and days since the last review.
        """
        record = entry.record
        if record.is_new or record.last_reviewed_at is None:
            return None
        return retrievability(elapsed_days(record, today), record.stability, self.params)
