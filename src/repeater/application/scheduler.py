"""
FSRS scheduling for Pass/Fail reviews.

Pure functions mapping (record, rating, review time) to the next record.
The coefficients live in an immutable FsrsParameters value that callers
build once and pass into every call.

State machine:
    New        --Pass--> Review       --Fail--> Learning
    Learning   --Pass--> Review       --Fail--> Learning
    Review     --Pass--> Review       --Fail--> Relearning (lapse)
    Relearning --Pass--> Review       --Fail--> Relearning
"""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from repeater.domain.constants import (
    MAX_DIFFICULTY,
    MAX_INTERVAL_DAYS,
    MIN_DIFFICULTY,
    MIN_INTERVAL_DAYS,
    MIN_STABILITY,
    TARGET_RETENTION,
)
from repeater.domain.models import CardRecord, CardState, Rating, ReviewEvent

# FSRS-6 population defaults.
DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.212, 1.2931, 2.3065, 8.2956,   # w0-w3   initial stability per grade
    6.4133, 0.8334, 3.0194, 0.001,   # w4-w7   difficulty
    1.8722, 0.1666, 0.796,           # w8-w10  recall stability
    1.4835, 0.0614, 0.2629, 1.6483,  # w11-w14 forget stability
    0.6014, 1.8729,                  # w15-w16 hard penalty / easy bonus (unused)
    0.5425, 0.0912, 0.0658,          # w17-w19 short-term stability
    0.1542,                          # w20     decay
)
WEIGHT_COUNT = len(DEFAULT_WEIGHTS)

# Admissible range per weight, as used by FSRS-6 optimizers.
WEIGHT_BOUNDS: tuple[tuple[float, float], ...] = (
    (0.001, 100.0), (0.001, 100.0), (0.001, 100.0), (0.001, 100.0),
    (1.0, 10.0), (0.001, 4.0), (0.001, 4.0), (0.001, 0.75),
    (0.0, 4.5), (0.0, 0.8), (0.001, 3.5),
    (0.001, 5.0), (0.001, 0.25), (0.001, 0.9), (0.0, 4.0),
    (0.0, 1.0), (1.0, 6.0),
    (0.0, 2.0), (0.0, 2.0), (0.0, 0.8),
    (0.1, 0.8),
)

GRADE_AGAIN = 1
GRADE_GOOD = 3
GRADE_EASY = 4
GRADES = {Rating.FAIL: GRADE_AGAIN, Rating.PASS: GRADE_GOOD}


@dataclass(frozen=True)
class FsrsParameters:
    """Scheduler configuration. Build once at startup and pass it explicitly."""

    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    desired_retention: float = TARGET_RETENTION
    minimum_interval: int = MIN_INTERVAL_DAYS
    maximum_interval: int = MAX_INTERVAL_DAYS

    def __post_init__(self):
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        if len(self.weights) != WEIGHT_COUNT:
            raise ValueError(f"Expected {WEIGHT_COUNT} FSRS weights, got {len(self.weights)}")
        for i, (w, (low, high)) in enumerate(zip(self.weights, WEIGHT_BOUNDS)):
            if not (math.isfinite(w) and low <= w <= high):
                raise ValueError(f"FSRS weight w{i} = {w} outside [{low}, {high}]")
        if not 0 < self.desired_retention < 1:
            raise ValueError("desired_retention must be between 0 and 1")
        if not 1 <= self.minimum_interval <= self.maximum_interval:
            raise ValueError("interval bounds must satisfy 1 <= minimum <= maximum")

    @property
    def decay(self) -> float:
        return -self.weights[20]

    @property
    def factor(self) -> float:
        return math.pow(TARGET_RETENTION, 1 / self.decay) - 1


@dataclass(frozen=True)
class ReviewOutcome:
    record: CardRecord
    interval_days: int
    elapsed_days: int
    retrievability: float | None


# ---------------------------------------------------------------------------
# Core FSRS equations
# ---------------------------------------------------------------------------


def constrain_difficulty(value: float) -> float:
    return min(max(value, MIN_DIFFICULTY), MAX_DIFFICULTY)


def retrievability(elapsed_days: float, stability: float, params: FsrsParameters) -> float:
    """Probability of recall after elapsed_days, given stability."""
    stability = max(stability, MIN_STABILITY)
    return math.pow(1 + params.factor * max(elapsed_days, 0) / stability, params.decay)


def next_interval(stability: float, params: FsrsParameters) -> int:
    """Days until retrievability decays to the desired retention, clamped."""
    stability = max(stability, MIN_STABILITY)
    raw = stability / params.factor * (math.pow(params.desired_retention, 1 / params.decay) - 1)
    interval = int(round(raw))
    return min(max(interval, params.minimum_interval), params.maximum_interval)


def initial_stability(grade: int, params: FsrsParameters) -> float:
    return max(params.weights[grade - 1], MIN_STABILITY)


def initial_difficulty(grade: int, params: FsrsParameters, clamp: bool = True) -> float:
    w = params.weights
    value = w[4] - math.exp(w[5] * (grade - 1)) + 1
    return constrain_difficulty(value) if clamp else value


def next_difficulty(difficulty: float, grade: int, params: FsrsParameters) -> float:
    w = params.weights
    delta = -w[6] * (grade - GRADE_GOOD)
    damped = difficulty + delta * (MAX_DIFFICULTY - difficulty) / 9
    reverted = w[7] * initial_difficulty(GRADE_EASY, params, clamp=False) + (1 - w[7]) * damped
    return constrain_difficulty(reverted)


def next_recall_stability(
    difficulty: float, stability: float, r: float, params: FsrsParameters
) -> float:
    w = params.weights
    return stability * (
        1
        + math.exp(w[8])
        * (11 - difficulty)
        * math.pow(stability, -w[9])
        * (math.exp((1 - r) * w[10]) - 1)
    )


def next_forget_stability(
    difficulty: float, stability: float, r: float, params: FsrsParameters
) -> float:
    w = params.weights
    long_term = (
        w[11]
        * math.pow(difficulty, -w[12])
        * (math.pow(stability + 1, w[13]) - 1)
        * math.exp((1 - r) * w[14])
    )
    # Upper bound keeps a lapse strictly below the prior stability.
    return min(long_term, stability / math.exp(w[17] * w[18]))


def short_term_stability(stability: float, grade: int, params: FsrsParameters) -> float:
    w = params.weights
    increase = math.exp(w[17] * (grade - GRADE_GOOD + w[18])) * math.pow(stability, -w[19])
    if grade >= GRADE_GOOD:
        increase = max(increase, 1.0)
    return stability * increase


# ---------------------------------------------------------------------------
# Review application
# ---------------------------------------------------------------------------


def elapsed_days(record: CardRecord, today: date) -> int:
    """Calendar days since the last review (or due date), floored at 0."""
    if record.last_reviewed_at is not None:
        anchor = record.last_reviewed_at.date()
    elif record.due_date is not None:
        anchor = record.due_date
    else:
        return 0
    return max((today - anchor).days, 0)


def next_state(state: CardState, rating: Rating) -> CardState:
    if rating is Rating.PASS:
        return CardState.REVIEW
    match state:
        case CardState.NEW | CardState.LEARNING:
            return CardState.LEARNING
        case CardState.REVIEW | CardState.RELEARNING:
            return CardState.RELEARNING


def apply_review(event: ReviewEvent, params: FsrsParameters) -> ReviewOutcome:
    """
    Apply one rating to a record.

    Raises:
        CorruptRecordError: if the prior record is out of range; corrupt
            state is never fed into the formulas.
    """
    prior = event.prior.validate()
    grade = GRADES[event.rating]
    today = event.reviewed_at.date()
    lapses = prior.lapses
    r: float | None = None
    elapsed = 0

    if prior.state is CardState.NEW:
        stability = initial_stability(grade, params)
        difficulty = initial_difficulty(grade, params)
    else:
        elapsed = elapsed_days(prior, today)
        r = retrievability(elapsed, prior.stability, params)
        difficulty = next_difficulty(prior.difficulty, grade, params)

        if prior.state is CardState.REVIEW:
            if event.rating is Rating.PASS:
                stability = next_recall_stability(prior.difficulty, prior.stability, r, params)
            else:
                stability = next_forget_stability(prior.difficulty, prior.stability, r, params)
                lapses += 1
        else:
            stability = short_term_stability(prior.stability, grade, params)

    stability = max(stability, MIN_STABILITY)
    interval = next_interval(stability, params)

    record = replace(
        prior,
        state=next_state(prior.state, event.rating),
        stability=stability,
        difficulty=difficulty,
        due_date=today + timedelta(days=interval),
        last_reviewed_at=event.reviewed_at,
        reps=prior.reps + 1,
        lapses=lapses,
    )
    return ReviewOutcome(record=record, interval_days=interval, elapsed_days=elapsed, retrievability=r)


def review(
    record: CardRecord, rating: Rating, reviewed_at: datetime, params: FsrsParameters
) -> CardRecord:
    event = ReviewEvent(identity=record.identity, rating=rating, reviewed_at=reviewed_at, prior=record)
    return apply_review(event, params).record
