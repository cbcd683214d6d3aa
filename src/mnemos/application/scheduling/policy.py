"""
Scheduling policy: (record, rating, now) -> new record.

Pure and deterministic. Nothing outside the inputs is read or mutated, so
replaying the same ratings from the same record always yields the same result.

Transitions (I = current interval, E = current ease):

    AGAIN  interval = lapse step              ease = max(MIN, E - 0.2)   lapse += 1
    HARD   interval = max(step, I * HARD)     ease = max(MIN, E - 0.15)
    GOOD   interval = I * E  (seeded)         ease = E
    EASY   interval = I * E * BONUS (seeded)  ease = E + 0.15

Cards that are not yet in REVIEW have no meaningful interval to grow, so GOOD
and EASY use a fixed seed interval as a floor for them.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from mnemos.application.utils.calendar import add_days, days_between
from mnemos.domain import constants as c
from mnemos.domain.models import CardState, RecallRating, SchedulingRecord

from .memory import difficulty_from_ease, retrievability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerParameters:
    """Tunable knobs of the policy. Defaults are the documented constants."""

    starting_ease: float = c.STARTING_EASE
    min_ease: float = c.MIN_EASE
    easy_bonus: float = c.EASY_BONUS
    interval_modifier: float = c.INTERVAL_MODIFIER
    hard_interval_factor: float = c.HARD_INTERVAL_FACTOR
    lapse_interval_factor: float = c.LAPSE_INTERVAL_FACTOR
    good_seed_interval: float = c.GOOD_SEED_INTERVAL
    easy_seed_interval: float = c.EASY_SEED_INTERVAL

    def __post_init__(self) -> None:
        if self.min_ease < c.MIN_EASE:
            raise ValueError(f"min_ease cannot go below {c.MIN_EASE}")
        if self.interval_modifier <= 0 or self.easy_bonus <= 0:
            raise ValueError("interval_modifier and easy_bonus must be positive")

    @property
    def lapse_step(self) -> float:
        """Relearning step in days. AGAIN never schedules further out than this."""
        return self.lapse_interval_factor * self.interval_modifier


DEFAULT_PARAMETERS = SchedulerParameters()


class SchedulingPolicy:
    """
    SM-2 style scheduler.

    Stateless apart from its parameters; safe to share between sessions.
    """

    def __init__(self, params: SchedulerParameters | None = None):
        self.params = params or DEFAULT_PARAMETERS

    def apply(
        self, record: SchedulingRecord, rating: RecallRating, now: datetime
    ) -> SchedulingRecord:
        rating = RecallRating(rating)
        p = self.params

        if rating is RecallRating.AGAIN:
            interval = p.lapse_step
            ease = max(p.min_ease, record.ease_factor - c.AGAIN_EASE_PENALTY)
        elif rating is RecallRating.HARD:
            interval = record.interval_days * p.hard_interval_factor * p.interval_modifier
            ease = max(p.min_ease, record.ease_factor - c.HARD_EASE_PENALTY)
        elif rating is RecallRating.GOOD:
            interval = record.interval_days * record.ease_factor * p.interval_modifier
            if record.state is not CardState.REVIEW:
                interval = max(p.good_seed_interval, interval)
            ease = record.ease_factor
        else:
            interval = (
                record.interval_days * record.ease_factor * p.easy_bonus * p.interval_modifier
            )
            if record.state is not CardState.REVIEW:
                interval = max(p.easy_seed_interval, interval)
            ease = record.ease_factor + c.EASY_EASE_BONUS

        # Nothing is scheduled sooner than the relearning step.
        interval = max(p.lapse_step, interval)

        if record.last_review is None:
            elapsed = 0.0
        else:
            elapsed = days_between(record.last_review, now)

        updated = replace(
            record,
            state=next_state(record.state, rating),
            ease_factor=ease,
            interval_days=interval,
            review_count=record.review_count + 1,
            lapse_count=record.lapse_count + (1 if rating is RecallRating.AGAIN else 0),
            last_review=now,
            next_review=add_days(now, interval),
            difficulty=difficulty_from_ease(ease),
            retrievability=retrievability(elapsed, interval),
        )

        logger.debug(
            f"[policy] {record.state}->{updated.state} rating={rating.name} "
            f"interval={record.interval_days:.2f}->{interval:.2f} ease={ease:.2f}"
        )
        return updated


def next_state(state: CardState, rating: RecallRating) -> CardState:
    """State transition table."""
    if rating is RecallRating.EASY:
        return CardState.REVIEW

    if state is CardState.NEW:
        return CardState.LEARNING

    if state is CardState.LEARNING:
        return CardState.REVIEW if rating is RecallRating.GOOD else CardState.LEARNING

    if state is CardState.RELEARNING:
        return CardState.REVIEW if rating is RecallRating.GOOD else CardState.RELEARNING

    # REVIEW
    return CardState.RELEARNING if rating is RecallRating.AGAIN else CardState.REVIEW


_default_policy = SchedulingPolicy()


def apply(
    record: SchedulingRecord,
    rating: RecallRating,
    now: datetime,
    params: SchedulerParameters | None = None,
) -> SchedulingRecord:
    """Apply a rating to a record with the given (or default) parameters."""
    policy = _default_policy if params is None else SchedulingPolicy(params)
    return policy.apply(record, rating, now)
