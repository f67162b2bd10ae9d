"""
Scheduler: applies one graded review to a card.

Given a card and a rating it runs the memory model, moves the card through the
state machine and picks the next due date. The input card is never modified;
a new Card value is computed and returned for the caller to persist.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from mastery.application.config import ModelParameters, RatingBands
from mastery.application.id_service import generate_review_id
from mastery.application.memory_model import MemoryModel, interval_for
from mastery.domain.cards.models import Card, CardState, ReviewEvent, ReviewLog
from mastery.domain.cards.state_machine import next_state
from mastery.domain.constants import RATING_MAX, RATING_MIN, SECONDS_PER_DAY


@dataclass(frozen=True)
class ReviewOutcome:
    card: Card
    log: ReviewLog
    retrievability: float
    is_lapse: bool


def elapsed_days_between(last_review: datetime | None, now: datetime) -> float:
    """Days from last_review to now; 0 when never reviewed or the clock went backwards."""
    if last_review is None:
        return 0.0
    return max(0.0, (now - last_review).total_seconds() / SECONDS_PER_DAY)


class Scheduler:
    def __init__(
        self,
        params: ModelParameters | None = None,
        bands: RatingBands | None = None,
        id_factory: Callable[[], str] = generate_review_id,
    ):
        self.params = params or ModelParameters()
        self.bands = bands or RatingBands()
        self.model = MemoryModel(self.params, self.bands)
        self._new_id = id_factory

    def new_card(self, problem_id: str, now: datetime) -> Card:
        """A fresh card, due immediately."""
        return Card(
            problem_id=problem_id,
            state=CardState.NEW,
            stability=self.params.initial_stability,
            difficulty=self.params.initial_difficulty,
            due=now,
        )

    def next_interval(self, stability: float) -> float:
        """Whole days until retrievability reaches the desired retention, clamped."""
        p = self.params
        days = float(round(interval_for(stability, p.desired_retention)))
        return min(p.max_interval_days, max(p.min_interval_days, days))

    def process_review(self, card: Card, event: ReviewEvent, now: datetime) -> ReviewOutcome:
        """
        Score a review and compute the card that results from it.

        Args:
            card: Current card snapshot.
            event: The graded review.
            now: Review instant, supplied by the caller's clock.

        Returns:
            ReviewOutcome carrying the updated card and an audit log entry.

        Raises:
            InvalidRating: event.rating outside 1-10. Nothing is computed.
        """
        band = self.bands.band_of(event.rating)
        elapsed = elapsed_days_between(card.last_review, now)

        if card.is_new:
            memory = self.model.initial(event.rating)
        else:
            memory = self.model.update(card.stability, card.difficulty, elapsed, event.rating)

        state = next_state(card.state, band, memory.stability, self.params.graduation_stability)
        scheduled_days = self.next_interval(memory.stability)

        updated = replace(
            card,
            state=state,
            stability=memory.stability,
            difficulty=memory.difficulty,
            due=now + timedelta(days=scheduled_days),
            elapsed_days=elapsed,
            scheduled_days=scheduled_days,
            reps=card.reps + 1,
            lapses=card.lapses + 1 if memory.is_lapse else card.lapses,
            last_review=now,
            version=card.version + 1,
        )

        log = ReviewLog(
            id=self._new_id(),
            problem_id=card.problem_id,
            rating=event.rating,
            state_before=card.state,
            state_after=state,
            elapsed_seconds=event.elapsed_seconds,
            elapsed_days=elapsed,
            scheduled_days_before=card.scheduled_days,
            scheduled_days_after=scheduled_days,
            stability_before=card.stability,
            stability_after=memory.stability,
            retrievability=memory.retrievability,
            reviewed_at=now,
        )

        return ReviewOutcome(
            card=updated,
            log=log,
            retrievability=memory.retrievability,
            is_lapse=memory.is_lapse,
        )

    def preview(self, card: Card, now: datetime) -> dict[int, Card]:
        """What the card would become for every possible rating. Nothing is committed."""
        return {
            rating: self.process_review(card, ReviewEvent(card.problem_id, rating), now).card
            for rating in range(RATING_MIN, RATING_MAX + 1)
        }
