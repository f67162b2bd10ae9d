"""
Metrics calculator for deriving insights from card state.

This is a pure computation module with no I/O. The current instant is always
passed in by the caller.
"""

from collections.abc import Iterable
from datetime import datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from mastery.application.memory_model import retrievability
from mastery.application.scheduler import elapsed_days_between
from mastery.domain.cards.models import Card, CardState
from mastery.domain.constants import MASTERY_STABILITY, SECONDS_PER_DAY
from mastery.domain.stats.models import CardMetrics, StatsSummary


def is_mastered(card: Card, mastery_stability: float = MASTERY_STABILITY) -> bool:
    """A Review card whose stability reached the mastery threshold."""
    return card.state is CardState.REVIEW and card.stability >= mastery_stability


def mastery_percent(card: Card, mastery_stability: float = MASTERY_STABILITY) -> int:
    """
    0-100 progress towards mastery.

    100 only for mastered cards; otherwise proportional to stability, capped at 99.
    """
    if card.is_new:
        return 0
    if is_mastered(card, mastery_stability):
        return 100
    return int(min(99.0, card.stability / mastery_stability * 100.0))


def day_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Start of the calendar day containing now (in tz) and start of the next one."""
    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


class MetricsCalculator:
    """
    Computes per-card metrics and whole-set summaries.

    Stateless and side-effect free.
    """

    def __init__(self, mastery_stability: float = MASTERY_STABILITY):
        self.mastery_stability = mastery_stability

    def enrich(self, card: Card, now: datetime) -> CardMetrics:
        """
        Derive metrics for a single card as of now.
        """
        return CardMetrics(
            problem_id=card.problem_id,
            state=card.state.value,
            stability=card.stability,
            difficulty=card.difficulty,
            reps=card.reps,
            lapses=card.lapses,
            current_retrievability=self._compute_retrievability(card, now),
            lapse_rate=self._compute_lapse_rate(card),
            days_overdue=self._compute_days_overdue(card, now),
            mastery_percent=mastery_percent(card, self.mastery_stability),
        )

    def summarize(
        self,
        cards: Iterable[Card],
        now: datetime,
        tz: tzinfo | None = None,
    ) -> StatsSummary:
        """
        Aggregate counts and rates over a card set.

        Args:
            cards: The full card set.
            now: Current instant.
            tz: Timezone that defines "today". Defaults to UTC.
        """
        start_of_day, end_of_day = day_bounds(now, tz or ZoneInfo("UTC"))

        total = 0
        by_state = {state: 0 for state in CardState}
        due_today = overdue = due_now = 0
        total_reps = total_lapses = mastered = 0

        for card in cards:
            total += 1
            by_state[card.state] += 1
            total_reps += card.reps
            total_lapses += card.lapses

            if start_of_day <= card.due < end_of_day:
                due_today += 1
            elif card.due < start_of_day:
                overdue += 1
            if card.due <= now:
                due_now += 1
            if is_mastered(card, self.mastery_stability):
                mastered += 1

        # Empty sets and never-reviewed sets report 0, never NaN
        retention_rate = (total_reps - total_lapses) / total_reps if total_reps else 0.0
        completion_percent = mastered / total * 100.0 if total else 0.0

        return StatsSummary(
            total=total,
            new_count=by_state[CardState.NEW],
            learning_count=by_state[CardState.LEARNING],
            review_count=by_state[CardState.REVIEW],
            relearning_count=by_state[CardState.RELEARNING],
            due_today=due_today,
            overdue=overdue,
            due_now=due_now,
            total_reps=total_reps,
            total_lapses=total_lapses,
            retention_rate=retention_rate,
            mastered_count=mastered,
            completion_percent=completion_percent,
        )

    def _compute_retrievability(self, card: Card, now: datetime) -> float | None:
        if card.last_review is None:
            return None
        return retrievability(elapsed_days_between(card.last_review, now), card.stability)

    def _compute_lapse_rate(self, card: Card) -> float | None:
        """
        Compute lapse rate as lapses / total reviews.
        """
        if card.reps == 0:
            return None
        return card.lapses / card.reps

    def _compute_days_overdue(self, card: Card, now: datetime) -> float:
        """
        Days past due (negative if not yet due).
        """
        return (now - card.due).total_seconds() / SECONDS_PER_DAY
