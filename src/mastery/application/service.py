"""
Scheduling Service: the command surface the presentation layer talks to.

Loads cards through the storage port, runs the pure scheduler, and hands the
result back to storage. Failures surface as the typed SchedulingError family.
"""

import logging

from mastery.application.config import AppConfig
from mastery.application.error_weighting import ErrorWeighting
from mastery.application.queue_builder import due_now, phase_queue
from mastery.application.scheduler import Scheduler
from mastery.application.stats.metrics_calculator import MetricsCalculator
from mastery.application.stats.service import StatsService
from mastery.domain.cards.models import Card, ReviewEvent, ReviewLog
from mastery.domain.cards.ports import CardRepository, Clock, ReviewLogRepository
from mastery.domain.content.ports import ContentSource
from mastery.domain.errors import Conflict, NotFound
from mastery.domain.stats.models import CardMetrics, PhaseQueue, StatsSummary
from mastery.domain.weighting.models import Recommendations

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Application service wiring the scheduling core to its collaborators.

    Holds no durable state of its own; every call reads the current card set
    from the repository.
    """

    def __init__(
        self,
        cards: CardRepository,
        clock: Clock,
        config: AppConfig | None = None,
        content: ContentSource | None = None,
        review_logs: ReviewLogRepository | None = None,
    ):
        """
        Args:
            cards: Card storage (port).
            clock: Source of "now".
            config: Algorithm and query settings; defaults if not provided.
            content: Phase and error metadata. Without it phase counts are empty
                and no error weighting is applied.
            review_logs: Optional sink for per-review audit entries.
        """
        self.config = config or AppConfig()
        self._cards = cards
        self._clock = clock
        self._content = content
        self._logs = review_logs

        self.scheduler = Scheduler(self.config.model, self.config.bands)
        self.weighting = ErrorWeighting(self.config.error_catalog())
        self.stats = StatsService(
            cards,
            clock,
            MetricsCalculator(self.config.model.mastery_stability),
            self.config.tz,
        )

    # ------------------------------------------------------------------
    # Card lifecycle
    # ------------------------------------------------------------------

    async def enroll(self, problem_id: str) -> Card:
        """
        Start scheduling a problem. Returns the existing card if there is one.
        """
        try:
            return await self._cards.load_card(problem_id)
        except NotFound:
            pass

        card = self.scheduler.new_card(problem_id, self._clock.now())
        await self._cards.save_card(card)
        logger.info(f"Enrolled problem {problem_id}")
        return card

    async def get_card(self, problem_id: str) -> Card:
        return await self._cards.load_card(problem_id)

    async def remove_card(self, problem_id: str) -> None:
        """Drop a card after its problem was deleted upstream."""
        await self._cards.delete_card(problem_id)
        logger.info(f"Removed card for problem {problem_id}")

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def process_review(self, card_id: str, rating: int, elapsed_seconds: int = 0) -> Card:
        """
        Apply a graded review and persist the result.

        Raises:
            InvalidRating: rating outside 1-10. Storage is not touched.
            NotFound: no card for card_id.
            Conflict: the card changed underneath us; the caller may reload and retry.
        """
        event = ReviewEvent(card_id=card_id, rating=rating, elapsed_seconds=elapsed_seconds)
        self.scheduler.bands.band_of(rating)

        card = await self._cards.load_card(card_id)
        outcome = self.scheduler.process_review(card, event, self._clock.now())

        try:
            await self._cards.save_card(outcome.card)
        except Conflict as e:
            logger.warning(f"Review for {card_id} rejected: {e}")
            raise

        if self._logs is not None:
            await self._logs.append(outcome.log)

        logger.info(
            f"Reviewed {card_id}: rating={rating} {card.state.value}->{outcome.card.state.value} "
            f"S={outcome.card.stability:.2f} D={outcome.card.difficulty:.2f} "
            f"next in {outcome.card.scheduled_days:g}d"
        )
        return outcome.card

    async def preview(self, card_id: str) -> dict[int, Card]:
        """Outcome of every possible rating for a card, without saving anything."""
        card = await self._cards.load_card(card_id)
        return self.scheduler.preview(card, self._clock.now())

    async def get_review_history(self, problem_id: str | None = None) -> list[ReviewLog]:
        if self._logs is None:
            return []
        return await self._logs.list_logs(problem_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_due_cards(self, limit: int | None = None) -> list[Card]:
        """Cards due now, oldest first, struggling and error-heavy problems breaking ties."""
        cards = await self._cards.list_cards()
        now = self._clock.now()
        errors = await self._content.get_unresolved_errors() if self._content else {}
        priorities = self.weighting.priorities(cards, errors, now) if errors else None
        return due_now(cards, now, priorities, self.config.due_limit if limit is None else limit)

    async def get_stats(self) -> StatsSummary:
        return await self.stats.get_summary()

    async def get_weak_cards(self) -> list[CardMetrics]:
        """Reviewed cards that are unstable, have lapsed, or are fading."""
        return await self.stats.get_weak_cards()

    async def get_phase_queue(self) -> PhaseQueue:
        cards = await self._cards.list_cards()
        assignments = await self._content.get_phase_assignments() if self._content else {}
        return phase_queue(cards, assignments, self.config.model.mastery_stability)

    async def get_recommendations(self) -> Recommendations:
        cards = await self._cards.list_cards()
        errors = await self._content.get_unresolved_errors() if self._content else {}
        return self.weighting.recommend(cards, errors, self._clock.now())
