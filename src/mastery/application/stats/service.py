"""
Stats Service: Application layer orchestrator.

Coordinates fetching cards from the repository and summarizing them with computed metrics.
"""

import logging
from datetime import tzinfo

from mastery.domain.cards.ports import CardRepository, Clock
from mastery.domain.stats.models import CardMetrics, StatsSummary

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


class StatsService:
    """
    Application service for card statistics.

    Follows Dependency Inversion: depends on the CardRepository and Clock
    abstractions, not concrete adapter implementations.
    """

    def __init__(
        self,
        cards: CardRepository,
        clock: Clock,
        calculator: MetricsCalculator | None = None,
        tz: tzinfo | None = None,
    ):
        """
        Args:
            cards: The repository (port) holding every card.
            clock: Source of the current instant.
            calculator: Optional custom calculator; uses default if not provided.
            tz: Timezone defining the calendar day for due_today. UTC if omitted.
        """
        self._cards = cards
        self._clock = clock
        self._calc = calculator or MetricsCalculator()
        self._tz = tz

    async def get_summary(self) -> StatsSummary:
        """Summarize the whole card set as of now."""
        cards = await self._cards.list_cards()
        return self._calc.summarize(cards, self._clock.now(), self._tz)

    async def get_card_metrics(self, problem_ids: list[str] | None = None) -> list[CardMetrics]:
        """
        Per-card metrics, optionally restricted to some problems.

        Args:
            problem_ids: Problems to include. All cards when None.
        """
        cards = await self._cards.list_cards()
        if problem_ids is not None:
            wanted = set(problem_ids)
            cards = [card for card in cards if card.problem_id in wanted]
        now = self._clock.now()
        return [self._calc.enrich(card, now) for card in cards]

    async def get_weak_cards(
        self,
        stability_threshold: float = 7.0,
        lapse_threshold: int = 1,
        retrievability_threshold: float = 0.7,
    ) -> list[CardMetrics]:
        """
        Identify cards that are "weak" based on configurable thresholds.

        A reviewed card is weak if:
        - stability < threshold, OR
        - lapses >= lapse_threshold, OR
        - current retrievability < retrievability_threshold

        New cards are never reported.
        """
        weak = []

        for card in await self.get_card_metrics():
            if card.reps == 0:
                continue

            is_weak = (
                card.stability < stability_threshold
                or card.lapses >= lapse_threshold
                or (
                    card.current_retrievability is not None
                    and card.current_retrievability < retrievability_threshold
                )
            )
            if is_weak:
                weak.append(card)

        logger.debug(f"Found {len(weak)} weak cards")
        return weak
