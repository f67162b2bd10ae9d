"""
Error weighting: ranks problems by their unresolved mistakes.

Weighting decides what to show first. It never touches a card's scheduling
fields.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from mastery.domain.cards.models import Card
from mastery.domain.constants import SECONDS_PER_DAY
from mastery.domain.content.models import ErrorCatalog
from mastery.domain.weighting.models import (
    ProblemRecommendation,
    RecommendationTier,
    Recommendations,
)

ErrorCounts = Mapping[int, int]


def base_priority(card: Card, as_of: datetime) -> float:
    """1 for a card that is not overdue, growing by 1 per day overdue."""
    overdue_days = (as_of - card.due).total_seconds() / SECONDS_PER_DAY
    return 1.0 + max(0.0, overdue_days)


class ErrorWeighting:
    def __init__(self, catalog: ErrorCatalog | None = None):
        self.catalog = catalog or ErrorCatalog.default()

    def priority_score(self, base: float, unresolved: ErrorCounts) -> float:
        """
        base * product of the multipliers of every error type with unresolved occurrences.

        Each type contributes once no matter how many times it was logged.

        Raises:
            UnknownErrorType: unresolved references a type missing from the catalog.
        """
        multipliers = [
            self.catalog.get(type_id).multiplier
            for type_id, count in sorted(unresolved.items())
            if count > 0
        ]
        return base * math.prod(multipliers)

    def is_high_risk(self, unresolved: ErrorCounts) -> bool:
        """True when any unresolved error type is high impact."""
        return any(
            self.catalog.get(type_id).is_high_impact()
            for type_id, count in unresolved.items()
            if count > 0
        )

    def priorities(
        self,
        cards: Iterable[Card],
        errors: Mapping[str, ErrorCounts],
        as_of: datetime,
    ) -> dict[str, float]:
        """Priority score for every card, keyed by problem id."""
        return {
            card.problem_id: self.priority_score(
                base_priority(card, as_of), errors.get(card.problem_id, {})
            )
            for card in cards
        }

    def recommend(
        self,
        cards: Iterable[Card],
        errors: Mapping[str, ErrorCounts],
        as_of: datetime,
    ) -> Recommendations:
        """
        Sort problems into recommendation tiers.

        Tier 1: due and high risk. Tier 2: due. Tier 3: not due but carrying
        unresolved errors. Problems that are neither due nor erroneous are left out.
        Each tier is ordered by descending priority, then problem id.
        """
        tiers: dict[RecommendationTier, list[ProblemRecommendation]] = {
            tier: [] for tier in RecommendationTier
        }

        for card in cards:
            unresolved = {k: v for k, v in errors.get(card.problem_id, {}).items() if v > 0}
            is_due = card.due <= as_of

            if is_due and self.is_high_risk(unresolved):
                tier = RecommendationTier.CRITICAL
            elif is_due:
                tier = RecommendationTier.DUE
            elif unresolved:
                tier = RecommendationTier.REMEDIATION
            else:
                continue

            tiers[tier].append(
                ProblemRecommendation(
                    problem_id=card.problem_id,
                    tier=tier,
                    due=card.due,
                    unresolved_error_count=sum(unresolved.values()),
                    error_types=[self.catalog.get(t).name for t in sorted(unresolved)],
                    priority_score=self.priority_score(base_priority(card, as_of), unresolved),
                )
            )

        for recs in tiers.values():
            recs.sort(key=lambda r: (-r.priority_score, r.problem_id))

        return Recommendations(
            tier_1_critical=tiers[RecommendationTier.CRITICAL],
            tier_2_due=tiers[RecommendationTier.DUE],
            tier_3_remediation=tiers[RecommendationTier.REMEDIATION],
        )
