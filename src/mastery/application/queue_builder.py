"""
Queue builder for review sessions and the study-phase backlog.

Builds:
1. The ordered list of cards due now (oldest-overdue first)
2. Per-phase counts of problems still waiting, with a recommended focus phase

Both are recomputed from scratch on every call.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from mastery.application.stats.metrics_calculator import is_mastered
from mastery.domain.cards.models import Card
from mastery.domain.constants import MASTERY_STABILITY
from mastery.domain.content.models import StudyPhase
from mastery.domain.stats.models import PhaseQueue

logger = logging.getLogger(__name__)


def due_now(
    cards: Iterable[Card],
    as_of: datetime,
    priorities: Mapping[str, float] | None = None,
    limit: int | None = None,
) -> list[Card]:
    """
    Cards due at or before as_of, in review order.

    Order: ascending due, then descending lapses (struggling items first), then
    descending priority score when priorities are given, then problem id.

    Args:
        cards: Card set to filter.
        as_of: Cut-off instant. A card due exactly at as_of is included.
        priorities: Optional problem id -> error-weighted priority score.
        limit: Maximum number of cards to return.
    """
    priorities = priorities or {}
    due = [card for card in cards if card.due <= as_of]
    due.sort(
        key=lambda card: (
            card.due,
            -card.lapses,
            -priorities.get(card.problem_id, 0.0),
            card.problem_id,
        )
    )
    if limit is not None:
        due = due[: max(0, limit)]
    return due


def phase_queue(
    cards: Iterable[Card],
    phase_assignments: Mapping[str, StudyPhase],
    mastery_stability: float = MASTERY_STABILITY,
) -> PhaseQueue:
    """
    Count the problems waiting in each study phase.

    A problem waits until its card is mastered (see is_mastered). Cards whose
    problem has no phase assignment are ignored. The recommended
    focus is the earliest phase with anything waiting, since earlier phases are
    prerequisites of later ones.
    """
    counts = {phase: 0 for phase in StudyPhase}
    unassigned = 0

    for card in cards:
        phase = phase_assignments.get(card.problem_id)
        if phase is None:
            unassigned += 1
            continue
        if not is_mastered(card, mastery_stability):
            counts[phase] += 1

    if unassigned:
        logger.debug(f"Phase queue skipped {unassigned} cards without a phase assignment")

    focus = next((phase for phase in sorted(counts) if counts[phase] > 0), None)
    return PhaseQueue(counts=counts, recommended_focus=focus)
