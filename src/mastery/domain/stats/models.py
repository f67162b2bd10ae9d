"""
Domain models for aggregate scheduling statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from mastery.domain.content.models import StudyPhase


@dataclass(frozen=True)
class StatsSummary:
    """
    Snapshot of the whole card set.

    Attributes:
        total: Number of cards.
        new_count / learning_count / review_count / relearning_count: Per-state counts.
        due_today: Cards whose due instant falls within the current calendar day.
        overdue: Cards due before the start of the current calendar day.
        due_now: Cards with due <= now.
        total_reps: Sum of reps over all cards.
        total_lapses: Sum of lapses over all cards.
        retention_rate: Non-lapse reviews / total reviews (0.0 when nothing was reviewed).
        mastered_count: Review cards whose stability reached the mastery threshold.
        completion_percent: mastered_count / total * 100 (0.0 when empty).
    """

    total: int = 0
    new_count: int = 0
    learning_count: int = 0
    review_count: int = 0
    relearning_count: int = 0
    due_today: int = 0
    overdue: int = 0
    due_now: int = 0
    total_reps: int = 0
    total_lapses: int = 0
    retention_rate: float = 0.0
    mastered_count: int = 0
    completion_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CardMetrics:
    """
    Per-card metrics derived from a Card at a given instant.
    """

    problem_id: str
    state: str
    stability: float
    difficulty: float
    reps: int
    lapses: int

    current_retrievability: float | None  # None for cards never reviewed
    lapse_rate: float | None  # lapses / reps
    days_overdue: float  # Negative if not yet due
    mastery_percent: int


@dataclass(frozen=True)
class PhaseQueue:
    """
    Problems still waiting in each study phase.

    counts always carries every phase, zero when nothing waits there.
    """

    counts: dict[StudyPhase, int] = field(
        default_factory=lambda: {phase: 0 for phase in StudyPhase}
    )
    recommended_focus: StudyPhase | None = None

    @property
    def total_waiting(self) -> int:
        return sum(self.counts.values())

    def by_number(self) -> dict[int, int]:
        return {int(phase): count for phase, count in self.counts.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": {str(int(phase)): count for phase, count in self.counts.items()},
            "labels": {str(int(phase)): phase.label for phase in self.counts},
            "total_waiting": self.total_waiting,
            "recommended_focus": int(self.recommended_focus)
            if self.recommended_focus is not None
            else None,
        }
