"""
Domain models for per-problem scheduling records.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class CardState(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class RatingBand(str, Enum):
    """Quality band a 1-10 rating falls into. Boundaries come from config."""

    LAPSE = "lapse"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


@dataclass(frozen=True)
class Card:
    """
    Scheduling record for one problem under study.

    Attributes:
        problem_id: Opaque reference to the owning problem. Also the card's identity.
        state: Position in the New -> Learning -> Review <-> Relearning cycle.
        stability: Days until recall probability decays to the reference threshold.
        difficulty: Intrinsic recall difficulty, clamped to the configured range.
        due: Next scheduled review instant (tz-aware).
        elapsed_days: Days between the last two reviews (0 if never reviewed).
        scheduled_days: Interval chosen at the last scheduling decision.
        reps: Completed reviews.
        lapses: Reviews graded in the lapse band.
        last_review: Instant of the most recent review, if any.
        version: Optimistic-concurrency counter, bumped on every review.
    """

    problem_id: str
    state: CardState
    stability: float
    difficulty: float
    due: datetime
    elapsed_days: float = 0.0
    scheduled_days: float = 0.0
    reps: int = 0
    lapses: int = 0
    last_review: datetime | None = None
    version: int = 0

    @property
    def is_new(self) -> bool:
        return self.state is CardState.NEW

    def to_dict(self) -> dict[str, Any]:
        return {
            "problem_id": self.problem_id,
            "state": self.state.value,
            "stability": self.stability,
            "difficulty": self.difficulty,
            "due": self.due.isoformat(),
            "elapsed_days": self.elapsed_days,
            "scheduled_days": self.scheduled_days,
            "reps": self.reps,
            "lapses": self.lapses,
            "last_review": self.last_review.isoformat() if self.last_review else None,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        last_review = data.get("last_review")
        return cls(
            problem_id=str(data["problem_id"]),
            state=CardState(data["state"]),
            stability=float(data["stability"]),
            difficulty=float(data["difficulty"]),
            due=datetime.fromisoformat(data["due"]),
            elapsed_days=float(data.get("elapsed_days", 0.0)),
            scheduled_days=float(data.get("scheduled_days", 0.0)),
            reps=int(data.get("reps", 0)),
            lapses=int(data.get("lapses", 0)),
            last_review=datetime.fromisoformat(last_review) if last_review else None,
            version=int(data.get("version", 0)),
        )


@dataclass(frozen=True)
class ReviewEvent:
    """A graded review as submitted by the caller. Consumed once, never stored."""

    card_id: str
    rating: int
    elapsed_seconds: int = 0


@dataclass(frozen=True)
class ReviewLog:
    """Audit entry describing what one review did to a card."""

    id: str
    problem_id: str
    rating: int
    state_before: CardState
    state_after: CardState
    elapsed_seconds: int
    elapsed_days: float
    scheduled_days_before: float
    scheduled_days_after: float
    stability_before: float
    stability_after: float
    retrievability: float
    reviewed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "problem_id": self.problem_id,
            "rating": self.rating,
            "state_before": self.state_before.value,
            "state_after": self.state_after.value,
            "elapsed_seconds": self.elapsed_seconds,
            "elapsed_days": self.elapsed_days,
            "scheduled_days_before": self.scheduled_days_before,
            "scheduled_days_after": self.scheduled_days_after,
            "stability_before": self.stability_before,
            "stability_after": self.stability_after,
            "retrievability": self.retrievability,
            "reviewed_at": self.reviewed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewLog":
        return cls(
            id=data["id"],
            problem_id=data["problem_id"],
            rating=int(data["rating"]),
            state_before=CardState(data["state_before"]),
            state_after=CardState(data["state_after"]),
            elapsed_seconds=int(data["elapsed_seconds"]),
            elapsed_days=float(data["elapsed_days"]),
            scheduled_days_before=float(data["scheduled_days_before"]),
            scheduled_days_after=float(data["scheduled_days_after"]),
            stability_before=float(data["stability_before"]),
            stability_after=float(data["stability_after"]),
            retrievability=float(data["retrievability"]),
            reviewed_at=datetime.fromisoformat(data["reviewed_at"]),
        )
