"""
Memory model: stability / difficulty updates from a graded review.

This is a pure computation module with no I/O. Identical inputs always yield
identical outputs.

Retrievability follows the FSRS power forgetting curve

    R(t, S) = (1 + FACTOR * t / S) ** DECAY

so R(0) = 1, R(S) = 0.9 and R -> 0 only as t -> infinity.
"""

from dataclasses import dataclass

from mastery.application.config import ModelParameters, RatingBands
from mastery.domain.cards.models import RatingBand
from mastery.domain.constants import DECAY, FACTOR, RATING_MAX


@dataclass(frozen=True)
class MemoryUpdate:
    stability: float
    difficulty: float
    retrievability: float
    band: RatingBand

    @property
    def is_lapse(self) -> bool:
        return self.band is RatingBand.LAPSE


def retrievability(elapsed_days: float, stability: float) -> float:
    """Probability of recall after elapsed_days for a memory of the given stability."""
    if elapsed_days <= 0:
        return 1.0
    return (1 + FACTOR * elapsed_days / stability) ** DECAY


def interval_for(stability: float, desired_retention: float) -> float:
    """Days until retrievability falls to desired_retention (inverse of the curve)."""
    return stability / FACTOR * (desired_retention ** (1 / DECAY) - 1)


class MemoryModel:
    """
    Computes new memory state from a rating.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        params: ModelParameters | None = None,
        bands: RatingBands | None = None,
    ):
        self.params = params or ModelParameters()
        self.bands = bands or RatingBands()

    def band_of(self, rating: int) -> RatingBand:
        """Raises InvalidRating for anything outside 1-10."""
        return self.bands.band_of(rating)

    def update(
        self,
        stability: float,
        difficulty: float,
        elapsed_days: float,
        rating: int,
    ) -> MemoryUpdate:
        """
        Apply a review to an existing memory.

        Args:
            stability: Current stability in days (> 0).
            difficulty: Current difficulty.
            elapsed_days: Days since the previous review.
            rating: Quality rating, 1-10.

        Returns:
            MemoryUpdate with the new stability and difficulty and the
            retrievability the memory had at review time.

        Raises:
            InvalidRating: rating outside 1-10.
        """
        band = self.band_of(rating)
        p = self.params
        stability = max(stability, p.min_stability)
        r = retrievability(elapsed_days, stability)

        if band is RatingBand.LAPSE:
            new_stability = max(p.min_stability, stability * p.lapse_stability_factor)
        else:
            new_stability = stability * self._growth(difficulty, r, rating)

        return MemoryUpdate(
            stability=new_stability,
            difficulty=self._next_difficulty(difficulty, band, rating),
            retrievability=r,
            band=band,
        )

    def initial(self, rating: int) -> MemoryUpdate:
        """Memory state after the very first review of a card."""
        band = self.band_of(rating)
        p = self.params

        if band is RatingBand.LAPSE:
            stability = p.initial_stability_lapse
        elif band is RatingBand.HARD:
            stability = p.initial_stability_hard
        elif band is RatingBand.GOOD:
            stability = p.initial_stability_good
        else:
            steps = rating - (self.bands.good_max + 1)
            stability = p.initial_stability_easy * (1 + p.easy_rating_bonus * steps)

        return MemoryUpdate(
            stability=max(p.min_stability, stability),
            difficulty=self._next_difficulty(p.initial_difficulty, band, rating),
            retrievability=1.0,
            band=band,
        )

    def _growth(self, difficulty: float, r: float, rating: int) -> float:
        """
        Stability multiplier for a successful review. Always > 1.

        Grows with rating quality and with how much had been forgotten, shrinks
        as difficulty rises.
        """
        p = self.params
        quality = (rating - self.bands.lapse_max) / (RATING_MAX - self.bands.lapse_max)
        d = self._clamp(difficulty)
        ease = 1 - p.difficulty_damping * (d - p.difficulty_min) / (
            p.difficulty_max - p.difficulty_min
        )
        return 1 + p.stability_gain * quality * ease * (1 + p.spacing_bonus * (1 - r))

    def _next_difficulty(self, difficulty: float, band: RatingBand, rating: int) -> float:
        p = self.params
        if band is RatingBand.LAPSE:
            delta = p.lapse_difficulty_penalty
        elif band is RatingBand.HARD:
            delta = p.difficulty_step * (self.bands.good_min - rating)
        elif band is RatingBand.GOOD:
            delta = 0.0
        else:
            delta = -p.difficulty_step * (rating - self.bands.good_max)
        return self._clamp(difficulty + delta)

    def _clamp(self, difficulty: float) -> float:
        return min(self.params.difficulty_max, max(self.params.difficulty_min, difficulty))
