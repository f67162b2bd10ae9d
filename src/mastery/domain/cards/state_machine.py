"""
Card state machine.

New -> Learning -> Review <-> Relearning, driven by the rating band of each
review. All transitions live in one table so the machine can be checked at a
glance.
"""

from .models import CardState, RatingBand

S = CardState
B = RatingBand

TRANSITIONS: dict[tuple[CardState, RatingBand], CardState] = {
    # First review always enters Learning, even on a lapse
    (S.NEW, B.LAPSE): S.LEARNING,
    (S.NEW, B.HARD): S.LEARNING,
    (S.NEW, B.GOOD): S.LEARNING,
    (S.NEW, B.EASY): S.LEARNING,
    # Graduation on good/easy is further gated by stability (see next_state)
    (S.LEARNING, B.LAPSE): S.LEARNING,
    (S.LEARNING, B.HARD): S.LEARNING,
    (S.LEARNING, B.GOOD): S.REVIEW,
    (S.LEARNING, B.EASY): S.REVIEW,
    (S.REVIEW, B.LAPSE): S.RELEARNING,
    (S.REVIEW, B.HARD): S.REVIEW,
    (S.REVIEW, B.GOOD): S.REVIEW,
    (S.REVIEW, B.EASY): S.REVIEW,
    (S.RELEARNING, B.LAPSE): S.RELEARNING,
    (S.RELEARNING, B.HARD): S.REVIEW,
    (S.RELEARNING, B.GOOD): S.REVIEW,
    (S.RELEARNING, B.EASY): S.REVIEW,
}


def next_state(
    state: CardState,
    band: RatingBand,
    new_stability: float,
    graduation_stability: float,
) -> CardState:
    """
    Resolve the state a card moves to after a review.

    Args:
        state: Current card state.
        band: Band of the submitted rating.
        new_stability: Stability computed for this review.
        graduation_stability: Minimum stability for Learning -> Review.
    """
    target = TRANSITIONS[(state, band)]
    if state is S.LEARNING and target is S.REVIEW and new_stability < graduation_stability:
        return S.LEARNING
    return target
