# Domain Cards Package
from .models import Card, CardState, RatingBand, ReviewEvent, ReviewLog
from .ports import CardRepository, Clock, ReviewLogRepository
from .state_machine import TRANSITIONS, next_state

__all__ = [
    "Card",
    "CardState",
    "RatingBand",
    "ReviewEvent",
    "ReviewLog",
    "CardRepository",
    "ReviewLogRepository",
    "Clock",
    "TRANSITIONS",
    "next_state",
]
