"""
In-memory storage adapters.

Implements CardRepository and ReviewLogRepository over plain dicts. Writes go
through an asyncio.Lock so the version check and the store happen atomically.
"""

import asyncio
import logging

from mastery.domain.cards.models import Card, ReviewLog
from mastery.domain.cards.ports import CardRepository, ReviewLogRepository
from mastery.domain.errors import Conflict, NotFound

logger = logging.getLogger(__name__)


def check_version(stored: Card | None, incoming: Card) -> None:
    """
    Enforce optimistic concurrency.

    Raises:
        Conflict: incoming.version is not exactly one past the stored version
            (or not 0 when nothing is stored).
    """
    expected = incoming.version - 1
    actual = stored.version if stored is not None else None
    if stored is None:
        if incoming.version != 0:
            raise Conflict(incoming.problem_id, expected, None)
        return
    if actual != expected:
        raise Conflict(incoming.problem_id, expected, actual)


class InMemoryCardRepository(CardRepository):
    def __init__(self, cards: list[Card] | None = None):
        self._cards: dict[str, Card] = {card.problem_id: card for card in cards or []}
        self._lock = asyncio.Lock()

    async def load_card(self, problem_id: str) -> Card:
        try:
            return self._cards[problem_id]
        except KeyError:
            raise NotFound(problem_id) from None

    async def save_card(self, card: Card) -> None:
        async with self._lock:
            check_version(self._cards.get(card.problem_id), card)
            self._cards[card.problem_id] = card
        logger.debug(f"Saved card {card.problem_id} v{card.version}")

    async def list_cards(self) -> list[Card]:
        return list(self._cards.values())

    async def delete_card(self, problem_id: str) -> None:
        async with self._lock:
            if problem_id not in self._cards:
                raise NotFound(problem_id)
            del self._cards[problem_id]


class InMemoryReviewLogRepository(ReviewLogRepository):
    def __init__(self):
        self._logs: list[ReviewLog] = []

    async def append(self, log: ReviewLog) -> None:
        self._logs.append(log)

    async def list_logs(self, problem_id: str | None = None) -> list[ReviewLog]:
        if problem_id is None:
            return list(self._logs)
        return [log for log in self._logs if log.problem_id == problem_id]
