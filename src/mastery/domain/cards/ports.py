"""
Ports (interfaces) for card storage and time.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, ReviewLog


class CardRepository(ABC):
    """
    Port for the durable card store.

    Implementations:
        - InMemoryCardRepository: Process-local dict, used by tests and the "memory" backend.
        - JsonCardRepository: Single JSON file on disk.

    Writes are serialized per card through Card.version: a card may only be saved
    when its version is exactly one past the stored version (or 0 for a card that
    is not stored yet). Anything else is a concurrent write and raises Conflict.
    """

    @abstractmethod
    async def load_card(self, problem_id: str) -> Card:
        """
        Fetch the card for a problem.

        Raises:
            NotFound: No card is stored for problem_id.
        """
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        """
        Persist a card.

        Raises:
            Conflict: The stored version does not precede card.version.
        """
        pass

    @abstractmethod
    async def list_cards(self) -> list[Card]:
        """Return every stored card."""
        pass

    @abstractmethod
    async def delete_card(self, problem_id: str) -> None:
        """
        Remove the card for a problem.

        Raises:
            NotFound: No card is stored for problem_id.
        """
        pass


class ReviewLogRepository(ABC):
    """Port for the append-only review history."""

    @abstractmethod
    async def append(self, log: ReviewLog) -> None:
        pass

    @abstractmethod
    async def list_logs(self, problem_id: str | None = None) -> list[ReviewLog]:
        """Return logs oldest first, optionally for a single problem."""
        pass


class Clock(ABC):
    """Source of the current instant. Core logic never reads the system clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Return a timezone-aware timestamp."""
        pass
