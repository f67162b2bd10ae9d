"""
JSON file storage adapter.

Keeps cards and review logs in a single JSON document:

    {"cards": [{...}, ...], "reviews": [{...}, ...]}

The file is re-read on every call so separate processes (CLI invocations, the
server) see each other's writes. Every read-modify-write holds an exclusive
lock on a sidecar "<store>.lock" file, shared by all repositories and processes
using the same store, and writes replace the file atomically.
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock

from mastery.domain.cards.models import Card, ReviewLog
from mastery.domain.cards.ports import CardRepository, ReviewLogRepository
from mastery.domain.errors import NotFound
from mastery.infrastructure.adapters.memory_store import check_version

logger = logging.getLogger(__name__)

_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _thread_lock(path: Path) -> threading.Lock:
    """One in-process lock per store file, whichever repository instance asks."""
    with _path_locks_guard:
        return _path_locks.setdefault(path, threading.Lock())


class JsonCardRepository(CardRepository, ReviewLogRepository):
    def __init__(self, path: Path):
        self.path = Path(path).expanduser().resolve()
        self._lock = _thread_lock(self.path)
        self._file_lock = FileLock(f"{self.path}.lock")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock, self._file_lock:
            yield

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"cards": [], "reviews": []}
        with self.path.open(encoding="utf-8") as f:
            data = json.load(f)
        data.setdefault("cards", [])
        data.setdefault("reviews", [])
        return data

    def _write(self, data: dict[str, Any]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".cards-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _cards(self, data: dict[str, Any]) -> dict[str, Card]:
        return {row["problem_id"]: Card.from_dict(row) for row in data["cards"]}

    async def load_card(self, problem_id: str) -> Card:
        with self._locked():
            cards = self._cards(self._read())
        try:
            return cards[problem_id]
        except KeyError:
            raise NotFound(problem_id) from None

    async def save_card(self, card: Card) -> None:
        with self._locked():
            data = self._read()
            cards = self._cards(data)
            check_version(cards.get(card.problem_id), card)
            cards[card.problem_id] = card
            data["cards"] = [c.to_dict() for c in cards.values()]
            self._write(data)
        logger.debug(f"Saved card {card.problem_id} v{card.version} to {self.path}")

    async def list_cards(self) -> list[Card]:
        with self._locked():
            return list(self._cards(self._read()).values())

    async def delete_card(self, problem_id: str) -> None:
        with self._locked():
            data = self._read()
            cards = self._cards(data)
            if problem_id not in cards:
                raise NotFound(problem_id)
            del cards[problem_id]
            data["cards"] = [c.to_dict() for c in cards.values()]
            self._write(data)

    async def append(self, log: ReviewLog) -> None:
        with self._locked():
            data = self._read()
            data["reviews"].append(log.to_dict())
            self._write(data)

    async def list_logs(self, problem_id: str | None = None) -> list[ReviewLog]:
        with self._locked():
            rows = self._read()["reviews"]
        logs = [ReviewLog.from_dict(row) for row in rows]
        if problem_id is None:
            return logs
        return [log for log in logs if log.problem_id == problem_id]
