import asyncio
from dataclasses import replace
from datetime import datetime

import pytest

from mastery.application.scheduler import Scheduler
from mastery.domain.cards.models import CardState, ReviewEvent
from mastery.domain.errors import Conflict, NotFound
from mastery.infrastructure.adapters.clock import FixedClock, SystemClock
from mastery.infrastructure.adapters.memory_store import (
    InMemoryCardRepository,
    InMemoryReviewLogRepository,
    check_version,
)


def test_check_version(make_card):
    card = make_card(version=3)

    check_version(None, make_card(version=0))
    check_version(card, replace(card, version=4))
    with pytest.raises(Conflict):
        check_version(None, card)
    with pytest.raises(Conflict) as exc:
        check_version(card, replace(card, version=6))
    assert exc.value.expected_version == 5
    assert exc.value.actual_version == 3


@pytest.mark.asyncio
async def test_save_load_delete(make_card):
    repo = InMemoryCardRepository()
    card = make_card("p1", state=CardState.NEW, stability=0.4)

    await repo.save_card(card)
    assert await repo.load_card("p1") == card
    assert await repo.list_cards() == [card]

    await repo.delete_card("p1")
    with pytest.raises(NotFound):
        await repo.load_card("p1")
    with pytest.raises(NotFound):
        await repo.delete_card("p1")


@pytest.mark.asyncio
async def test_concurrent_saves_only_one_wins(make_card):
    card = make_card("p1", version=1)
    repo = InMemoryCardRepository([card])
    first = replace(card, version=2, stability=12.0)
    second = replace(card, version=2, stability=4.0)

    results = await asyncio.gather(
        repo.save_card(first), repo.save_card(second), return_exceptions=True
    )

    assert sum(isinstance(r, Conflict) for r in results) == 1
    assert (await repo.load_card("p1")).version == 2


@pytest.mark.asyncio
async def test_review_log_repository(make_card):
    scheduler = Scheduler()
    card = make_card("p1")
    logs = InMemoryReviewLogRepository()
    for pid in ("p1", "p2", "p1"):
        event = ReviewEvent(pid, 6)
        outcome = scheduler.process_review(replace(card, problem_id=pid), event, card.due)
        await logs.append(outcome.log)

    assert len(await logs.list_logs()) == 3
    assert len(await logs.list_logs("p1")) == 2


def test_fixed_clock(now):
    clock = FixedClock(now)

    assert clock.now() == now
    clock.advance(days=1, hours=2)
    assert (clock.now() - now).total_seconds() == 26 * 3600

    with pytest.raises(ValueError):
        FixedClock(datetime(2024, 1, 1))


def test_system_clock_is_aware():
    assert SystemClock().now().tzinfo is not None
