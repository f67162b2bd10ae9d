from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from mastery.application.stats.metrics_calculator import (
    MetricsCalculator,
    day_bounds,
    mastery_percent,
)
from mastery.application.stats.service import StatsService
from mastery.domain.cards.models import CardState
from mastery.infrastructure.adapters.clock import FixedClock


@pytest.fixture
def calculator():
    return MetricsCalculator()


@pytest.fixture
def mock_repo():
    return AsyncMock()


def test_metrics_calculator_retrievability(calculator, make_card, now):
    # Setup card with last review 10 days ago and stability 10
    card = make_card(stability=10.0, last_review=now - timedelta(days=10))

    enriched = calculator.enrich(card, now)

    # R(S, S) == 0.9
    assert enriched.current_retrievability == pytest.approx(0.9)
    assert enriched.stability == 10.0
    assert enriched.difficulty == 5.0


def test_metrics_calculator_new_card(calculator, make_card, now):
    enriched = calculator.enrich(make_card(state=CardState.NEW, stability=0.4), now)

    assert enriched.current_retrievability is None
    assert enriched.lapse_rate is None
    assert enriched.mastery_percent == 0


def test_metrics_calculator_lapse_rate(calculator, make_card, now):
    enriched = calculator.enrich(make_card(reps=10, lapses=5), now)
    assert enriched.lapse_rate == 0.5


def test_metrics_calculator_days_overdue(calculator, make_card, now):
    assert calculator.enrich(make_card(due=now - timedelta(days=2)), now).days_overdue == 2.0
    assert calculator.enrich(make_card(due=now + timedelta(days=1)), now).days_overdue == -1.0


def test_mastery_percent(make_card):
    assert mastery_percent(make_card(stability=21.0)) == 100
    assert mastery_percent(make_card(stability=10.5)) == 50
    # Not in Review: capped below 100 regardless of stability
    assert mastery_percent(make_card(state=CardState.RELEARNING, stability=40.0)) == 99


def test_summary_empty_is_all_zero(calculator, now):
    summary = calculator.summarize([], now)

    assert summary.total == 0
    assert summary.due_today == 0
    assert summary.retention_rate == 0.0
    assert summary.completion_percent == 0.0
    assert all(value == 0 for value in summary.to_dict().values())


def test_summary_counts(calculator, make_card, now):
    cards = [
        make_card("new", state=CardState.NEW, stability=0.4),
        make_card("today", state=CardState.LEARNING, due=now + timedelta(hours=6), reps=2),
        make_card("overdue", due=now - timedelta(days=2), reps=4, lapses=1),
        make_card("earlier_today", due=now - timedelta(hours=3), reps=2, lapses=1),
        make_card("mastered", stability=30.0, due=now + timedelta(days=20), reps=2),
    ]

    summary = calculator.summarize(cards, now)

    assert summary.total == 5
    assert summary.new_count == 1
    assert summary.learning_count == 1
    assert summary.review_count == 3
    assert summary.relearning_count == 0
    # "new" is due at now, so also today
    assert summary.due_today == 3
    assert summary.overdue == 1
    assert summary.due_now == 3
    assert summary.total_reps == 10
    assert summary.total_lapses == 2
    assert summary.retention_rate == pytest.approx(0.8)
    assert summary.mastered_count == 1
    assert summary.completion_percent == pytest.approx(20.0)


def test_due_today_uses_timezone(calculator, make_card):
    # 23:30 UTC is already the next day in Tokyo
    now = datetime(2024, 3, 15, 23, 30, tzinfo=timezone.utc)
    card = make_card(due=datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc))

    utc = calculator.summarize([card], now)
    assert utc.due_today == 1
    assert utc.overdue == 0

    tokyo = calculator.summarize([card], now, ZoneInfo("Asia/Tokyo"))
    assert tokyo.due_today == 0
    assert tokyo.overdue == 1
    assert tokyo.due_now == 1


def test_day_bounds(now):
    start, end = day_bounds(now, ZoneInfo("UTC"))
    assert start == datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)


@pytest.mark.asyncio
async def test_stats_service_orchestration(mock_repo, make_card, now):
    mock_repo.list_cards.return_value = [make_card("a"), make_card("b", state=CardState.NEW)]
    service = StatsService(cards=mock_repo, clock=FixedClock(now))

    summary = await service.get_summary()

    assert summary.total == 2
    assert summary.new_count == 1
    mock_repo.list_cards.assert_awaited_once()


@pytest.mark.asyncio
async def test_stats_service_card_metrics_filter(mock_repo, make_card, now):
    mock_repo.list_cards.return_value = [make_card("a"), make_card("b")]
    service = StatsService(cards=mock_repo, clock=FixedClock(now))

    metrics = await service.get_card_metrics(["b", "zzz"])

    assert [m.problem_id for m in metrics] == ["b"]


@pytest.mark.asyncio
async def test_stats_service_weak_cards(mock_repo, make_card, now):
    mock_repo.list_cards.return_value = [
        make_card("strong", stability=30.0, lapses=0, last_review=now - timedelta(days=1)),
        make_card("lapsed", stability=30.0, lapses=2, last_review=now - timedelta(days=1)),
        make_card("fragile", stability=2.0, lapses=0, last_review=now - timedelta(days=1)),
        make_card("never", state=CardState.NEW, stability=0.4, reps=0),
    ]
    service = StatsService(cards=mock_repo, clock=FixedClock(now))

    weak = await service.get_weak_cards()

    assert sorted(m.problem_id for m in weak) == ["fragile", "lapsed"]
