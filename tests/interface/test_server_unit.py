import pytest
from fastapi.testclient import TestClient

from mastery.application.service import SchedulingService
from mastery.consts import VERSION
from mastery.domain.cards.models import ReviewEvent
from mastery.domain.content.models import StudyPhase
from mastery.infrastructure.adapters.content import StaticContentSource
from mastery.infrastructure.adapters.memory_store import (
    InMemoryCardRepository,
    InMemoryReviewLogRepository,
)
from mastery.server import app, get_service

client = TestClient(app)


@pytest.fixture
def service(clock, mock_home):
    content = StaticContentSource(
        phases={"two-sum": StudyPhase.DECODE, "lru-cache": StudyPhase.RECALL},
        errors={"lru-cache": {1: 1}},
    )
    svc = SchedulingService(
        cards=InMemoryCardRepository(),
        clock=clock,
        content=content,
        review_logs=InMemoryReviewLogRepository(),
    )
    app.dependency_overrides[get_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version():
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_enroll_and_fetch(service):
    response = client.post("/cards", json={"problem_id": "two-sum"})
    assert response.status_code == 200
    assert response.json()["state"] == "new"

    response = client.get("/cards/two-sum")
    assert response.status_code == 200
    assert response.json()["problem_id"] == "two-sum"
    assert response.json()["version"] == 0


def test_enroll_requires_id(service):
    assert client.post("/cards", json={"problem_id": ""}).status_code == 422


def test_unknown_card_is_404(service):
    response = client.get("/cards/ghost")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_review(service):
    client.post("/cards", json={"problem_id": "two-sum"})

    response = client.post("/reviews", json={"card_id": "two-sum", "rating": 8})

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "learning"
    assert data["reps"] == 1
    assert data["scheduled_days"] == 9.0


@pytest.mark.parametrize("rating", [0, 11])
def test_review_invalid_rating_is_422(service, rating):
    client.post("/cards", json={"problem_id": "two-sum"})

    response = client.post("/reviews", json={"card_id": "two-sum", "rating": rating})

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidRating"
    assert client.get("/cards/two-sum").json()["reps"] == 0


def test_review_unknown_card_is_404(service):
    response = client.post("/reviews", json={"card_id": "ghost", "rating": 5})
    assert response.status_code == 404


def test_review_conflict_is_409(service, monkeypatch):
    client.post("/cards", json={"problem_id": "two-sum"})
    real_load = service._cards.load_card

    async def stale_then_bump(problem_id):
        card = await real_load(problem_id)
        # another writer lands between our read and our write
        bumped = service.scheduler.process_review(card, ReviewEvent(problem_id, 5), card.due)
        await service._cards.save_card(bumped.card)
        return card

    monkeypatch.setattr(service._cards, "load_card", stale_then_bump)

    response = client.post("/reviews", json={"card_id": "two-sum", "rating": 7})
    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"


def test_delete_card(service):
    client.post("/cards", json={"problem_id": "two-sum"})

    assert client.delete("/cards/two-sum").status_code == 204
    assert client.get("/cards/two-sum").status_code == 404
    assert client.delete("/cards/two-sum").status_code == 404


def test_due_cards(service, clock):
    client.post("/cards", json={"problem_id": "two-sum"})
    client.post("/cards", json={"problem_id": "lru-cache"})
    client.post("/reviews", json={"card_id": "two-sum", "rating": 10})

    response = client.get("/cards/due")
    assert response.status_code == 200
    assert [c["problem_id"] for c in response.json()] == ["lru-cache"]

    clock.advance(days=60)
    assert len(client.get("/cards/due", params={"limit": 1}).json()) == 1


def test_stats(service):
    assert client.get("/stats").json()["total"] == 0

    client.post("/cards", json={"problem_id": "two-sum"})
    stats = client.get("/stats").json()
    assert stats["total"] == 1
    assert stats["new_count"] == 1
    assert stats["due_today"] == 1


def test_phase_queue(service):
    client.post("/cards", json={"problem_id": "lru-cache"})

    data = client.get("/phases/queue").json()

    assert data["counts"] == {"1": 0, "2": 0, "3": 1, "4": 0}
    assert data["labels"]["3"] == "recall"
    assert data["recommended_focus"] == 3


def test_recommendations(service, clock):
    client.post("/cards", json={"problem_id": "two-sum"})
    client.post("/cards", json={"problem_id": "lru-cache"})
    clock.advance(days=1)

    data = client.get("/recommendations").json()

    assert [r["problem_id"] for r in data["tier_1_critical"]] == ["lru-cache"]
    assert [r["problem_id"] for r in data["tier_2_due"]] == ["two-sum"]
    assert data["tier_1_critical"][0]["error_types"] == ["Conceptual Error"]
    assert data["tier_1_critical"][0]["priority_score"] == pytest.approx(3.0)


def test_weak_cards(service):
    client.post("/cards", json={"problem_id": "two-sum"})
    client.post("/cards", json={"problem_id": "lru-cache"})
    client.post("/reviews", json={"card_id": "two-sum", "rating": 1})

    weak = client.get("/stats/weak").json()

    assert [m["problem_id"] for m in weak] == ["two-sum"]
    assert weak[0]["lapses"] == 1
    assert weak[0]["mastery_percent"] == 1
