from datetime import datetime, timedelta, timezone

import pytest

from mastery.domain.cards.models import Card, CardState
from mastery.infrastructure.adapters.clock import FixedClock

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def make_card():
    """Builds cards with sensible defaults; due defaults to NOW."""

    def _make(problem_id="p1", state=CardState.REVIEW, **kwargs):
        kwargs.setdefault("stability", 10.0)
        kwargs.setdefault("difficulty", 5.0)
        kwargs.setdefault("due", NOW)
        if state is not CardState.NEW:
            kwargs.setdefault("last_review", kwargs["due"] - timedelta(days=10))
            kwargs.setdefault("reps", 3)
        return Card(problem_id=problem_id, state=state, **kwargs)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the card store
    monkeypatch.setenv("HOME", str(home))
    for var in ("MASTERY_BACKEND", "MASTERY_STORE_PATH", "MASTERY_CONTENT_FILE"):
        monkeypatch.delenv(var, raising=False)
    return home
