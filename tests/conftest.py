from datetime import datetime, timedelta, timezone

import pytest

from rememberer.domain.models import Flashcard, FlashcardStatus, StudyState
from rememberer.infrastructure.adapters.store import InMemoryStudyStore, default_document

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Factory for flashcards; ``due_in`` is days relative to NOW (negative = overdue)."""

    def _make(
        card_id: str = "fc1",
        source_card_id: str = "egypt-core-1",
        study_state: StudyState = StudyState.LEARNED,
        status: FlashcardStatus = FlashcardStatus.ACTIVE,
        due_in: float | None = 1,
        **kwargs,
    ) -> Flashcard:
        next_review = NOW + timedelta(days=due_in) if due_in is not None else None
        return Flashcard(
            id=card_id,
            source_card_id=source_card_id,
            study_state=study_state,
            status=status,
            next_review_date=next_review,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_store():
    """Builds an InMemoryStudyStore seeded with flashcards, content cards and progress."""

    def _make(flashcards=(), cards=None, topic_progress=None, explored=(), study_deck=()):
        doc = default_document()
        doc["flashcards"] = {fc.id: fc.to_dict() for fc in flashcards}
        doc["cards"] = dict(cards or {})
        doc["voidProgress"] = {
            "topicProgress": dict(topic_progress or {}),
            "exploredTopics": list(explored),
        }
        doc["studyDeck"] = list(study_deck)
        return InMemoryStudyStore(doc)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for var in ("REMEMBERER_BACKEND", "REMEMBERER_DATA_FILE", "REMEMBERER_HOST", "REMEMBERER_PORT"):
        monkeypatch.delenv(var, raising=False)
    return home
