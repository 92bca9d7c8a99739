from datetime import timedelta

import pytest

from rememberer.application.retention import RetentionStats
from rememberer.application.state_service import TopicStateService
from rememberer.application.topic_index import TopicIndex
from rememberer.domain.models import StudyState, TopicState

CARDS = {
    "egypt-1": {"deckId": "egypt"},
    "rome-1": {"deckId": "rome"},
    "maya-1": {"deckId": "maya"},
}

CAPTURED = {"capturedCards": ["a", "b", "c", "d"]}


@pytest.fixture
def service(make_card, make_store, now):
    store = make_store(
        flashcards=[
            make_card(card_id="e1", source_card_id="egypt-1", due_in=3),
            make_card(card_id="e2", source_card_id="egypt-1", due_in=5),
            make_card(card_id="r1", source_card_id="rome-1", due_in=-10),
            make_card(card_id="m1", source_card_id="maya-1", study_state=StudyState.ACQUIRING),
        ],
        cards=CARDS,
        topic_progress={
            "egypt": CAPTURED,
            "rome": CAPTURED,
            "maya": {"capturedCards": ["x"]},
            "inca": {"capturedCards": [], "firstVisited": (now - timedelta(days=1)).isoformat()},
        },
        explored=["aztec"],
    )
    return TopicStateService(store)


def test_topic_state(service, now):
    assert service.topic_state("egypt", now) == TopicState.MASTERED
    assert service.topic_state("rome", now) == TopicState.FADING
    assert service.topic_state("maya", now) == TopicState.LEARNING
    assert service.topic_state("inca", now) == TopicState.DISCOVERED
    assert service.topic_state("aztec", now) == TopicState.DISCOVERED
    assert service.topic_state("olmec", now) == TopicState.UNDISCOVERED


def test_topic_states_keeps_order(service, now):
    states = service.topic_states(["olmec", "rome", "egypt", "rome"], now)

    assert states == [
        ("olmec", TopicState.UNDISCOVERED),
        ("rome", TopicState.FADING),
        ("egypt", TopicState.MASTERED),
        ("rome", TopicState.FADING),
    ]


def test_topic_states_empty(service, now):
    assert service.topic_states([], now) == []


def test_topics_in_state(service, now):
    topics = ["egypt", "rome", "maya", "inca", "aztec"]
    assert service.topics_in_state(topics, TopicState.DISCOVERED, now) == ["inca", "aztec"]


def test_states_summary(service, now):
    summary = service.states_summary(["egypt", "rome", "maya", "olmec"], now)

    assert summary[TopicState.MASTERED] == 1
    assert summary[TopicState.FADING] == 1
    assert summary[TopicState.LEARNING] == 1
    assert summary[TopicState.UNDISCOVERED] == 1
    assert sum(summary.values()) == 4


def test_retention_stats(service, now):
    assert service.retention_stats("egypt", now) == RetentionStats(2, 2, 0, 0, 1.0)
    assert service.retention_stats("olmec", now).retention == 0.0


def test_time_moves_state(service, now):
    assert service.topic_state("egypt", now + timedelta(days=13)) == TopicState.FADING


def test_debug_rows(service, now):
    rows = service.debug_rows(["egypt", "maya"], now)

    egypt, maya = rows
    assert (egypt.topic_id, egypt.state, egypt.captured, egypt.flashcards, egypt.in_srs) == (
        "egypt",
        TopicState.MASTERED,
        4,
        2,
        2,
    )
    assert maya.in_srs == 0
    assert maya.retention == 0.0


def test_injected_index_is_used(make_card, make_store, now):
    store = make_store(topic_progress={"egypt": CAPTURED}, cards=CARDS)
    index = TopicIndex([make_card(card_id="x", source_card_id="egypt-1", due_in=-9)], CARDS)

    service = TopicStateService(store, index=index)

    assert service.topic_state("egypt", now) == TopicState.FADING


def test_reads_latest_store_contents(make_card, make_store, now):
    store = make_store(cards=CARDS, topic_progress={"egypt": CAPTURED})
    service = TopicStateService(store)
    assert service.topic_state("egypt", now) == TopicState.LEARNING

    card = make_card(card_id="e1", source_card_id="egypt-1", due_in=2)
    store.set_section("flashcards", {"e1": card.to_dict()})

    assert service.topic_state("egypt", now) == TopicState.MASTERED
