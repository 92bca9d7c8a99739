from datetime import timedelta

import pytest

from rememberer.application.classifier import (
    classify_topic_state,
    classify_topics,
    states_summary,
    topics_in_state,
)
from rememberer.domain.models import FlashcardStatus, StudyState, TopicProgress, TopicState


def _progress(captured: int = 0, visited=None) -> TopicProgress:
    return TopicProgress(captured_cards=[f"frag-{i}" for i in range(captured)], first_visited=visited)


class TestPriorityCascade:
    def test_fading_dominates_mastered(self, make_card, now):
        # nine healthy cards and one ten days late: retention 0.9, but critically overdue
        cards = [make_card(card_id=f"h{i}", due_in=5) for i in range(9)]
        cards.append(make_card(card_id="late", due_in=-10))

        state = classify_topic_state("egypt", _progress(4), cards, now)

        assert state == TopicState.FADING

    def test_fragment_gate_blocks_mastery(self, make_card, now):
        cards = [make_card(card_id=f"h{i}", due_in=5) for i in range(3)]

        state = classify_topic_state("egypt", _progress(3), cards, now)

        assert state == TopicState.STUDIED

    def test_retention_boundary_is_mastered(self, make_card, now):
        cards = [make_card(card_id=f"h{i}", due_in=2) for i in range(4)]
        cards.append(make_card(card_id="late", due_in=-3))

        state = classify_topic_state("egypt", _progress(4), cards, now)

        assert state == TopicState.MASTERED

    def test_low_retention_is_studied(self, make_card, now):
        cards = [
            make_card(card_id="a", due_in=2),
            make_card(card_id="b", due_in=-2),
            make_card(card_id="c", due_in=-3),
        ]

        assert classify_topic_state("egypt", _progress(6), cards, now) == TopicState.STUDIED

    def test_studied_dominates_learning(self, make_card, now):
        cards = [make_card(due_in=-2)]
        assert classify_topic_state("egypt", _progress(1), cards, now) == TopicState.STUDIED

    def test_learning_without_srs_cards(self, make_card, now):
        cards = [
            make_card(card_id="n", study_state=StudyState.NEW),
            make_card(card_id="a", study_state=StudyState.ACQUIRING),
        ]
        assert classify_topic_state("egypt", _progress(2), cards, now) == TopicState.LEARNING

    def test_discovered_by_first_visit(self, now):
        progress = _progress(0, visited=now - timedelta(days=3))
        assert classify_topic_state("egypt", progress, [], now) == TopicState.DISCOVERED

    def test_discovered_by_explored_set(self, now):
        state = classify_topic_state("egypt", None, [], now, explored_topics={"egypt"})
        assert state == TopicState.DISCOVERED

    def test_undiscovered_by_default(self, now):
        assert classify_topic_state("egypt", None, [], now) == TopicState.UNDISCOVERED

    def test_explored_set_for_other_topic_does_not_count(self, now):
        state = classify_topic_state("egypt", None, [], now, explored_topics={"rome"})
        assert state == TopicState.UNDISCOVERED


class TestMissingData:
    def test_skipped_cards_are_ignored(self, make_card, now):
        cards = [make_card(status=FlashcardStatus.SKIPPED, due_in=-30)]
        assert classify_topic_state("egypt", None, cards, now) == TopicState.UNDISCOVERED

    def test_missing_due_date_does_not_fade(self, make_card, now):
        cards = [make_card(card_id=f"c{i}", due_in=None) for i in range(4)]
        assert classify_topic_state("egypt", _progress(4), cards, now) == TopicState.MASTERED

    def test_mastered_cards_keep_mastery_when_late(self, make_card, now):
        # a mastered card a few days late is still healthy
        cards = [make_card(study_state=StudyState.MASTERED, due_in=-5)]
        assert classify_topic_state("egypt", _progress(4), cards, now) == TopicState.MASTERED

    def test_mastered_cards_still_fade_when_critical(self, make_card, now):
        cards = [make_card(study_state=StudyState.MASTERED, due_in=-8)]
        assert classify_topic_state("egypt", _progress(4), cards, now) == TopicState.FADING


def test_classification_is_idempotent(make_card, now):
    cards = [make_card(card_id="a", due_in=-2), make_card(card_id="b", due_in=4)]
    progress = _progress(4)

    first = classify_topic_state("egypt", progress, cards, now)
    second = classify_topic_state("egypt", progress, cards, now)

    assert first == second
    assert len(progress.captured_cards) == 4


def test_fading_topic_recovers_after_review(make_card, now):
    late = make_card(card_id="late", due_in=-10)
    assert classify_topic_state("egypt", _progress(4), [late], now) == TopicState.FADING

    late.next_review_date = now + timedelta(days=6)
    assert classify_topic_state("egypt", _progress(4), [late], now) == TopicState.MASTERED


def test_mastered_topic_fades_with_time(make_card, now):
    card = make_card(due_in=1)
    assert classify_topic_state("egypt", _progress(4), [card], now) == TopicState.MASTERED

    later = now + timedelta(days=10)
    assert classify_topic_state("egypt", _progress(4), [card], later) == TopicState.FADING


class TestBatchHelpers:
    STATES = {
        "egypt": TopicState.MASTERED,
        "rome": TopicState.FADING,
        "maya": TopicState.UNDISCOVERED,
        "inca": TopicState.FADING,
    }

    def classify(self, topic_id):
        return self.STATES[topic_id]

    def test_classify_topics_preserves_order(self):
        result = classify_topics(["rome", "maya", "egypt"], self.classify)
        assert result == [
            ("rome", TopicState.FADING),
            ("maya", TopicState.UNDISCOVERED),
            ("egypt", TopicState.MASTERED),
        ]

    def test_classify_topics_repeated_id(self):
        result = classify_topics(["rome", "egypt", "rome"], self.classify)
        assert [topic_id for topic_id, _ in result] == ["rome", "egypt", "rome"]
        assert result[0] == result[2]

    def test_topics_in_state(self):
        assert topics_in_state(self.STATES, TopicState.FADING, self.classify) == ["rome", "inca"]

    def test_states_summary_counts_every_state(self):
        summary = states_summary(self.STATES, self.classify)

        assert set(summary) == set(TopicState)
        assert summary[TopicState.FADING] == 2
        assert summary[TopicState.MASTERED] == 1
        assert summary[TopicState.STUDIED] == 0


@pytest.mark.parametrize("captured", [0, 1, 3])
def test_no_mastery_below_four_fragments(make_card, now, captured):
    cards = [make_card(due_in=3)]
    assert classify_topic_state("egypt", _progress(captured), cards, now) == TopicState.STUDIED
