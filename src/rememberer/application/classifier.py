"""
Topic state classifier.

Derives a topic's knowledge state from its progress record and flashcards.
States are checked in priority order and the first match wins:

1. fading       - has SRS cards and at least one is critically overdue
2. mastered     - has SRS cards, all core fragments captured, retention >= 80%
3. studied      - has SRS cards
4. learning     - has captured at least one fragment
5. discovered   - topic was explored or visited
6. undiscovered - never interacted with

The result is a live snapshot, not a history: a mastered topic fades when
its reviews lapse and recovers once they are caught up.
"""

from collections.abc import Callable, Collection, Iterable
from datetime import datetime

from rememberer.domain.constants import (
    CORE_FRAGMENTS_REQUIRED,
    MASTERY_RETENTION_THRESHOLD,
)
from rememberer.domain.models import Flashcard, TopicProgress, TopicState

from .retention import has_overdue_cards, retention_score, srs_cards


def classify_topic_state(
    topic_id: str,
    progress: TopicProgress | None,
    flashcards: Iterable[Flashcard],
    now: datetime,
    explored_topics: Collection[str] = (),
) -> TopicState:
    """
    Classify one topic.

    Args:
        topic_id: The topic being classified.
        progress: The topic's progress record; None means never touched.
        flashcards: Flashcards whose source card belongs to the topic.
            Skipped and not-yet-graduated cards are filtered out here.
        now: Reference time for overdue checks.
        explored_topics: Topic ids the user has opened.

    Returns:
        The topic's TopicState. Never raises for missing data.
    """
    progress = progress or TopicProgress.empty()
    aggregate = srs_cards(flashcards)
    captured = len(progress.captured_cards)

    if aggregate:
        if has_overdue_cards(aggregate, now):
            return TopicState.FADING

        if (
            captured >= CORE_FRAGMENTS_REQUIRED
            and retention_score(aggregate, now) >= MASTERY_RETENTION_THRESHOLD
        ):
            return TopicState.MASTERED

        return TopicState.STUDIED

    if captured > 0:
        return TopicState.LEARNING

    if topic_id in explored_topics or progress.first_visited is not None:
        return TopicState.DISCOVERED

    return TopicState.UNDISCOVERED


TopicClassifier = Callable[[str], TopicState]


def classify_topics(
    topic_ids: Iterable[str], classify: TopicClassifier
) -> list[tuple[str, TopicState]]:
    """
    Classify each topic independently.

    Returns one ``(topic_id, state)`` pair per input id, in input order,
    repeated ids included.
    """
    return [(topic_id, classify(topic_id)) for topic_id in topic_ids]


def topics_in_state(
    topic_ids: Iterable[str], state: TopicState, classify: TopicClassifier
) -> list[str]:
    return [topic_id for topic_id in topic_ids if classify(topic_id) == state]


def states_summary(topic_ids: Iterable[str], classify: TopicClassifier) -> dict[TopicState, int]:
    """Count topics per state; every state is present, possibly with 0."""
    summary = {state: 0 for state in TopicState}
    for topic_id in topic_ids:
        summary[classify(topic_id)] += 1
    return summary
