"""
Topic State Service: Application layer orchestrator.

Reads progress records and flashcards from the store, resolves them per
topic through a TopicIndex and hands them to the pure classifier.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from rememberer.domain.constants import SECTION_VOID_PROGRESS
from rememberer.domain.models import TopicProgress, TopicState
from rememberer.domain.ports import StudyStore

from .classifier import classify_topic_state, classify_topics, states_summary, topics_in_state
from .retention import RetentionStats, retention_stats, srs_cards
from .topic_index import TopicIndex, build_topic_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicDebugRow:
    """One line of the per-topic diagnostic table."""

    topic_id: str
    state: TopicState
    captured: int
    flashcards: int
    in_srs: int
    retention: float


class _Snapshot:
    """Store contents loaded once, shared by every topic in one call."""

    def __init__(self, store: StudyStore, index: TopicIndex | None):
        void_progress = store.get_section(SECTION_VOID_PROGRESS, {}) or {}
        self.topic_progress: dict = void_progress.get("topicProgress") or {}
        self.explored: frozenset[str] = frozenset(void_progress.get("exploredTopics") or [])
        self.index = index or build_topic_index(store)

    def progress_for(self, topic_id: str) -> TopicProgress:
        return TopicProgress.from_dict(self.topic_progress.get(topic_id))

    def classify(self, topic_id: str, now: datetime) -> TopicState:
        return classify_topic_state(
            topic_id,
            self.progress_for(topic_id),
            self.index.active_flashcards_for(topic_id),
            now,
            explored_topics=self.explored,
        )


class TopicStateService:
    """
    Application service for topic knowledge states.

    Depends on the StudyStore abstraction. A TopicIndex may be injected to
    pin the flashcard-to-topic mapping; otherwise one is built per call.
    """

    def __init__(self, store: StudyStore, index: TopicIndex | None = None):
        self._store = store
        self._index = index

    def topic_state(self, topic_id: str, now: datetime) -> TopicState:
        return self._snapshot().classify(topic_id, now)

    def topic_states(
        self, topic_ids: Iterable[str], now: datetime
    ) -> list[tuple[str, TopicState]]:
        """
        Classify many topics against one snapshot of the store.

        Each topic is classified independently. The result has one pair per
        input id, in input order.
        """
        snap = self._snapshot()
        return classify_topics(topic_ids, lambda topic_id: snap.classify(topic_id, now))

    def topics_in_state(
        self, topic_ids: Iterable[str], state: TopicState, now: datetime
    ) -> list[str]:
        snap = self._snapshot()
        return topics_in_state(topic_ids, state, lambda topic_id: snap.classify(topic_id, now))

    def states_summary(self, topic_ids: Iterable[str], now: datetime) -> dict[TopicState, int]:
        snap = self._snapshot()
        return states_summary(topic_ids, lambda topic_id: snap.classify(topic_id, now))

    def retention_stats(self, topic_id: str, now: datetime) -> RetentionStats:
        snap = self._snapshot()
        return retention_stats(snap.index.active_flashcards_for(topic_id), now)

    def debug_rows(self, topic_ids: Iterable[str], now: datetime) -> list[TopicDebugRow]:
        """Per-topic breakdown used by ``rememberer summary --detail``."""
        snap = self._snapshot()
        rows = []
        for topic_id in topic_ids:
            active = snap.index.active_flashcards_for(topic_id)
            stats = retention_stats(active, now)
            rows.append(
                TopicDebugRow(
                    topic_id=topic_id,
                    state=snap.classify(topic_id, now),
                    captured=len(snap.progress_for(topic_id).captured_cards),
                    flashcards=len(active),
                    in_srs=len(srs_cards(active)),
                    retention=stats.retention,
                )
            )
        logger.debug(f"Built debug rows for {len(rows)} topics")
        return rows

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(self._store, self._index)
