"""
Flashcard-to-topic resolution.

A flashcard belongs to a topic through its source content card:
``flashcard.source_card_id -> cards[source_card_id]["deckId"]``.
Flashcards whose source card is unknown fall back to the legacy id
convention, where the source card id is the topic id or starts with
``"<topic_id>-"``.

The index is built explicitly from the data it is given and handed to the
services that need it. Nothing is cached at module level.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from rememberer.domain.constants import SECTION_CARDS, SECTION_FLASHCARDS
from rememberer.domain.models import Flashcard
from rememberer.domain.ports import StudyStore

logger = logging.getLogger(__name__)


def topic_for_card(card: Mapping[str, Any] | None) -> str | None:
    if not card:
        return None
    deck_id = card.get("deckId")
    return str(deck_id) if deck_id else None


def matches_topic_prefix(source_card_id: str, topic_id: str) -> bool:
    return source_card_id == topic_id or source_card_id.startswith(topic_id + "-")


class TopicIndex:
    """
    Groups flashcards by topic.

    Skipped flashcards are kept in the index; filtering is left to callers
    so the same index can answer both "all cards" and "active cards" queries.
    """

    def __init__(
        self,
        flashcards: Iterable[Flashcard],
        cards: Mapping[str, Mapping[str, Any]],
    ):
        """
        Args:
            flashcards: All known flashcards.
            cards: Content cards keyed by id; each may carry a ``deckId``.
        """
        self._by_topic: dict[str, list[Flashcard]] = defaultdict(list)
        self._topic_of: dict[str, str] = {}
        self._unresolved: list[Flashcard] = []

        for fc in flashcards:
            topic_id = topic_for_card(cards.get(fc.source_card_id))
            if topic_id:
                self._by_topic[topic_id].append(fc)
                self._topic_of[fc.id] = topic_id
            else:
                self._unresolved.append(fc)

        if self._unresolved:
            logger.debug(
                f"{len(self._unresolved)} flashcards have no known source card; "
                "matching them by id prefix"
            )

    @property
    def topic_ids(self) -> list[str]:
        """Topics with at least one flashcard resolved through its source card."""
        return list(self._by_topic)

    def flashcards_for(self, topic_id: str) -> list[Flashcard]:
        """All flashcards (including skipped) belonging to a topic."""
        resolved = list(self._by_topic.get(topic_id, []))
        fallback = [
            fc for fc in self._unresolved if matches_topic_prefix(fc.source_card_id, topic_id)
        ]
        return resolved + fallback

    def active_flashcards_for(self, topic_id: str) -> list[Flashcard]:
        return [fc for fc in self.flashcards_for(topic_id) if fc.is_active]

    def belongs_to_any(self, flashcard: Flashcard, topic_ids: Iterable[str]) -> bool:
        """True if the flashcard resolves to one of the given topics."""
        wanted = set(topic_ids)
        topic_id = self._topic_of.get(flashcard.id)
        if topic_id is not None:
            return topic_id in wanted
        return any(matches_topic_prefix(flashcard.source_card_id, t) for t in wanted)


def build_topic_index(store: StudyStore) -> TopicIndex:
    """Snapshot the store's flashcards and content cards into a TopicIndex."""
    raw_flashcards = store.get_section(SECTION_FLASHCARDS, {}) or {}
    cards = store.get_section(SECTION_CARDS, {}) or {}
    return TopicIndex(
        (Flashcard.from_dict(record) for record in raw_flashcards.values()),
        cards,
    )
