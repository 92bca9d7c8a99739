"""
Review Service: Application layer orchestrator for the review workflow.

Coordinates the due queue, SM-2 scheduling and flashcard lifecycle
(learning, graduation, skipping) over a StudyStore. Every write goes
through ``update_section`` so one card's update is a single atomic
read-modify-write.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from rememberer.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    DEFAULT_REPETITIONS,
    MASTERED_LEITNER_BOX,
    MIN_LEITNER_BOX,
    SECTION_FLASHCARDS,
    SECTION_STUDY_DECK,
)
from rememberer.domain.exceptions import FlashcardNotFoundError, FlashcardSkippedError
from rememberer.domain.models import (
    Flashcard,
    FlashcardStatus,
    ReviewQuality,
    StudyState,
)
from rememberer.domain.ports import StudyStore

from .scheduler import schedule, validate_quality
from .topic_index import TopicIndex, build_topic_index

logger = logging.getLogger(__name__)

_SRS_STATES = (StudyState.LEARNED, StudyState.MASTERED)
_LEARNING_STATES = (StudyState.NEW, StudyState.ACQUIRING)


def due_queue(flashcards: Iterable[Flashcard], now: datetime) -> list[Flashcard]:
    """
    Active flashcards due at or before ``now``, most overdue first.

    Cards without a due date are never due.
    """
    due = [
        fc
        for fc in flashcards
        if fc.is_active and fc.next_review_date is not None and fc.next_review_date <= now
    ]
    return sorted(due, key=lambda fc: fc.next_review_date)


def apply_review(card: Flashcard, quality: int, now: datetime) -> Flashcard:
    """
    Return the card after one review: new SM-2 parameters plus Leitner box
    and study state transitions.
    """
    rating = validate_quality(quality)
    result = schedule(rating, card.repetitions, card.ease_factor, card.interval, now)

    box = card.leitner_box
    study_state = card.study_state
    graduated_at = card.graduated_at

    if rating == ReviewQuality.AGAIN:
        box = MIN_LEITNER_BOX
        if study_state == StudyState.MASTERED:
            study_state = StudyState.LEARNED
    elif rating in (ReviewQuality.GOOD, ReviewQuality.EASY):
        box = min(MASTERED_LEITNER_BOX, box + 1)
        if study_state in _LEARNING_STATES:
            study_state = StudyState.LEARNED
            graduated_at = graduated_at or now
        if box == MASTERED_LEITNER_BOX:
            study_state = StudyState.MASTERED

    return replace(
        card,
        repetitions=result.repetitions,
        ease_factor=result.ease_factor,
        interval=result.interval,
        next_review_date=result.next_review_date,
        leitner_box=box,
        study_state=study_state,
        graduated_at=graduated_at,
        last_reviewed_at=now,
    )


class ReviewService:
    """
    Application service for reviewing and managing flashcards.

    Depends on the StudyStore abstraction, not a concrete adapter.
    """

    def __init__(self, store: StudyStore, index: TopicIndex | None = None):
        """
        Args:
            store: The document store (port) holding flashcards and the study deck.
            index: Optional fixed topic index; built from the store on demand if omitted.
        """
        self._store = store
        self._index = index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all_flashcards(self) -> list[Flashcard]:
        raw = self._store.get_section(SECTION_FLASHCARDS, {}) or {}
        return [Flashcard.from_dict(record) for record in raw.values()]

    def get(self, flashcard_id: str) -> Flashcard:
        raw = self._store.get_section(SECTION_FLASHCARDS, {}) or {}
        if flashcard_id not in raw:
            raise FlashcardNotFoundError(flashcard_id)
        return Flashcard.from_dict(raw[flashcard_id])

    def due_flashcards(self, now: datetime) -> list[Flashcard]:
        return due_queue(self.all_flashcards(), now)

    def review_due_flashcards(self, now: datetime) -> list[Flashcard]:
        """Due cards that have already entered spaced repetition."""
        return [fc for fc in self.due_flashcards(now) if fc.study_state in _SRS_STATES]

    def learning_flashcards(self) -> list[Flashcard]:
        """Active cards that have not graduated yet."""
        return [
            fc
            for fc in self.all_flashcards()
            if fc.is_active and fc.study_state in _LEARNING_STATES
        ]

    def next_review_time(self) -> datetime | None:
        dates = [
            fc.next_review_date
            for fc in self.all_flashcards()
            if fc.is_active and fc.next_review_date is not None
        ]
        return min(dates) if dates else None

    def flashcard_count_for_topic(self, topic_id: str) -> int:
        return len(self._topic_index().active_flashcards_for(topic_id))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_flashcards(self, flashcards: Iterable[Flashcard]) -> int:
        """Store generated flashcards, replacing any with the same id."""
        records = {fc.id: fc.to_dict() for fc in flashcards}

        def merge(section: dict[str, Any]) -> dict[str, Any]:
            section.update(records)
            return section

        self._store.update_section(SECTION_FLASHCARDS, merge, default={})
        logger.info(f"Saved {len(records)} flashcards")
        return len(records)

    def review(self, flashcard_id: str, quality: int, now: datetime) -> Flashcard:
        """
        Apply one review to a flashcard and persist it.

        Raises:
            InvalidQualityError: quality is not 0-3.
            FlashcardNotFoundError: Unknown id.
            FlashcardSkippedError: The card was skipped.
        """
        validate_quality(quality)

        def transform(card: Flashcard) -> Flashcard:
            if not card.is_active:
                raise FlashcardSkippedError(flashcard_id)
            return apply_review(card, quality, now)

        updated = self._update(flashcard_id, transform)
        logger.info(
            f"Reviewed {flashcard_id} q={quality}: interval={updated.interval}d "
            f"ease={updated.ease_factor:.2f} box={updated.leitner_box}"
        )
        return updated

    def skip(self, flashcard_id: str) -> Flashcard:
        """Remove a card from rotation. Skipping is permanent."""
        updated = self._update(
            flashcard_id, lambda card: replace(card, status=FlashcardStatus.SKIPPED)
        )
        logger.info(f"Marked {flashcard_id} as skipped")
        return updated

    def start_learning(self, flashcard_id: str) -> Flashcard:
        def transform(card: Flashcard) -> Flashcard:
            if not card.is_active:
                raise FlashcardSkippedError(flashcard_id)
            if card.study_state != StudyState.NEW:
                return card
            return replace(card, study_state=StudyState.ACQUIRING)

        return self._update(flashcard_id, transform)

    def graduate(self, flashcard_id: str, now: datetime) -> Flashcard:
        """
        Move a card into spaced repetition with fresh SM-2 parameters.

        The first review is due one day after graduation.
        """

        def transform(card: Flashcard) -> Flashcard:
            if not card.is_active:
                raise FlashcardSkippedError(flashcard_id)
            return replace(
                card,
                study_state=StudyState.LEARNED,
                ease_factor=DEFAULT_EASE_FACTOR,
                interval=DEFAULT_INTERVAL,
                repetitions=DEFAULT_REPETITIONS,
                next_review_date=now + timedelta(days=1),
                graduated_at=now,
            )

        updated = self._update(flashcard_id, transform)
        logger.info(f"Graduated {flashcard_id}")
        return updated

    def graduate_many(self, flashcard_ids: Iterable[str], now: datetime) -> list[Flashcard]:
        return [self.graduate(flashcard_id, now) for flashcard_id in flashcard_ids]

    # ------------------------------------------------------------------
    # Study deck
    # ------------------------------------------------------------------

    def study_deck(self) -> list[str]:
        return list(self._store.get_section(SECTION_STUDY_DECK, []) or [])

    def is_in_study_deck(self, topic_id: str) -> bool:
        return topic_id in self.study_deck()

    def add_to_study_deck(self, topic_id: str) -> list[str]:
        def add(deck: list[str]) -> list[str]:
            if topic_id not in deck:
                deck.append(topic_id)
            return deck

        return self._store.update_section(SECTION_STUDY_DECK, add, default=[])

    def remove_from_study_deck(self, topic_id: str) -> list[str]:
        return self._store.update_section(
            SECTION_STUDY_DECK, lambda deck: [t for t in deck if t != topic_id], default=[]
        )

    def study_deck_flashcards(self) -> list[Flashcard]:
        """Non-skipped flashcards from topics in the study deck."""
        deck = self.study_deck()
        if not deck:
            return []
        index = self._topic_index()
        return [
            fc for fc in self.all_flashcards() if fc.is_active and index.belongs_to_any(fc, deck)
        ]

    def study_deck_due_flashcards(self, now: datetime) -> list[Flashcard]:
        due = due_queue(self.study_deck_flashcards(), now)
        return [fc for fc in due if fc.study_state in _SRS_STATES]

    def study_deck_learning_flashcards(self) -> list[Flashcard]:
        return [fc for fc in self.study_deck_flashcards() if fc.study_state in _LEARNING_STATES]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _topic_index(self) -> TopicIndex:
        return self._index or build_topic_index(self._store)

    def _update(
        self, flashcard_id: str, transform: Callable[[Flashcard], Flashcard]
    ) -> Flashcard:
        result: list[Flashcard] = []

        def apply(section: dict[str, Any]) -> dict[str, Any]:
            if flashcard_id not in section:
                raise FlashcardNotFoundError(flashcard_id)
            updated = transform(Flashcard.from_dict(section[flashcard_id]))
            record = {**section[flashcard_id], **updated.to_dict()}
            record.pop("nextReview", None)
            section[flashcard_id] = record
            result.append(updated)
            return section

        self._store.update_section(SECTION_FLASHCARDS, apply, default={})
        return result[0]
