"""
Retention and overdue math over a topic's flashcards.

This is a pure computation module with no I/O. Every function takes the
current time explicitly.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from rememberer.domain.constants import CRITICAL_OVERDUE_DAYS, SECONDS_PER_DAY
from rememberer.domain.models import Flashcard, StudyState


@dataclass(frozen=True)
class RetentionStats:
    """
    Breakdown of a topic's cards in spaced repetition.
    """

    total: int
    healthy: int  # mastered, or not yet past due
    overdue: int
    mastered: int
    retention: float  # healthy / total, 0 when total is 0


def days_overdue(card: Flashcard, now: datetime) -> int:
    """
    Whole days past due (negative if not yet due).

    A card without a due date is treated as exactly on time so that missing
    data never makes a topic look like it is fading.
    """
    if card.next_review_date is None:
        return 0
    elapsed = (now - card.next_review_date).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY)


def is_srs_aggregate(card: Flashcard) -> bool:
    """Active cards that have entered spaced repetition (learned or mastered)."""
    return card.is_active and card.in_srs


def srs_cards(cards: Iterable[Flashcard]) -> list[Flashcard]:
    return [c for c in cards if is_srs_aggregate(c)]


def _is_healthy(card: Flashcard, now: datetime) -> bool:
    if card.study_state == StudyState.MASTERED:
        return True
    return days_overdue(card, now) <= 0


def retention_score(cards: Iterable[Flashcard], now: datetime) -> float:
    """
    Fraction of SRS cards that are healthy, in [0, 1].

    Defined as 0 when no card is in spaced repetition.
    """
    aggregate = srs_cards(cards)
    if not aggregate:
        return 0.0
    healthy = sum(1 for c in aggregate if _is_healthy(c, now))
    return healthy / len(aggregate)


def has_overdue_cards(cards: Iterable[Flashcard], now: datetime) -> bool:
    """True if any SRS card is more than CRITICAL_OVERDUE_DAYS past due."""
    return any(days_overdue(c, now) > CRITICAL_OVERDUE_DAYS for c in srs_cards(cards))


def has_any_overdue_cards(cards: Iterable[Flashcard], now: datetime) -> bool:
    return any(days_overdue(c, now) > 0 for c in srs_cards(cards))


def retention_stats(cards: Iterable[Flashcard], now: datetime) -> RetentionStats:
    healthy = 0
    overdue = 0
    mastered = 0

    aggregate = srs_cards(cards)
    for card in aggregate:
        if card.study_state == StudyState.MASTERED:
            mastered += 1
            healthy += 1
        elif days_overdue(card, now) <= 0:
            healthy += 1
        else:
            overdue += 1

    total = len(aggregate)
    return RetentionStats(
        total=total,
        healthy=healthy,
        overdue=overdue,
        mastered=mastered,
        retention=healthy / total if total else 0.0,
    )
