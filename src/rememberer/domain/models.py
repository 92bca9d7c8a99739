"""
Domain models for spaced repetition and topic progress.

These are pure data structures with no I/O or external dependencies.
Defaults are applied once, in the constructors and ``from_dict`` helpers,
so callers never need to guess at missing fields.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any

from .constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL,
    DEFAULT_REPETITIONS,
    MIN_LEITNER_BOX,
)

logger = logging.getLogger(__name__)


class ReviewQuality(IntEnum):
    """Button pressed during a review."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3


class StudyState(str, Enum):
    NEW = "new"
    ACQUIRING = "acquiring"
    LEARNED = "learned"
    MASTERED = "mastered"


class FlashcardStatus(str, Enum):
    ACTIVE = "active"
    SKIPPED = "skipped"


class TopicState(str, Enum):
    """Derived knowledge state of a topic, weakest first."""

    UNDISCOVERED = "undiscovered"
    DISCOVERED = "discovered"
    LEARNING = "learning"
    STUDIED = "studied"
    MASTERED = "mastered"
    FADING = "fading"


# Older documents kept the study phase in ``status``.
_LEGACY_STATUS = {
    "new": StudyState.NEW,
    "learning": StudyState.ACQUIRING,
    "learned": StudyState.LEARNED,
}


def parse_timestamp(value: Any) -> datetime | None:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings and epoch milliseconds. Anything
    unreadable becomes None, which downstream code treats as "no date".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring unreadable timestamp: {value!r}")
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    logger.warning(f"Ignoring timestamp of unexpected type {type(value).__name__}")
    return None


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_enum(enum_cls, value: Any, fallback):
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} {value!r}; using {fallback.value!r}")
        return fallback


@dataclass(frozen=True)
class ScheduleResult:
    """
    Output of one SM-2 step.

    Attributes:
        next_review_date: When the card is next due.
        interval: Days until the next review (always >= 1).
        ease_factor: Updated ease multiplier (never below 1.3).
        repetitions: Consecutive successful reviews.
    """

    next_review_date: datetime
    interval: int
    ease_factor: float
    repetitions: int


@dataclass
class Flashcard:
    """
    One spaced-repetition unit generated from a content card.

    ``source_card_id`` points at the content card, whose ``deckId`` names
    the topic the flashcard belongs to.
    """

    id: str
    source_card_id: str = ""
    study_state: StudyState = StudyState.NEW
    leitner_box: int = MIN_LEITNER_BOX
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = DEFAULT_REPETITIONS
    interval: int = DEFAULT_INTERVAL
    next_review_date: datetime | None = None
    status: FlashcardStatus = FlashcardStatus.ACTIVE

    # Bookkeeping
    last_reviewed_at: datetime | None = None
    graduated_at: datetime | None = None

    # Content produced by generation; opaque to scheduling
    front: str | None = None
    back: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == FlashcardStatus.ACTIVE

    @property
    def in_srs(self) -> bool:
        """True once the card has entered spaced repetition."""
        return self.study_state in (StudyState.LEARNED, StudyState.MASTERED)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Flashcard":
        raw_status = data.get("status") or FlashcardStatus.ACTIVE.value
        raw_state = data.get("studyState")

        if raw_status in _LEGACY_STATUS:
            status = FlashcardStatus.ACTIVE
            study_state = (
                _parse_enum(StudyState, raw_state, _LEGACY_STATUS[raw_status])
                if raw_state
                else _LEGACY_STATUS[raw_status]
            )
        else:
            status = _parse_enum(FlashcardStatus, raw_status, FlashcardStatus.ACTIVE)
            study_state = (
                _parse_enum(StudyState, raw_state, StudyState.NEW) if raw_state else StudyState.NEW
            )

        next_review = data.get("nextReviewDate")
        if next_review is None:
            next_review = data.get("nextReview")

        return cls(
            id=str(data["id"]),
            source_card_id=data.get("sourceCardId") or "",
            study_state=study_state,
            leitner_box=int(data.get("leitnerBox") or MIN_LEITNER_BOX),
            ease_factor=float(data.get("easeFactor") or DEFAULT_EASE_FACTOR),
            repetitions=int(data.get("repetitions") or DEFAULT_REPETITIONS),
            interval=int(data.get("interval") or DEFAULT_INTERVAL),
            next_review_date=parse_timestamp(next_review),
            status=status,
            last_reviewed_at=parse_timestamp(data.get("lastReviewedAt")),
            graduated_at=parse_timestamp(data.get("graduatedAt")),
            front=data.get("front"),
            back=data.get("back"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sourceCardId": self.source_card_id,
            "studyState": self.study_state.value,
            "leitnerBox": self.leitner_box,
            "easeFactor": self.ease_factor,
            "repetitions": self.repetitions,
            "interval": self.interval,
            "nextReviewDate": format_timestamp(self.next_review_date),
            "status": self.status.value,
            "lastReviewedAt": format_timestamp(self.last_reviewed_at),
            "graduatedAt": format_timestamp(self.graduated_at),
            "front": self.front,
            "back": self.back,
        }


@dataclass
class TopicProgress:
    """
    Exploration progress for one topic.

    Attributes:
        captured_cards: Ids of content fragments the user has claimed.
        first_visited: When the topic was first opened, if ever.
    """

    captured_cards: list[str] = field(default_factory=list)
    first_visited: datetime | None = None

    @classmethod
    def empty(cls) -> "TopicProgress":
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TopicProgress":
        if not data:
            return cls.empty()
        captured = data.get("capturedCards") or []
        return cls(
            captured_cards=[str(c) for c in captured],
            first_visited=parse_timestamp(data.get("firstVisited")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "capturedCards": list(self.captured_cards),
            "firstVisited": format_timestamp(self.first_visited),
        }
