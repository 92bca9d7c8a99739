# Domain Package
from .models import (
    Flashcard,
    FlashcardStatus,
    ReviewQuality,
    ScheduleResult,
    StudyState,
    TopicProgress,
    TopicState,
)
from .ports import StudyStore

__all__ = [
    "Flashcard",
    "FlashcardStatus",
    "ReviewQuality",
    "ScheduleResult",
    "StudyState",
    "TopicProgress",
    "TopicState",
    "StudyStore",
]
