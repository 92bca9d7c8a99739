# Application Package
from .classifier import classify_topic_state
from .retention import RetentionStats, days_overdue, has_overdue_cards, retention_score
from .review_service import ReviewService, due_queue
from .scheduler import format_time_until_review, schedule
from .state_service import TopicStateService
from .topic_index import TopicIndex

__all__ = [
    "schedule",
    "format_time_until_review",
    "classify_topic_state",
    "days_overdue",
    "retention_score",
    "has_overdue_cards",
    "RetentionStats",
    "due_queue",
    "ReviewService",
    "TopicStateService",
    "TopicIndex",
]
