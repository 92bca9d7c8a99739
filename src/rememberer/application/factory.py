"""
Store Factory
Centralizes the logic for selecting the StudyStore implementation.
"""

import logging

from rememberer.application.config import AppConfig
from rememberer.domain.ports import StudyStore
from rememberer.infrastructure.adapters.store import InMemoryStudyStore, JsonDocumentStore

from .review_service import ReviewService
from .state_service import TopicStateService

logger = logging.getLogger(__name__)


def get_study_store(config: AppConfig) -> StudyStore:
    """
    Returns the StudyStore implementation selected by config.
    """
    if config.backend == "memory":
        logger.debug("Store: in-memory")
        return InMemoryStudyStore()

    logger.debug(f"Store: {config.data_file}")
    return JsonDocumentStore(config.data_file)


def get_services(config: AppConfig) -> tuple[ReviewService, TopicStateService]:
    """Both application services sharing one store."""
    store = get_study_store(config)
    return ReviewService(store), TopicStateService(store)
