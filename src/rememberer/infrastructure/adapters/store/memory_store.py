"""
In-memory StudyStore.

Same contract as the JSON store without touching disk. Used by tests and
by ``backend = "memory"`` for throwaway sessions.
"""

import copy
import threading
from collections.abc import Callable
from typing import Any

from rememberer.domain.constants import (
    SECTION_CARDS,
    SECTION_FLASHCARDS,
    SECTION_META,
    SECTION_STUDY_DECK,
    SECTION_VOID_PROGRESS,
)
from rememberer.domain.ports import StudyStore


def default_document() -> dict[str, Any]:
    """A fresh, empty study document."""
    return {
        SECTION_CARDS: {},
        SECTION_FLASHCARDS: {},
        SECTION_VOID_PROGRESS: {"topicProgress": {}, "exploredTopics": []},
        SECTION_STUDY_DECK: [],
        SECTION_META: {"version": 1, "lastUpdated": None},
    }


class InMemoryStudyStore(StudyStore):
    def __init__(self, document: dict[str, Any] | None = None):
        self._doc = copy.deepcopy(document) if document is not None else default_document()
        self._lock = threading.RLock()

    def get_section(self, name: str, default: Any = None) -> Any:
        with self._lock:
            if name not in self._doc:
                return copy.deepcopy(default)
            return copy.deepcopy(self._doc[name])

    def set_section(self, name: str, value: Any) -> None:
        with self._lock:
            self._doc[name] = copy.deepcopy(value)

    def update_section(self, name: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            current = self.get_section(name, default)
            updated = fn(current)
            self.set_section(name, updated)
            return copy.deepcopy(updated)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._doc)
