"""
Ports (interfaces) for study data persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class StudyStore(ABC):
    """
    Port for the key-value document holding all study data.

    The document is split into named sections (``flashcards``, ``cards``,
    ``voidProgress``, ``studyDeck``, ``meta``).

    Implementations:
        - JsonDocumentStore: One JSON file on disk, last write wins.
        - InMemoryStudyStore: Process-local dict, used for tests.
    """

    @abstractmethod
    def get_section(self, name: str, default: Any = None) -> Any:
        """
        Return a deep copy of a section.

        Args:
            name: Section name.
            default: Returned when the section is absent.
        """
        pass

    @abstractmethod
    def set_section(self, name: str, value: Any) -> None:
        """Replace a section wholesale."""
        pass

    @abstractmethod
    def update_section(self, name: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Atomically read, transform and write back one section.

        Args:
            name: Section name.
            fn: Receives the current value (or ``default``) and returns the new one.
            default: Starting value when the section is absent.

        Returns:
            The value written.
        """
        pass
