"""Errors raised by rememberer.

Only caller mistakes and unreadable storage are exceptions; gaps in
flashcard or progress data are handled with fallback values instead.
"""


class RemembererError(Exception):
    """Base class for all rememberer errors."""


class InvalidQualityError(RemembererError, ValueError):
    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Review quality must be one of 0, 1, 2, 3 (got {quality!r})")


class FlashcardNotFoundError(RemembererError, KeyError):
    def __init__(self, flashcard_id: str):
        self.flashcard_id = flashcard_id
        super().__init__(f"Flashcard not found: {flashcard_id}")

    def __str__(self) -> str:
        return self.args[0]


class FlashcardSkippedError(RemembererError):
    def __init__(self, flashcard_id: str):
        self.flashcard_id = flashcard_id
        super().__init__(f"Flashcard {flashcard_id} is skipped and cannot be scheduled")


class StoreError(RemembererError):
    """The backing document could not be read or written."""
