"""Centralized constants for rememberer.

Scheduling parameters and state thresholds live here so the scheduler,
the retention math and the classifier import from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_INTERVAL = 1
DEFAULT_REPETITIONS = 0

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
HARD_INTERVAL_MULTIPLIER = 1.2
GOOD_FIRST_INTERVAL = 1
GOOD_SECOND_INTERVAL = 6
EASY_FIRST_INTERVAL = 4
EASY_SECOND_INTERVAL = 10
EASY_BONUS = 1.3
EASY_EASE_BONUS = 0.15

# ---------- Leitner ----------
MIN_LEITNER_BOX = 1
MASTERED_LEITNER_BOX = 6

# ---------- Topic states ----------
MASTERY_RETENTION_THRESHOLD = 0.8
CRITICAL_OVERDUE_DAYS = 7  # days past due before a topic fades
CORE_FRAGMENTS_REQUIRED = 4

# ---------- Store sections ----------
SECTION_FLASHCARDS = "flashcards"
SECTION_CARDS = "cards"
SECTION_VOID_PROGRESS = "voidProgress"
SECTION_STUDY_DECK = "studyDeck"
SECTION_META = "meta"

SECONDS_PER_DAY = 86400
