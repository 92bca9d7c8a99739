"""
SM-2 scheduler.

A pure computation module: given a review rating and a card's current
scheduling triple, returns the next one. The clock is never read here;
``now`` is always passed in.
"""

import math
from datetime import datetime, timedelta

from rememberer.domain.constants import (
    AGAIN_EASE_PENALTY,
    EASY_BONUS,
    EASY_EASE_BONUS,
    EASY_FIRST_INTERVAL,
    EASY_SECOND_INTERVAL,
    GOOD_FIRST_INTERVAL,
    GOOD_SECOND_INTERVAL,
    HARD_EASE_PENALTY,
    HARD_INTERVAL_MULTIPLIER,
    MIN_EASE_FACTOR,
)
from rememberer.domain.exceptions import InvalidQualityError
from rememberer.domain.models import ReviewQuality, ScheduleResult


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (6.5 -> 7), unlike round()."""
    return math.floor(value + 0.5)


def validate_quality(quality: object) -> ReviewQuality:
    """
    Coerce a rating to ReviewQuality.

    Raises:
        InvalidQualityError: For anything other than the integers 0-3.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    try:
        return ReviewQuality(quality)
    except ValueError:
        raise InvalidQualityError(quality) from None


def schedule(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
    now: datetime,
) -> ScheduleResult:
    """
    Compute the next review parameters.

    Args:
        quality: 0=Again, 1=Hard, 2=Good, 3=Easy.
        repetitions: Current consecutive successful reviews.
        ease_factor: Current ease factor (>= 1.3).
        interval: Current interval in days.
        now: Review time.

    Returns:
        ScheduleResult with the new interval, ease factor, repetition count
        and due date (``now + interval`` days).
    """
    rating = validate_quality(quality)

    new_reps = repetitions
    new_interval = interval
    new_ef = ease_factor

    if rating == ReviewQuality.AGAIN:
        new_reps = 0
        new_interval = 1
        new_ef = max(MIN_EASE_FACTOR, ease_factor - AGAIN_EASE_PENALTY)

    elif rating == ReviewQuality.HARD:
        new_interval = max(1, round_half_up(interval * HARD_INTERVAL_MULTIPLIER))
        new_ef = max(MIN_EASE_FACTOR, ease_factor - HARD_EASE_PENALTY)

    elif rating == ReviewQuality.GOOD:
        new_reps = repetitions + 1
        if new_reps == 1:
            new_interval = GOOD_FIRST_INTERVAL
        elif new_reps == 2:
            new_interval = GOOD_SECOND_INTERVAL
        else:
            new_interval = round_half_up(interval * ease_factor)
        new_ef = max(MIN_EASE_FACTOR, ease_factor + (0.1 - (3 - rating) * 0.08))

    else:
        new_reps = repetitions + 1
        if new_reps == 1:
            new_interval = EASY_FIRST_INTERVAL
        elif new_reps == 2:
            new_interval = EASY_SECOND_INTERVAL
        else:
            new_interval = round_half_up(interval * ease_factor * EASY_BONUS)
        new_ef = ease_factor + EASY_EASE_BONUS

    return ScheduleResult(
        next_review_date=now + timedelta(days=new_interval),
        interval=new_interval,
        ease_factor=new_ef,
        repetitions=new_reps,
    )


def format_time_until_review(next_review: datetime, now: datetime) -> str:
    """
    Human-readable time until a card is due, e.g. "3 hours" or "2 days".
    """
    diff = (next_review - now).total_seconds()
    if diff <= 0:
        return "now"

    hours = math.floor(diff / 3600)
    days = math.floor(hours / 24)

    if days > 0:
        return "1 day" if days == 1 else f"{days} days"
    if hours > 0:
        return "1 hour" if hours == 1 else f"{hours} hours"
    minutes = math.floor(diff / 60)
    return "1 minute" if minutes <= 1 else f"{minutes} minutes"
