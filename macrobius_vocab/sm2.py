from datetime import date, datetime, timedelta
from numbers import Integral
from typing import Any, Tuple

from macrobius_vocab.errors import InvalidQualityError

INITIAL_EASINESS = 2.5
MIN_EASINESS = 1.3
PASSING_QUALITY = 3
MIN_QUALITY = 0
MAX_QUALITY = 5


def as_date(value: date) -> date:
    """Truncate datetimes to their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


class SM2Algorithm:
    """
    SM-2 spaced repetition algorithm for calculating review intervals.
    Based on SuperMemo 2 algorithm by Piotr Wozniak.
    """

    @staticmethod
    def validate_quality(quality: Any) -> int:
        """Return quality unchanged if it is an integer grade 0-5, else raise InvalidQualityError"""
        # bool is an Integral subclass but is not a grade
        if isinstance(quality, bool) or not isinstance(quality, Integral):
            raise InvalidQualityError(quality)
        if quality < MIN_QUALITY or quality > MAX_QUALITY:
            raise InvalidQualityError(quality)
        return int(quality)

    @staticmethod
    def update_easiness(easiness_factor: float, quality: int) -> float:
        """Apply the SM-2 easiness update and the 1.3 floor."""
        new_ef = easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        return max(new_ef, MIN_EASINESS)

    @staticmethod
    def calculate_next_review(
        easiness_factor: float,
        interval: int,
        repetitions: int,
        quality: int,
        reference_date: date,
    ) -> Tuple[float, int, int, date]:
        """
        Calculate next review date and update SM-2 parameters.

        Args:
            easiness_factor: Current EF, never below 1.3
            interval: Current interval in days
            repetitions: Number of consecutive successful reviews
            quality: Response quality (0-5). 0=total blackout, 5=perfect
            reference_date: Date of the review the interval counts from

        Returns:
            (new_ef, new_interval, new_repetitions, next_review_date)
        """
        quality = SM2Algorithm.validate_quality(quality)

        new_ef = SM2Algorithm.update_easiness(easiness_factor, quality)

        # If quality < 3, reset repetitions (failed recall)
        if quality < PASSING_QUALITY:
            new_repetitions = 0
            new_interval = 1
        else:
            new_repetitions = repetitions + 1

            if new_repetitions == 1:
                new_interval = 1
            elif new_repetitions == 2:
                new_interval = 6
            else:
                new_interval = int(round(interval * new_ef))

        next_review_date = as_date(reference_date) + timedelta(days=new_interval)

        return new_ef, new_interval, new_repetitions, next_review_date

    @staticmethod
    def initialize_item(reference_date: date = None) -> Tuple[float, int, int, date]:
        """
        Initialize SM-2 parameters for an item seen for the first time.

        Args:
            reference_date: Optional reference date (defaults to today)

        Returns:
            (initial_ef, initial_interval, initial_reps, next_review_date)
        """
        base_date = as_date(reference_date) if reference_date else date.today()
        # Due immediately
        return INITIAL_EASINESS, 0, 0, base_date

    @staticmethod
    def is_due_for_review(next_review_date: date, as_of: date) -> bool:
        """Check if an item is due on the given date"""
        return as_date(as_of) >= next_review_date

    @staticmethod
    def get_days_overdue(next_review_date: date, as_of: date) -> int:
        """Calculate how many days overdue a review is"""
        as_of = as_date(as_of)
        if as_of < next_review_date:
            return 0
        return (as_of - next_review_date).days
