import enum
import logging
from datetime import date
from typing import Iterable, List, Mapping, Optional, Union

from macrobius_vocab.schemas import ReviewEntry, ReviewRecord
from macrobius_vocab.sm2 import PASSING_QUALITY, SM2Algorithm, as_date

logger = logging.getLogger(__name__)

Records = Union[Mapping[str, ReviewRecord], Iterable[ReviewRecord]]

# repetition_count from which an item counts as graduated to long intervals
REVIEW_THRESHOLD = 3


class ReviewState(str, enum.Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    # Only reported for the transition caused by a failing grade, never stored
    LAPSED = "lapsed"


def iter_records(records: Records) -> Iterable[ReviewRecord]:
    if isinstance(records, Mapping):
        return records.values()
    return records


class VocabularyReviewScheduler:
    """
    SM-2 scheduler over per-learner review records.

    Every method is a pure function of its arguments: records are frozen
    and each review returns a new record. Persisting the result is the
    caller's job (see ReviewService).
    """

    def new_record(self, item_id: str, as_of: Optional[date] = None) -> ReviewRecord:
        """First-exposure record for an item, due immediately."""
        ef, interval, reps, due_date = SM2Algorithm.initialize_item(reference_date=as_of)
        return ReviewRecord(
            item_id=item_id,
            easiness_factor=ef,
            repetition_count=reps,
            interval_days=interval,
            due_date=due_date,
        )

    def reset_item(self, item_id: str, as_of: Optional[date] = None) -> ReviewRecord:
        """Restart an item from scratch, discarding its history."""
        logger.info("Resetting review record for item %s", item_id)
        return self.new_record(item_id, as_of=as_of)

    def get_due_items(self, all_records: Records, as_of_date: date) -> List[str]:
        """
        Item ids due on as_of_date, most overdue first.

        Ties on due date are broken by item id so the order is stable.
        """
        as_of_date = as_date(as_of_date)
        due = [
            record for record in iter_records(all_records)
            if SM2Algorithm.is_due_for_review(record.due_date, as_of_date)
        ]
        due.sort(key=lambda record: (record.due_date, record.item_id))
        return [record.item_id for record in due]

    def record_review(
        self,
        record: ReviewRecord,
        quality: int,
        review_date: date,
        response_time_ms: Optional[int] = None,
    ) -> ReviewRecord:
        """
        Apply one graded review to a record.

        Args:
            record: Current state of the item (see new_record for first exposure)
            quality: Recall grade 0-5; anything else raises InvalidQualityError
            review_date: Day of the review
            response_time_ms: Optional answer latency kept in the history

        Returns:
            A new ReviewRecord; the given record is left untouched.
        """
        quality = SM2Algorithm.validate_quality(quality)
        review_date = as_date(review_date)

        if record.last_reviewed is not None and review_date < record.last_reviewed:
            logger.warning(
                "Review of %s dated %s precedes last review %s; treating as same-day review",
                record.item_id, review_date, record.last_reviewed,
            )
            review_date = record.last_reviewed

        new_ef, new_interval, new_reps, next_review = SM2Algorithm.calculate_next_review(
            record.easiness_factor,
            record.interval_days,
            record.repetition_count,
            quality,
            reference_date=review_date,
        )

        if quality < PASSING_QUALITY and record.repetition_count > 0:
            logger.debug("Lapse on %s after %d successful reviews", record.item_id, record.repetition_count)

        entry = ReviewEntry(quality=quality, reviewed_on=review_date, response_time_ms=response_time_ms)
        return record.model_copy(update={
            "easiness_factor": new_ef,
            "repetition_count": new_reps,
            "interval_days": new_interval,
            "last_reviewed": review_date,
            "due_date": next_review,
            "review_history": record.review_history + (entry,),
        })

    @staticmethod
    def state_of(record: Optional[ReviewRecord]) -> ReviewState:
        """Classify a stored record."""
        if record is None or record.last_reviewed is None:
            return ReviewState.NEW
        if record.repetition_count >= REVIEW_THRESHOLD:
            return ReviewState.REVIEW
        return ReviewState.LEARNING

    @staticmethod
    def review_state_after(quality: int, record: ReviewRecord) -> ReviewState:
        """State produced by grading a record, LAPSED for a failing grade."""
        quality = SM2Algorithm.validate_quality(quality)
        if quality < PASSING_QUALITY:
            return ReviewState.LAPSED
        if record.repetition_count + 1 >= REVIEW_THRESHOLD:
            return ReviewState.REVIEW
        return ReviewState.LEARNING
