import logging
from datetime import date
from typing import Any, Dict, List, Optional

from macrobius_vocab import analytics
from macrobius_vocab.scheduler import VocabularyReviewScheduler
from macrobius_vocab.schemas import LearnerProgress, ReviewRecord, records_from_blob, records_to_blob
from macrobius_vocab.sm2 import SM2Algorithm
from macrobius_vocab.storage import ReviewStore

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Runs review sessions for learners against an injected ReviewStore.

    Each operation loads the learner's blob, applies the scheduler and
    saves the whole blob back. Errors from the scheduler or the store
    propagate unchanged and nothing is saved.
    """

    def __init__(self, store: ReviewStore, scheduler: Optional[VocabularyReviewScheduler] = None):
        self.store = store
        self.scheduler = scheduler or VocabularyReviewScheduler()

    def records(self, learner_id: str) -> Dict[str, ReviewRecord]:
        return self.store.load(learner_id)

    def due_items(self, learner_id: str, as_of: date) -> List[str]:
        return self.scheduler.get_due_items(self.store.load(learner_id), as_of)

    def introduce(self, learner_id: str, item_ids: List[str], as_of: Optional[date] = None) -> List[str]:
        """Create first-exposure records for items the learner has not seen yet."""
        records = self.store.load(learner_id)
        added = [item_id for item_id in dict.fromkeys(item_ids) if item_id not in records]
        for item_id in added:
            records[item_id] = self.scheduler.new_record(item_id, as_of=as_of)
        if added:
            self.store.save(learner_id, records)
        return added

    def review(
        self,
        learner_id: str,
        item_id: str,
        quality: int,
        review_date: date,
        response_time_ms: Optional[int] = None,
    ) -> ReviewRecord:
        """Grade one item and persist the updated record."""
        # Reject bad grades before touching storage
        SM2Algorithm.validate_quality(quality)

        records = self.store.load(learner_id)
        current = records.get(item_id) or self.scheduler.new_record(item_id, as_of=review_date)
        updated = self.scheduler.record_review(current, quality, review_date, response_time_ms=response_time_ms)
        records[item_id] = updated
        self.store.save(learner_id, records)

        logger.info(
            "Learner %s reviewed %s with quality %d: next review %s (interval %d, EF %.2f)",
            learner_id, item_id, quality, updated.due_date, updated.interval_days, updated.easiness_factor,
        )
        return updated

    def reset(self, learner_id: str, item_id: str, as_of: Optional[date] = None) -> ReviewRecord:
        """
        Restart one item; the learner's other records are left as they are.

        The item's stored entry is not validated, so a malformed record can
        be recovered this way. Other malformed entries still raise.
        """
        raw = self.store.load_raw(learner_id)
        raw.pop(item_id, None)
        records = records_from_blob(raw)
        records[item_id] = self.scheduler.reset_item(item_id, as_of=as_of)
        self.store.save(learner_id, records)
        return records[item_id]

    def progress(self, learner_id: str, as_of: date) -> LearnerProgress:
        return analytics.summarize(self.store.load(learner_id), as_of)

    def export_blob(self, learner_id: str) -> Dict[str, Any]:
        """The learner's records in the persisted JSON shape."""
        return records_to_blob(self.store.load(learner_id).values())

    def import_blob(self, learner_id: str, blob: Any) -> int:
        """Replace the learner's records with a validated blob. Returns the record count."""
        records = records_from_blob(blob)
        self.store.save(learner_id, records)
        logger.info("Imported %d review records for %s", len(records), learner_id)
        return len(records)
