from sqlalchemy.orm import Session
from macrobius_vocab.models import ReviewRecordRow, ReviewEvent
from macrobius_vocab.crud.learner import ensure_learner
from macrobius_vocab.schemas import ReviewRecord
from typing import Dict, Iterable

def get_review_payloads(db: Session, learner_id: str) -> Dict[str, dict]:
    """Raw stored fields per item, without validation"""
    rows = db.query(ReviewRecordRow).filter(
        ReviewRecordRow.learner_id == learner_id
    ).order_by(ReviewRecordRow.item_id).all()
    return {row.item_id: _row_payload(row) for row in rows}

def save_review_records(db: Session, learner_id: str, records: Iterable[ReviewRecord]):
    """
    Replace a learner's review records in a single transaction.
    
    Rows for items absent from `records` are removed. History events are
    appended when the stored history is a prefix of the new one and
    rewritten otherwise (e.g. after a reset).
    """
    records = {record.item_id: record for record in records}
    try:
        ensure_learner(db, learner_id)
        existing = {
            row.item_id: row
            for row in db.query(ReviewRecordRow).filter(ReviewRecordRow.learner_id == learner_id).all()
        }
        
        for item_id, row in existing.items():
            if item_id not in records:
                db.delete(row)
        
        for item_id, record in records.items():
            row = existing.get(item_id)
            if row is None:
                row = ReviewRecordRow(learner_id=learner_id, item_id=item_id)
                db.add(row)
            row.easiness_factor = record.easiness_factor
            row.repetition_count = record.repetition_count
            row.interval_days = record.interval_days
            row.last_reviewed = record.last_reviewed
            row.due_date = record.due_date
            _sync_events(row, record)
        
        db.commit()
    except Exception:
        db.rollback()
        raise

def _sync_events(row: ReviewRecordRow, record: ReviewRecord):
    stored = list(row.events)
    history = record.review_history
    is_prefix = len(stored) <= len(history) and all(
        event.quality == entry.quality and event.review_date == entry.reviewed_on
        for event, entry in zip(stored, history)
    )
    if is_prefix:
        start = len(stored)
    else:
        row.events.clear()
        start = 0
    for position in range(start, len(history)):
        entry = history[position]
        row.events.append(ReviewEvent(
            position=position,
            review_date=entry.reviewed_on,
            quality=entry.quality,
            response_time_ms=entry.response_time_ms
        ))

def _row_payload(row: ReviewRecordRow) -> dict:
    return {
        "easiness_factor": row.easiness_factor,
        "repetition_count": row.repetition_count,
        "interval_days": row.interval_days,
        "due_date": row.due_date,
        "last_reviewed": row.last_reviewed,
        "review_history": [
            {
                "performance": event.quality,
                "date": event.review_date,
                "response_time_ms": event.response_time_ms
            }
            for event in row.events
        ],
    }
