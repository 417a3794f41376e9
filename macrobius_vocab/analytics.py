"""Read-only statistics over review records, used by progress dashboards."""
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from macrobius_vocab.scheduler import Records, VocabularyReviewScheduler, iter_records
from macrobius_vocab.schemas import LearnerProgress, ReviewEntry, ReviewRecord
from macrobius_vocab.sm2 import PASSING_QUALITY

# Fixed policy thresholds shared by every dashboard
KNOWN_MIN_REPETITIONS = 3
KNOWN_MIN_EASINESS = 2.0
DIFFICULT_MAX_EASINESS = 1.8
TREND_WINDOW = 5

MASTERED_MIN_REPETITIONS = 5
MASTERED_MIN_PERFORMANCE = 4.25  # 85% retention on the 0-5 scale
PERFORMANCE_TREND_LENGTH = 10


def is_known(record: ReviewRecord) -> bool:
    return (
        record.repetition_count >= KNOWN_MIN_REPETITIONS
        and record.easiness_factor > KNOWN_MIN_EASINESS
    )


def is_difficult(record: ReviewRecord) -> bool:
    return record.easiness_factor < DIFFICULT_MAX_EASINESS


def words_known(records: Records) -> List[str]:
    """Item ids the learner reliably recalls."""
    return sorted(r.item_id for r in iter_records(records) if is_known(r))


def words_difficult(records: Records) -> List[str]:
    """Item ids whose easiness factor has dropped into the difficult band."""
    return sorted(r.item_id for r in iter_records(records) if is_difficult(r))


def recent_performance(record: ReviewRecord, window: int = TREND_WINDOW) -> Optional[float]:
    """Mean quality of the last `window` reviews, None if never reviewed."""
    recent = record.review_history[-window:]
    if not recent:
        return None
    return sum(entry.quality for entry in recent) / len(recent)


def performance_scores(records: Records, window: int = TREND_WINDOW) -> Dict[str, float]:
    scores = {}
    for record in iter_records(records):
        score = recent_performance(record, window)
        if score is not None:
            scores[record.item_id] = score
    return scores


def review_log(records: Records) -> List[ReviewEntry]:
    """Every review across the learner's items, oldest first."""
    entries = [entry for record in iter_records(records) for entry in record.review_history]
    entries.sort(key=lambda entry: entry.reviewed_on)
    return entries


def accuracy(entries: Iterable[ReviewEntry]) -> Optional[float]:
    """Share of passing grades (quality >= 3), None without reviews."""
    qualities = [entry.quality for entry in entries]
    if not qualities:
        return None
    return sum(1 for q in qualities if q >= PASSING_QUALITY) / len(qualities)


def average_response_time(entries: Iterable[ReviewEntry]) -> Optional[float]:
    """Mean answer time in milliseconds over the reviews that were timed."""
    times = [entry.response_time_ms for entry in entries if entry.response_time_ms is not None]
    if not times:
        return None
    return sum(times) / len(times)


def performance_trend(records: Records, length: int = PERFORMANCE_TREND_LENGTH) -> List[int]:
    """Grades of the learner's most recent reviews, oldest first."""
    if length <= 0:
        return []
    return [entry.quality for entry in review_log(records)[-length:]]


def _review_days(records: Records) -> List[date]:
    return sorted({entry.reviewed_on for record in iter_records(records) for entry in record.review_history})


def current_streak(records: Records, as_of: date) -> int:
    """
    Consecutive days with at least one review, ending on as_of.

    A streak that ended yesterday still counts until as_of is over.
    """
    days = set(_review_days(records))
    day = as_of if as_of in days else as_of - timedelta(days=1)
    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def best_streak(records: Records) -> int:
    best = run = 0
    previous = None
    for day in _review_days(records):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def difficulty_buckets(records: Records) -> Dict[str, List[str]]:
    """Group items by easiness: advanced (<2.0), intermediate (<2.5), beginner."""
    buckets: Dict[str, List[str]] = {"beginner": [], "intermediate": [], "advanced": []}
    for record in iter_records(records):
        if record.easiness_factor < 2.0:
            buckets["advanced"].append(record.item_id)
        elif record.easiness_factor < 2.5:
            buckets["intermediate"].append(record.item_id)
        else:
            buckets["beginner"].append(record.item_id)
    for ids in buckets.values():
        ids.sort()
    return buckets


def mastery_level(record: ReviewRecord) -> str:
    """One of new, learning, reviewing, mastered."""
    if record.last_reviewed is None:
        return "new"
    if record.repetition_count < KNOWN_MIN_REPETITIONS:
        return "learning"
    score = recent_performance(record)
    if (
        record.repetition_count >= MASTERED_MIN_REPETITIONS
        and score is not None
        and score >= MASTERED_MIN_PERFORMANCE
    ):
        return "mastered"
    return "reviewing"


def summarize(records: Records, as_of: date) -> LearnerProgress:
    """Build the progress summary shown on a learner's dashboard."""
    records = list(iter_records(records))
    scheduler = VocabularyReviewScheduler()

    scores = performance_scores(records)
    log = review_log(records)
    average_easiness = None
    if records:
        average_easiness = sum(r.easiness_factor for r in records) / len(records)
    average_performance = None
    if scores:
        average_performance = sum(scores.values()) / len(scores)

    return LearnerProgress(
        as_of=as_of,
        total_items=len(records),
        due_items=len(scheduler.get_due_items(records, as_of)),
        new_items=sum(1 for r in records if r.last_reviewed is None),
        known_words=words_known(records),
        difficult_words=words_difficult(records),
        average_easiness=average_easiness,
        average_performance=average_performance,
        difficulty_buckets=difficulty_buckets(records),
        accuracy=accuracy(log),
        average_response_time_ms=average_response_time(log),
        performance_trend=performance_trend(records),
        current_streak=current_streak(records, as_of),
        best_streak=best_streak(records),
    )
