from pydantic import BaseModel, Field, ValidationError
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from datetime import date

from macrobius_vocab.errors import InvalidRecordError
from macrobius_vocab.sm2 import INITIAL_EASINESS, MIN_EASINESS, MIN_QUALITY, MAX_QUALITY

LANGUAGES = ("de", "en", "la")

# Keys a persisted record must carry; the model defaults only apply to new records
STORED_FIELDS = ("easiness_factor", "repetition_count", "interval_days", "due_date", "review_history")


class LearnerCreate(BaseModel):
    """Schema for creating a learner"""
    learner_id: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    name: str
    language: str = Field(default="en", pattern=r"^(de|en|la)$")


class VocabularyItem(BaseModel):
    """A single learnable Latin word or short phrase"""
    item_id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    gloss: Optional[str] = None
    source: Optional[str] = None  # passage reference, e.g. "Sat. 1.2.3"

    class Config:
        frozen = True
        from_attributes = True


class ReviewEntry(BaseModel):
    """One graded review, stored as {"performance": q, "date": ...}"""
    quality: int = Field(ge=MIN_QUALITY, le=MAX_QUALITY, alias="performance", strict=True)
    reviewed_on: date = Field(alias="date")
    response_time_ms: Optional[int] = Field(default=None, ge=0, strict=True)

    class Config:
        frozen = True
        populate_by_name = True


class ReviewRecord(BaseModel):
    """Spaced-repetition state for one (learner, item) pair"""
    item_id: str = Field(min_length=1)
    easiness_factor: float = Field(default=INITIAL_EASINESS, ge=MIN_EASINESS, strict=True)
    repetition_count: int = Field(default=0, ge=0, strict=True)
    interval_days: int = Field(default=0, ge=0, strict=True)
    due_date: date
    last_reviewed: Optional[date] = None
    review_history: Tuple[ReviewEntry, ...] = ()

    class Config:
        frozen = True
        populate_by_name = True

    def to_storage(self) -> Dict[str, Any]:
        """Serialize to the persisted blob shape (item_id is the blob key)."""
        return self.model_dump(
            mode="json", by_alias=True, exclude={"item_id"}, exclude_none=True
        )


class LearnerProgress(BaseModel):
    """Dashboard summary computed from a learner's review records"""
    as_of: date
    total_items: int
    due_items: int
    new_items: int
    known_words: List[str]
    difficult_words: List[str]
    average_easiness: Optional[float] = None
    average_performance: Optional[float] = None
    difficulty_buckets: Dict[str, List[str]] = Field(default_factory=dict)
    accuracy: Optional[float] = None  # share of passing grades, 0-1
    average_response_time_ms: Optional[float] = None
    performance_trend: List[int] = Field(default_factory=list)
    current_streak: int = 0
    best_streak: int = 0


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "record"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def record_from_storage(item_id: str, payload: Any) -> ReviewRecord:
    """Load one persisted record, raising InvalidRecordError if it is malformed."""
    if not isinstance(payload, Mapping):
        raise InvalidRecordError(f"expected an object, got {type(payload).__name__}", item_id)
    missing = [name for name in STORED_FIELDS if name not in payload]
    if missing:
        raise InvalidRecordError(f"missing required field(s): {', '.join(missing)}", item_id)
    try:
        return ReviewRecord.model_validate({**payload, "item_id": item_id})
    except ValidationError as exc:
        raise InvalidRecordError(_describe(exc), item_id) from exc


def records_from_blob(blob: Any) -> Dict[str, ReviewRecord]:
    """Load a whole per-learner blob ({item_id: record})."""
    if blob is None:
        return {}
    if not isinstance(blob, Mapping):
        raise InvalidRecordError(f"review blob must be an object, got {type(blob).__name__}")
    return {str(item_id): record_from_storage(str(item_id), payload) for item_id, payload in blob.items()}


def records_to_blob(records: Iterable[ReviewRecord]) -> Dict[str, Dict[str, Any]]:
    """Serialize records to the persisted blob shape."""
    return {record.item_id: record.to_storage() for record in records}
