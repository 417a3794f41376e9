from typing import Any, Optional


class VocabularyReviewError(Exception):
    """Base class for scheduler and persistence errors."""


class InvalidQualityError(VocabularyReviewError, ValueError):
    """Review quality is not an integer grade between 0 and 5."""

    def __init__(self, quality: Any):
        self.quality = quality
        super().__init__(f"Quality must be an integer between 0 and 5, got {quality!r}")


class InvalidRecordError(VocabularyReviewError, ValueError):
    """A persisted review record could not be loaded as-is.

    The record is never repaired on load; callers decide whether to reset
    the item.
    """

    def __init__(self, message: str, item_id: Optional[str] = None):
        self.item_id = item_id
        if item_id is not None:
            message = f"Invalid review record for item '{item_id}': {message}"
        super().__init__(message)
