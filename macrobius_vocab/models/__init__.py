from macrobius_vocab.models.learner import Learner
from macrobius_vocab.models.vocabulary_item import VocabularyItem
from macrobius_vocab.models.review_record import ReviewRecordRow
from macrobius_vocab.models.review_event import ReviewEvent

__all__ = [
    "Learner",
    "VocabularyItem",
    "ReviewRecordRow",
    "ReviewEvent",
]
