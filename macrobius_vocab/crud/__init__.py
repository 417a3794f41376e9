from macrobius_vocab.crud.learner import create_learner, get_learner, get_learners, ensure_learner
from macrobius_vocab.crud.vocabulary import (
    add_vocabulary_items,
    get_vocabulary_item,
    get_vocabulary_items
)
from macrobius_vocab.crud.review_record import (
    get_review_payloads,
    save_review_records
)

__all__ = [
    "create_learner",
    "get_learner",
    "get_learners",
    "ensure_learner",
    "add_vocabulary_items",
    "get_vocabulary_item",
    "get_vocabulary_items",
    "get_review_payloads",
    "save_review_records",
]
