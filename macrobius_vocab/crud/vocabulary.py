from sqlalchemy.orm import Session
from macrobius_vocab.models import VocabularyItem
from macrobius_vocab import schemas
from typing import Iterable, List, Optional

def add_vocabulary_items(db: Session, items: Iterable[schemas.VocabularyItem]) -> int:
    """Insert vocabulary items, skipping ids that already exist. Returns the number added."""
    added = 0
    for item in items:
        if db.query(VocabularyItem).filter(VocabularyItem.id == item.item_id).first():
            continue
        db.add(VocabularyItem(
            id=item.item_id,
            text=item.text,
            gloss=item.gloss,
            source=item.source
        ))
        # Flush so duplicates within the same batch are seen by the query above
        db.flush()
        added += 1
    db.commit()
    return added

def get_vocabulary_item(db: Session, item_id: str) -> Optional[schemas.VocabularyItem]:
    """Get vocabulary item by ID"""
    row = db.query(VocabularyItem).filter(VocabularyItem.id == item_id).first()
    return _to_schema(row) if row else None

def get_vocabulary_items(db: Session, search: Optional[str] = None, limit: int = 100) -> List[schemas.VocabularyItem]:
    """List vocabulary items, optionally filtered by Latin text or gloss"""
    query = db.query(VocabularyItem)
    if search:
        pattern = f"%{search}%"
        query = query.filter(VocabularyItem.text.ilike(pattern) | VocabularyItem.gloss.ilike(pattern))
    return [_to_schema(row) for row in query.order_by(VocabularyItem.id).limit(limit).all()]

def _to_schema(row: VocabularyItem) -> schemas.VocabularyItem:
    return schemas.VocabularyItem(
        item_id=row.id,
        text=row.text,
        gloss=row.gloss,
        source=row.source
    )
