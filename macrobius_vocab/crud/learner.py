from sqlalchemy.orm import Session
from macrobius_vocab.models import Learner
from macrobius_vocab.schemas import LearnerCreate
from typing import List, Optional

def create_learner(db: Session, learner: LearnerCreate) -> Learner:
    """Create a new learner"""
    db_learner = Learner(
        id=learner.learner_id,
        name=learner.name,
        language=learner.language
    )
    db.add(db_learner)
    db.commit()
    db.refresh(db_learner)
    return db_learner

def get_learner(db: Session, learner_id: str) -> Optional[Learner]:
    """Get learner by ID"""
    return db.query(Learner).filter(Learner.id == learner_id).first()

def get_learners(db: Session) -> List[Learner]:
    """Get all learners ordered by ID"""
    return db.query(Learner).order_by(Learner.id).all()

def ensure_learner(db: Session, learner_id: str) -> Learner:
    """Get a learner, adding a placeholder row (not committed) if it does not exist"""
    db_learner = get_learner(db, learner_id)
    if db_learner is None:
        db_learner = Learner(id=learner_id, name=learner_id)
        db.add(db_learner)
    return db_learner
