from sqlalchemy import Column, Integer, String, Float, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from macrobius_vocab.database import Base

class ReviewRecordRow(Base):
    """SM-2 spaced repetition state per (learner, item)"""
    __tablename__ = "review_records"
    __table_args__ = (UniqueConstraint("learner_id", "item_id", name="uq_review_learner_item"),)
    
    id = Column(Integer, primary_key=True, index=True)
    learner_id = Column(String, ForeignKey("learners.id"), nullable=False, index=True)
    # Not a foreign key: an unknown item is simply a first exposure
    item_id = Column(String, nullable=False)
    
    # SM-2 algorithm fields
    easiness_factor = Column(Float, nullable=False, default=2.5)
    repetition_count = Column(Integer, nullable=False, default=0)
    interval_days = Column(Integer, nullable=False, default=0)
    
    last_reviewed = Column(Date)
    due_date = Column(Date, nullable=False)
    
    learner = relationship("Learner", back_populates="review_records")
    events = relationship(
        "ReviewEvent",
        back_populates="review_record",
        order_by="ReviewEvent.position",
        cascade="all, delete-orphan",
    )
