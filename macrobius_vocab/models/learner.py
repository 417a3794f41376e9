from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from macrobius_vocab.database import Base

class Learner(Base):
    """A learner whose vocabulary reviews are tracked"""
    __tablename__ = "learners"
    
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    language = Column(String, nullable=False, default="en")  # de, en, la
    created_at = Column(DateTime, default=datetime.utcnow)
    
    review_records = relationship(
        "ReviewRecordRow", back_populates="learner", cascade="all, delete-orphan"
    )
