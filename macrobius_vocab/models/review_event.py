from sqlalchemy import Column, Integer, Date, ForeignKey
from sqlalchemy.orm import relationship
from macrobius_vocab.database import Base

class ReviewEvent(Base):
    """One graded review in a record's history"""
    __tablename__ = "review_events"
    
    id = Column(Integer, primary_key=True, index=True)
    review_record_id = Column(Integer, ForeignKey("review_records.id"), nullable=False)
    position = Column(Integer, nullable=False)  # order within the history
    
    review_date = Column(Date, nullable=False)
    quality = Column(Integer, nullable=False)  # 0-5
    response_time_ms = Column(Integer)
    
    review_record = relationship("ReviewRecordRow", back_populates="events")
