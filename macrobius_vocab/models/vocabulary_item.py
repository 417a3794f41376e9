from sqlalchemy import Column, String
from macrobius_vocab.database import Base

class VocabularyItem(Base):
    """Latin word or short phrase from the Macrobius corpus"""
    __tablename__ = "vocabulary_items"
    
    id = Column(String, primary_key=True, index=True)
    text = Column(String, nullable=False)
    gloss = Column(String)
    source = Column(String)  # passage reference
