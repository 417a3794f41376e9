"""
Shared fixtures: a scheduler, fixed dates and a throwaway SQLite database
per test.
"""
from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

from macrobius_vocab.database import init_db, make_engine
from macrobius_vocab.scheduler import VocabularyReviewScheduler


@pytest.fixture
def scheduler():
    return VocabularyReviewScheduler()


@pytest.fixture
def day0():
    return date(2024, 3, 1)


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()
