from datetime import timedelta

import pytest

from macrobius_vocab.errors import InvalidQualityError, InvalidRecordError
from macrobius_vocab.service import ReviewService
from macrobius_vocab.storage import InMemoryReviewStore, JsonFileReviewStore, SqlReviewStore


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def service(store):
    return ReviewService(store)


def test_first_review_creates_record_lazily(service, store, day0):
    record = service.review("marcus", "convivium", 5, day0)
    assert record.repetition_count == 1
    assert record.interval_days == 1
    assert store.load("marcus")["convivium"] == record


def test_invalid_quality_leaves_store_untouched(service, store, day0):
    service.review("marcus", "convivium", 4, day0)
    before = store.load_raw("marcus")
    with pytest.raises(InvalidQualityError):
        service.review("marcus", "convivium", 7, day0 + timedelta(days=1))
    with pytest.raises(InvalidQualityError):
        service.review("marcus", "somnium", -1, day0)
    assert store.load_raw("marcus") == before


def test_introduce_skips_known_items(service, day0):
    service.review("marcus", "convivium", 4, day0)
    added = service.introduce("marcus", ["convivium", "somnium", "somnium", "lux"], as_of=day0)
    assert added == ["somnium", "lux"]
    assert service.due_items("marcus", day0) == ["lux", "somnium"]


def test_due_items_follow_reviews(service, day0):
    service.introduce("marcus", ["a", "b"], as_of=day0)
    service.review("marcus", "a", 5, day0)
    assert service.due_items("marcus", day0) == ["b"]
    assert service.due_items("marcus", day0 + timedelta(days=1)) == ["b", "a"]


def test_reset_only_touches_one_item(service, day0):
    service.review("marcus", "convivium", 5, day0)
    service.review("marcus", "somnium", 5, day0)
    reset = service.reset("marcus", "convivium", as_of=day0 + timedelta(days=3))

    records = service.records("marcus")
    assert records["convivium"] == reset
    assert reset.review_history == ()
    assert reset.due_date == day0 + timedelta(days=3)
    assert records["somnium"].repetition_count == 1


def test_reset_recovers_malformed_record(day0):
    store = InMemoryReviewStore({
        "marcus": {"lux": {"easiness_factor": -1, "due_date": "2024-01-01"}},
    })
    service = ReviewService(store)
    with pytest.raises(InvalidRecordError):
        service.due_items("marcus", day0)

    service.reset("marcus", "lux", as_of=day0)
    assert service.due_items("marcus", day0) == ["lux"]


def test_progress(service, day0):
    for _ in range(3):
        service.review("marcus", "convivium", 5, day0)
    service.review("marcus", "somnium", 0, day0)
    service.review("marcus", "somnium", 0, day0)
    service.review("marcus", "somnium", 0, day0)

    summary = service.progress("marcus", day0)
    assert summary.total_items == 2
    assert summary.known_words == ["convivium"]
    assert summary.difficult_words == ["somnium"]


def test_export_and_import_blob(service, day0):
    service.review("marcus", "convivium", 4, day0)
    blob = service.export_blob("marcus")
    assert blob["convivium"]["review_history"] == [{"performance": 4, "date": "2024-03-01"}]

    assert service.import_blob("julia", blob) == 1
    assert service.records("julia") == service.records("marcus")


def test_import_rejects_malformed_blob(service, store):
    with pytest.raises(InvalidRecordError):
        service.import_blob("julia", {"lux": {"easiness_factor": 2.5}})
    assert store.load_raw("julia") == {}


@pytest.mark.parametrize("backend", ["json", "sql"])
def test_end_to_end_with_persistent_store(backend, tmp_path, session_factory, day0):
    if backend == "json":
        store = JsonFileReviewStore(tmp_path / "srs")
    else:
        store = SqlReviewStore(session_factory)
    service = ReviewService(store)

    service.review("marcus", "convivium", 5, day0)
    service.review("marcus", "convivium", 5, day0 + timedelta(days=1))
    record = service.review("marcus", "convivium", 2, day0 + timedelta(days=7))

    # A fresh service over the same storage sees the same state
    reloaded = ReviewService(store).records("marcus")["convivium"]
    assert reloaded == record
    assert (record.repetition_count, record.interval_days) == (0, 1)
    assert 1.3 <= record.easiness_factor < 2.7
    assert [e.quality for e in reloaded.review_history] == [5, 5, 2]
