from datetime import date, timedelta

import pytest

from macrobius_vocab import analytics
from macrobius_vocab.schemas import ReviewEntry, ReviewRecord

DAY = date(2024, 6, 1)


def record(item_id, ef=2.5, reps=0, qualities=(), due=DAY):
    history = tuple(
        ReviewEntry(quality=q, reviewed_on=DAY - timedelta(days=len(qualities) - i))
        for i, q in enumerate(qualities)
    )
    return ReviewRecord(
        item_id=item_id,
        easiness_factor=ef,
        repetition_count=reps,
        due_date=due,
        last_reviewed=history[-1].reviewed_on if history else None,
        review_history=history,
    )


def test_known_words_need_streak_and_easiness():
    records = [
        record("known", ef=2.3, reps=3, qualities=(4, 4, 5)),
        record("short_streak", ef=2.6, reps=2, qualities=(5, 5)),
        record("ef_exactly_two", ef=2.0, reps=6, qualities=(3,) * 6),
    ]
    assert analytics.words_known(records) == ["known"]


def test_difficult_words_below_threshold():
    records = {
        "hard": record("hard", ef=1.3),
        "edge": record("edge", ef=1.8),
        "fine": record("fine", ef=2.5),
    }
    assert analytics.words_difficult(records) == ["hard"]


def test_recent_performance_uses_last_five():
    r = record("x", qualities=(0, 0, 5, 5, 5, 4, 4))
    assert analytics.recent_performance(r) == pytest.approx(4.6)
    assert analytics.recent_performance(record("y", qualities=(2, 4))) == 3.0
    assert analytics.recent_performance(record("new")) is None


def test_performance_scores_skip_unreviewed():
    scores = analytics.performance_scores([record("a", qualities=(5,)), record("b")])
    assert scores == {"a": 5.0}


def test_difficulty_buckets():
    records = [record("a", ef=1.5), record("b", ef=2.2), record("c", ef=2.5), record("d", ef=2.9)]
    assert analytics.difficulty_buckets(records) == {
        "advanced": ["a"],
        "intermediate": ["b"],
        "beginner": ["c", "d"],
    }


def test_mastery_levels():
    assert analytics.mastery_level(record("a")) == "new"
    assert analytics.mastery_level(record("b", reps=2, qualities=(4, 4))) == "learning"
    assert analytics.mastery_level(record("c", reps=3, qualities=(4, 4, 4))) == "reviewing"
    assert analytics.mastery_level(record("d", reps=5, qualities=(4, 5, 4, 5, 4))) == "mastered"
    assert analytics.mastery_level(record("e", reps=5, qualities=(3, 3, 4, 4, 4))) == "reviewing"


def test_summarize():
    records = [
        record("due_known", ef=2.4, reps=4, qualities=(4, 4, 4, 4), due=DAY - timedelta(days=2)),
        record("hard", ef=1.4, reps=0, qualities=(1, 2), due=DAY),
        record("later", ef=2.5, reps=1, qualities=(5,), due=DAY + timedelta(days=3)),
        record("fresh"),
    ]
    summary = analytics.summarize(records, DAY)
    assert summary.total_items == 4
    assert summary.due_items == 3
    assert summary.new_items == 1
    assert summary.known_words == ["due_known"]
    assert summary.difficult_words == ["hard"]
    assert summary.average_easiness == pytest.approx((2.4 + 1.4 + 2.5 + 2.5) / 4)
    assert summary.average_performance == pytest.approx((4.0 + 1.5 + 5.0) / 3)


def test_summarize_empty():
    summary = analytics.summarize({}, DAY)
    assert summary.total_items == 0
    assert summary.average_easiness is None
    assert summary.average_performance is None
    assert summary.accuracy is None
    assert summary.current_streak == 0
    assert summary.performance_trend == []


def entry(q, day, ms=None):
    return ReviewEntry(quality=q, reviewed_on=day, response_time_ms=ms)


def with_history(item_id, *entries):
    return ReviewRecord(
        item_id=item_id,
        due_date=DAY,
        last_reviewed=entries[-1].reviewed_on if entries else None,
        review_history=entries,
    )


def test_review_log_is_oldest_first_across_items():
    a = with_history("a", entry(5, DAY - timedelta(days=3)), entry(4, DAY))
    b = with_history("b", entry(1, DAY - timedelta(days=1)))
    assert [e.quality for e in analytics.review_log([a, b])] == [5, 1, 4]


def test_accuracy_counts_passing_grades():
    entries = [entry(q, DAY) for q in (5, 3, 2, 0)]
    assert analytics.accuracy(entries) == 0.5
    assert analytics.accuracy([]) is None


def test_average_response_time_ignores_untimed_reviews():
    entries = [entry(4, DAY, 1000), entry(3, DAY), entry(5, DAY, 2000)]
    assert analytics.average_response_time(entries) == 1500
    assert analytics.average_response_time([entry(4, DAY)]) is None


def test_performance_trend_keeps_last_grades():
    a = with_history("a", *(entry(q, DAY - timedelta(days=12 - i)) for i, q in enumerate(range(6))))
    b = with_history("b", *(entry(5, DAY - timedelta(days=5 - i)) for i in range(6)))
    trend = analytics.performance_trend([a, b])
    assert len(trend) == 10
    assert trend[-6:] == [5] * 6
    assert analytics.performance_trend([a], length=3) == [3, 4, 5]


def test_streaks():
    days = [DAY - timedelta(days=n) for n in (0, 1, 2, 5, 6, 7, 8)]
    records = [
        with_history("a", *(entry(4, d) for d in sorted(days[:4]))),
        with_history("b", *(entry(3, d) for d in sorted(days[4:]))),
    ]
    assert analytics.current_streak(records, DAY) == 3
    # Not reviewed yet today: yesterday's streak still stands
    assert analytics.current_streak(records, DAY + timedelta(days=1)) == 3
    assert analytics.current_streak(records, DAY + timedelta(days=2)) == 0
    assert analytics.best_streak(records) == 4
    assert analytics.current_streak([], DAY) == 0
    assert analytics.best_streak([]) == 0


def test_summarize_session_statistics():
    records = [
        with_history("a", entry(5, DAY - timedelta(days=1), 800), entry(2, DAY, 1200)),
        with_history("b", entry(4, DAY)),
        record("c", ef=1.5),
    ]
    summary = analytics.summarize(records, DAY)
    assert summary.accuracy == pytest.approx(2 / 3)
    assert summary.average_response_time_ms == 1000
    assert summary.performance_trend[0] == 5
    assert sorted(summary.performance_trend[1:]) == [2, 4]
    assert summary.current_streak == 2
    assert summary.best_streak == 2
    assert summary.difficulty_buckets == {"beginner": ["a", "b"], "intermediate": [], "advanced": ["c"]}
