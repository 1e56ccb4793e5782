import threading

import pytest

from conftest import FlakyStore, make_record
from models.errors import LeaderboardFetchFailure, RetryCancelled, StoreError
from services.retry_policy import RetryPolicy
from services.scoring_service import LeaderboardLoader, ScoringService


def test_scenario_sixty_percent_score():
    records = [
        make_record("u", "q1", seconds=10),
        make_record("u", "q2", seconds=8),
        make_record("u", "q3", seconds=12),
        make_record("u", "q4", is_correct=False, seconds=30),
    ]

    entries = ScoringService.compute_leaderboard(records, total_question_count=5)

    assert len(entries) == 1
    assert entries[0].total_score_percent == pytest.approx(60.0)
    assert entries[0].total_time_seconds == 30
    assert entries[0].correct_count == 3


def test_duplicate_correct_answers_count_once():
    records = [
        make_record("u", "q1", seconds=10, minutes=0),
        make_record("u", "q1", seconds=99, minutes=3),
        make_record("u", "q2", seconds=5, minutes=1),
    ]

    entry = ScoringService.compute_leaderboard(records, total_question_count=5)[0]

    assert entry.correct_count == 2
    assert entry.total_score_percent == pytest.approx(40.0)
    # earliest correct record per question is the one counted
    assert entry.total_time_seconds == 15


def test_user_without_correct_answers_is_excluded():
    records = [
        make_record("alice", "q1"),
        make_record("bob", "q1", is_correct=False),
    ]

    entries = ScoringService.compute_leaderboard(records, total_question_count=5)

    assert [e.user_id for e in entries] == ["alice"]


def test_empty_log_gives_empty_leaderboard():
    assert ScoringService.compute_leaderboard([], total_question_count=5) == []


def test_score_descending_then_time_ascending():
    records = [
        make_record("slow", "q1", seconds=50),
        make_record("slow", "q2", seconds=50),
        make_record("fast", "q1", seconds=5),
        make_record("fast", "q2", seconds=5),
        make_record("top", "q1", seconds=90),
        make_record("top", "q2", seconds=90),
        make_record("top", "q3", seconds=90),
    ]

    entries = ScoringService.compute_leaderboard(records, total_question_count=5)

    assert [e.user_id for e in entries] == ["top", "fast", "slow"]
    assert [e.rank for e in entries] == [1, 2, 3]


def test_equal_score_and_time_have_distinct_positional_ranks():
    records = [
        make_record("late", "q1", seconds=10, minutes=9),
        make_record("early", "q1", seconds=10, minutes=2),
        make_record("same-b", "q2", seconds=10, minutes=4),
        make_record("same-a", "q2", seconds=10, minutes=4),
    ]

    entries = ScoringService.compute_leaderboard(records, total_question_count=5)

    assert [e.user_id for e in entries] == ["early", "same-a", "same-b", "late"]
    assert [e.rank for e in entries] == [1, 2, 3, 4]


def test_leaderboard_truncated_to_limit():
    records = [make_record(f"user{i:02d}", "q1", seconds=i) for i in range(15)]

    entries = ScoringService.compute_leaderboard(records, total_question_count=5)

    assert len(entries) == 10
    assert entries[0].user_id == "user00"
    assert entries[-1].rank == 10


def test_display_name_falls_back_to_anonymous():
    records = [
        make_record("alice", "q1", display_name="Alice"),
        make_record("ghost", "q1", seconds=20),
    ]

    names = [e.display_name for e in ScoringService.compute_leaderboard(records, 5)]

    assert names == ["Alice", "Anonymous"]


def test_invalid_question_count():
    with pytest.raises(ValueError):
        ScoringService.compute_leaderboard([make_record("u", "q1")], total_question_count=0)


def _seed(store, users=3):
    for i in range(users):
        for q in ("q1", "q2"):
            store.upsert_answer(make_record(f"user{i}", q, seconds=10 + i))


def test_loader_retries_then_matches_single_call(store):
    _seed(store)
    expected = LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=lambda d: None)).load()

    store.fail_reads = 2
    delays = []
    entries = LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=delays.append)).load()

    assert entries == expected
    assert delays == [1.0, 2.0]


def test_loader_gives_up_after_three_retries(store):
    _seed(store)
    store.fail_reads = 10
    delays = []

    with pytest.raises(LeaderboardFetchFailure):
        LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=delays.append)).load()

    assert delays == [1.0, 2.0, 4.0]
    assert store.read_calls == 4


def test_loader_proceeds_with_partial_pages(questions):
    store = FlakyStore(questions=questions, fail_pages_after=2)
    for i in range(5):
        store.upsert_answer(make_record(f"user{i}", "q1", seconds=i))

    entries = LeaderboardLoader(store, page_size=2).load()

    assert [e.user_id for e in entries] == ["user0", "user1"]


def test_loader_close_cancels_pending_retries(store):
    _seed(store)
    store.fail_reads = 10
    loader = None

    def sleep(delay):
        loader.close()

    loader = LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=sleep))

    with pytest.raises(RetryCancelled):
        loader.load()

    assert store.read_calls == 1
    assert loader.closed


def test_retry_policy_waits_on_cancel_event():
    event = threading.Event()
    calls = []

    def operation():
        calls.append(1)
        event.set()
        raise StoreError("down")

    with pytest.raises(RetryCancelled):
        RetryPolicy(base_delay=30.0).run(operation, cancel_event=event)

    assert len(calls) == 1


def test_retry_policy_does_not_retry_other_errors():
    delays = []

    def operation():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        RetryPolicy(sleep=delays.append).run(operation)

    assert delays == []


def test_loader_reports_question_count_used_for_scoring(store):
    _seed(store)
    store.fail_question_reads = 1
    loader = LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=lambda d: None))

    assert loader.total_questions is None
    entries = loader.load()

    assert loader.total_questions == 5
    assert entries[0].total_score_percent == pytest.approx(40.0)
    assert store.question_read_calls == 2
