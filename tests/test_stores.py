import json
from unittest import mock

import pytest
import requests

from conftest import make_record
from models.errors import LeaderboardFetchFailure, StoreError
from services.retry_policy import RetryPolicy
from services.scoring_service import LeaderboardLoader
from stores.json_file_store import JsonFileCompetitionStore
from stores.memory_store import InMemoryCompetitionStore
from stores.rest_store import RestCompetitionStore


def test_memory_store_upsert_overwrites(questions):
    store = InMemoryCompetitionStore(questions=questions)

    store.upsert_answer(make_record("u", "q1", is_correct=False))
    store.upsert_answer(make_record("u", "q1", is_correct=True))

    records = store.fetch_user_answers("u")
    assert len(records) == 1
    assert records[0].is_correct


def test_memory_store_joins_display_name(store):
    store.upsert_answer(make_record("alice", "q1"))
    store.upsert_answer(make_record("bob", "q1"))

    names = {r.user_id: r.display_name for r in store.fetch_answers(0, 10, only_correct=True)}

    assert names == {"alice": "Alice", "bob": None}


def _write_data(path):
    path.write_text(json.dumps({
        "questions": [
            {"id": "q2", "question_number": 2, "question_text": "T", "correct_answer": "-"},
            {"id": "q1", "question_number": 1, "question_text": "E", "correct_answer": "."},
        ],
        "answers": [],
        "profiles": [{"user_id": "u", "display_name": "User"}],
    }), encoding="utf-8")


def test_json_store_persists_upserts(tmp_path):
    path = tmp_path / "data.json"
    _write_data(path)
    store = JsonFileCompetitionStore(str(path))

    assert [q.question_id for q in store.list_questions()] == ["q1", "q2"]

    store.upsert_answer(make_record("u", "q1", seconds=4))
    reloaded = JsonFileCompetitionStore(str(path))

    records = reloaded.fetch_user_answers("u")
    assert len(records) == 1
    assert records[0].time_taken_seconds == 4
    assert reloaded.get_identity("u").display_name == "User"


def test_json_store_missing_file(tmp_path):
    with pytest.raises(StoreError):
        JsonFileCompetitionStore(str(tmp_path / "missing.json"))


def test_json_store_rolls_back_on_write_failure(tmp_path):
    path = tmp_path / "data.json"
    _write_data(path)
    store = JsonFileCompetitionStore(str(path))

    with mock.patch("stores.json_file_store.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(StoreError):
            store.upsert_answer(make_record("u", "q1"))

    assert store.fetch_user_answers("u") == []


def _response(payload, status=200):
    response = mock.Mock()
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(str(status))
    else:
        response.raise_for_status.return_value = None
    return response


def test_rest_store_reads_correct_answer_page():
    session = mock.Mock()
    session.headers = {}
    session.get.return_value = _response([
        {
            "user_id": "u1",
            "question_id": "q1",
            "user_answer": ".",
            "is_correct": True,
            "time_taken_seconds": 5,
            "answered_at": "2026-10-19T09:00:00+00:00",
            "profiles": {"display_name": "Alice"},
        }
    ])
    store = RestCompetitionStore("https://example.test/", api_key="key", session=session)

    records = store.fetch_answers(offset=100, limit=100, only_correct=True)

    assert records[0].display_name == "Alice"
    url = session.get.call_args.args[0]
    params = session.get.call_args.kwargs["params"]
    assert url == "https://example.test/rest/v1/user_answers"
    assert params["is_correct"] == "eq.true"
    assert params["offset"] == 100
    assert session.headers["apikey"] == "key"


def test_rest_store_upsert_merges_duplicates():
    session = mock.Mock()
    session.headers = {}
    session.post.return_value = _response(None, status=201)
    store = RestCompetitionStore("https://example.test", session=session)

    store.upsert_answer(make_record("u1", "q1"))

    kwargs = session.post.call_args.kwargs
    assert kwargs["params"] == {"on_conflict": "user_id,question_id"}
    assert "merge-duplicates" in kwargs["headers"]["Prefer"]
    assert kwargs["json"]["user_id"] == "u1"


def test_rest_store_wraps_request_errors():
    session = mock.Mock()
    session.headers = {}
    session.get.side_effect = requests.exceptions.ConnectionError("refused")
    session.post.return_value = _response(None, status=500)
    store = RestCompetitionStore("https://example.test", session=session)

    with pytest.raises(StoreError):
        store.list_questions()
    with pytest.raises(StoreError):
        store.upsert_answer(make_record("u1", "q1"))


def test_rest_store_missing_profile():
    session = mock.Mock()
    session.headers = {}
    session.get.return_value = _response([])
    store = RestCompetitionStore("https://example.test", session=session)

    assert store.get_identity("nobody") is None


def test_rest_store_malformed_rows_are_store_errors():
    session = mock.Mock()
    session.headers = {}
    session.get.return_value = _response([
        {"user_id": "u1", "question_id": "q1", "is_correct": True, "answered_at": None},
    ])
    store = RestCompetitionStore("https://example.test", session=session)

    with pytest.raises(StoreError):
        store.fetch_answers(offset=0, limit=100, only_correct=True)

    session.get.return_value = _response([{"user_answer": ".", "answered_at": "2026-10-19T09:00:00Z"}])
    with pytest.raises(StoreError):
        store.fetch_user_answers("u1")


def test_malformed_rows_end_as_leaderboard_failure():
    session = mock.Mock()
    session.headers = {}

    def get(url, params=None, timeout=None):
        if url.endswith("/questions"):
            return _response([
                {"id": "q1", "question_number": 1, "question_text": "E", "correct_answer": "."},
            ])
        return _response([{"user_id": "u1", "is_correct": True, "answered_at": None}])

    session.get.side_effect = get
    store = RestCompetitionStore("https://example.test", session=session)
    delays = []

    with pytest.raises(LeaderboardFetchFailure):
        LeaderboardLoader(store, retry_policy=RetryPolicy(sleep=delays.append)).load()

    assert delays == [1.0, 2.0, 4.0]


def test_json_store_malformed_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"questions": [{"question_number": 1}]}), encoding="utf-8")

    with pytest.raises(StoreError):
        JsonFileCompetitionStore(str(path))
