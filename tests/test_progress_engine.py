import pytest

from conftest import make_record
from models.progress_view import Outcome
from models.question import Question
from services.progress_engine_service import ProgressEngineService


def _outcomes(records):
    return ProgressEngineService.build_outcomes(records)


@pytest.mark.parametrize("correct_prefix, expected", [(0, 0), (1, 1), (3, 3), (5, 4)])
def test_active_index_is_first_not_correct_question(questions, correct_prefix, expected):
    records = [make_record("u", q.question_id) for q in questions[:correct_prefix]]

    assert ProgressEngineService.compute_active_index(questions, _outcomes(records)) == expected


def test_incorrect_outcome_keeps_question_active(questions):
    records = [
        make_record("u", "q1"),
        make_record("u", "q2", is_correct=False),
        make_record("u", "q3"),
    ]

    assert ProgressEngineService.compute_active_index(questions, _outcomes(records)) == 1


def test_active_index_empty_question_list():
    assert ProgressEngineService.compute_active_index([], {}) is None
    view = ProgressEngineService.build_progress_view([], [])
    assert view.is_empty
    assert view.active_index is None
    assert not view.is_completed
    assert view.progress_percent == 0.0


def test_index_zero_always_accessible(questions):
    assert ProgressEngineService.can_access_index(0, questions, {})
    assert ProgressEngineService.can_access_index(0, [], {})
    wrong = _outcomes([make_record("u", "q1", is_correct=False)])
    assert ProgressEngineService.can_access_index(0, questions, wrong)


def test_gating_requires_previous_question_correct(questions):
    outcomes = _outcomes([
        make_record("u", "q1"),
        make_record("u", "q2", is_correct=False),
    ])

    assert ProgressEngineService.can_access_index(1, questions, outcomes)
    assert not ProgressEngineService.can_access_index(2, questions, outcomes)
    assert not ProgressEngineService.can_access_index(3, questions, outcomes)


def test_out_of_range_index_not_accessible(questions):
    all_correct = _outcomes([make_record("u", q.question_id) for q in questions])

    assert not ProgressEngineService.can_access_index(5, questions, all_correct)
    assert not ProgressEngineService.can_access_index(-1, questions, all_correct)


def test_scenario_three_correct_one_incorrect(questions):
    records = [
        make_record("u", "q1", seconds=10),
        make_record("u", "q2", seconds=8),
        make_record("u", "q3", seconds=12),
        make_record("u", "q4", is_correct=False),
    ]

    view = ProgressEngineService.build_progress_view(questions, records)

    assert view.active_index == 3
    assert view.completed_question_ids == frozenset({"q1", "q2", "q3"})
    assert view.progress_percent == pytest.approx(60.0)
    assert not ProgressEngineService.can_access_index(4, questions, view.outcomes)


def test_latest_record_wins_for_same_question(questions):
    records = [
        make_record("u", "q1", is_correct=True, minutes=5),
        make_record("u", "q1", is_correct=False, minutes=1),
    ]

    outcomes = _outcomes(records)

    assert outcomes["q1"].is_correct
    assert outcomes["q1"].timestamp == records[0].answered_at


def test_records_for_unknown_questions_are_ignored(questions):
    view = ProgressEngineService.build_progress_view(
        questions, [make_record("u", "deleted-question")]
    )

    assert view.outcomes == {}
    assert view.active_index == 0


def test_all_correct_is_completed_on_last_index(questions):
    view = ProgressEngineService.build_progress_view(
        questions, [make_record("u", q.question_id) for q in questions]
    )

    assert view.is_completed
    assert view.active_index == len(questions) - 1
    assert view.progress_percent == pytest.approx(100.0)


def test_order_questions_sorts_by_ordinal(questions):
    shuffled = [questions[2], questions[0], questions[4], questions[1], questions[3]]

    ordered = ProgressEngineService.order_questions(shuffled)

    assert [q.ordinal for q in ordered] == [1, 2, 3, 4, 5]


def test_order_questions_rejects_duplicate_ordinals():
    with pytest.raises(ValueError):
        ProgressEngineService.order_questions([
            Question("a", 1, "x", "."),
            Question("b", 1, "y", "-"),
        ])


def test_nearest_accessible_index_walks_back(questions):
    outcomes = {"q1": Outcome(".", True, make_record("u", "q1").answered_at)}

    assert ProgressEngineService.nearest_accessible_index(4, questions, outcomes) == 1
    assert ProgressEngineService.nearest_accessible_index(4, questions, {}) == 0
