"""
Tests for PracticeSession

Tests:
1. READY -> SHOWING -> FINISHED flow
2. Answer scoring and wrong-example collection
3. Timeouts, invalid input and retry runs

Usage:
    pytest tests/test_session.py
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from abacus.session import (
    PracticeSession,
    SessionResults,
    SessionState,
    display_steps,
    parse_answer,
)

EXAMPLES = [
    {"start": 0, "steps": ["+3", "+1"], "answer": 4},
    {"start": 0, "steps": ["+2", "-1"], "answer": 1},
    {"start": 0, "steps": ["+1", {"step": "+4", "isBrother": True, "brotherN": 4,
                                  "formula": [{"op": "+", "val": 5}, {"op": "-", "val": 1}]}],
     "answer": 5},
]


def _source():
    queue = iter(EXAMPLES)
    return lambda: next(queue)


def test_full_run():
    finished = []
    session = PracticeSession(_source(), 3, on_finish=finished.append)
    assert session.state == SessionState.READY

    assert session.next_example() == EXAMPLES[0]
    assert session.state == SessionState.SHOWING
    result = session.submit_answer("4")
    assert result.is_correct
    assert session.state == SessionState.READY

    session.next_example()
    result = session.submit_answer(" 7 ")
    assert not result.is_correct
    assert (result.expected, result.given) == (1, 7)

    session.next_example()
    session.submit_answer(5)

    assert session.state == SessionState.FINISHED
    assert session.next_example() is None
    assert len(finished) == 1
    results = finished[0]
    assert results.total == 3
    assert results.success == 2
    assert results.wrong_examples == [{**EXAMPLES[1], "userAnswer": 7}]
    assert session.stats.percent_correct == 67


def test_invalid_answer_is_not_counted():
    session = PracticeSession(_source(), 2)
    session.next_example()
    with pytest.raises(ValueError):
        session.submit_answer("abc")
    with pytest.raises(ValueError):
        session.submit_answer("")
    assert session.completed == 0
    assert session.state == SessionState.SHOWING


def test_submit_without_example():
    session = PracticeSession(_source(), 2)
    with pytest.raises(RuntimeError):
        session.submit_answer("1")


def test_expire_records_timeout():
    session = PracticeSession(_source(), 1)
    session.next_example()
    session.expire()
    assert session.state == SessionState.FINISHED
    assert session.results.wrong_examples == [
        {**EXAMPLES[0], "userAnswer": None, "timedOut": True}
    ]


def test_invalid_example_finishes():
    session = PracticeSession(lambda: {"answer": 3}, 5)
    assert session.next_example() is None
    assert session.state == SessionState.FINISHED


def test_finish_notifies_once():
    calls = []
    session = PracticeSession(_source(), 3, on_finish=calls.append)
    session.finish()
    session.finish()
    assert len(calls) == 1
    assert calls[0].total == 3
    assert calls[0].success == 0


def test_retry_mistakes():
    previous = SessionResults(total=3, success=1, wrong_examples=[
        {**EXAMPLES[1], "userAnswer": 7},
        {**EXAMPLES[2], "userAnswer": None, "timedOut": True},
    ])
    session = PracticeSession.retry_mistakes(previous)
    assert session.is_retry
    assert session.stats.total == 2

    assert session.next_example() == EXAMPLES[1]
    session.submit_answer(1)
    assert session.next_example() == EXAMPLES[2]
    session.submit_answer(4)

    assert session.state == SessionState.FINISHED
    assert session.results.success == 1
    assert session.results.wrong_examples == [{**EXAMPLES[2], "userAnswer": 4}]


def test_display_steps():
    assert display_steps(EXAMPLES[2]) == ["+1", "+4"]
    assert display_steps({"steps": None}) == []


def test_parse_answer():
    assert parse_answer("-12") == -12
    assert parse_answer(8) == 8
    with pytest.raises(ValueError):
        parse_answer(True)
    with pytest.raises(ValueError):
        parse_answer("1.5")
