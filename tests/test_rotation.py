"""
Unit tests for session rotation
"""
from types import SimpleNamespace

from src.periodization.rotation import SessionRotationSelector


A = SimpleNamespace(id=11, name="A")
B = SimpleNamespace(id=12, name="B")
C = SimpleNamespace(id=13, name="C")


def test_empty_rotation():
    assert SessionRotationSelector.next_session([], None) is None
    assert SessionRotationSelector.next_session([], 11) is None


def test_no_history_starts_with_first_session():
    assert SessionRotationSelector.next_session([A, B, C], None) is A


def test_advances_after_last_completed():
    assert SessionRotationSelector.next_session([A, B, C], B.id) is C
    assert SessionRotationSelector.next_session([A, B, C], A.id) is B


def test_wraps_around():
    assert SessionRotationSelector.next_session([A, B, C], C.id) is A


def test_unknown_session_falls_back_to_first():
    """Sessions of a superseded mesocycle restart the rotation"""
    assert SessionRotationSelector.next_session([A, B, C], 999) is A


def test_single_session_repeats():
    assert SessionRotationSelector.next_session([A], A.id) is A
