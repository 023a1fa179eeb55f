"""Tests for the element path tracker."""

import pytest

from wet_results.element_path import ElementPath


def _path(*names):
    path = ElementPath()
    for name in names:
        path.push(name)
    return path


def test_matches_exact_path_only():
    """matches() compares the whole path."""
    path = _path("wet", "testcase")
    assert path.matches("/wet/testcase")
    assert not path.matches("/wet")
    assert not path.matches("/wet/testcase/testrun")


def test_starts_with_uses_segment_boundaries():
    """A prefix must end on an element boundary."""
    path = _path("wet", "testcase", "testrun")
    assert path.starts_with("/wet/testcase")
    assert path.starts_with("/wet/testcase/testrun")
    assert not path.starts_with("/wet/test")
    assert not path.starts_with("/wet/testcase/testrun/testfile")


def test_ends_with_uses_segment_boundaries():
    """A suffix must start on an element boundary."""
    path = _path("wet", "testcase", "testrun", "subtestfile")
    assert path.ends_with("/testrun/subtestfile")
    assert not path.ends_with("/testfile")
    assert not path.ends_with("/x/wet/testcase/testrun/subtestfile")


def test_pop_returns_last_name():
    """pop() removes and returns the innermost element."""
    path = _path("wet", "testcase")
    assert path.pop() == "testcase"
    assert path.matches("/wet")
    assert len(path) == 1


def test_pop_past_root_is_an_error():
    """Popping an empty path is a programming error."""
    path = ElementPath()
    with pytest.raises(IndexError):
        path.pop()


def test_str():
    assert str(_path("wet", "testcase")) == "/wet/testcase"
    assert str(ElementPath()) == "/"
