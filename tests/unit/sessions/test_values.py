"""
Unit tests for docsession/sessions/values.py - paths and deep equality.
"""

import pytest

from docsession.core.exceptions import SessionTypeMismatchError
from docsession.sessions.values import (
    MISSING,
    check_settable,
    contains_equal,
    deep_equal,
    get_path,
    has_path,
    paths_overlap,
    set_path,
    split_path,
    unset_path,
)


class TestSplitPath:
    """Dotted path parsing."""

    def test_single_segment(self):
        assert split_path("views") == ["views"]

    def test_nested_segments(self):
        assert split_path("thing.array.0") == ["thing", "array", "0"]

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a."])
    def test_empty_segments_rejected(self, path):
        with pytest.raises(ValueError):
            split_path(path)


class TestPathsOverlap:
    """Overlap means equal or one inside the other."""

    def test_same_path(self):
        assert paths_overlap("a.b", "a.b")

    def test_ancestor(self):
        assert paths_overlap("a", "a.b")
        assert paths_overlap("a.b.c", "a")

    def test_siblings_do_not_overlap(self):
        assert not paths_overlap("a.b", "a.c")

    def test_shared_prefix_is_not_ancestry(self):
        assert not paths_overlap("name", "names")


class TestGetPath:
    """Reading values through dotted paths."""

    def test_nested_dict(self):
        assert get_path({"name": {"last": "koa"}}, "name.last") == "koa"

    def test_list_index(self):
        assert get_path({"array": [1, 2, 3]}, "array.1") == 2

    def test_missing_returns_sentinel(self):
        assert get_path({"name": {}}, "name.last") is MISSING

    def test_missing_returns_default(self):
        assert get_path({}, "a.b", default=None) is None

    def test_stored_none_is_present(self):
        document = {"a": None}

        assert get_path(document, "a") is None
        assert has_path(document, "a")

    def test_through_scalar_is_missing(self):
        assert get_path({"a": 1}, "a.b") is MISSING


class TestSetPath:
    """Writing values through dotted paths."""

    def test_creates_intermediate_dicts(self):
        document = {}

        set_path(document, "name.last", "koa")

        assert document == {"name": {"last": "koa"}}

    def test_list_index_assignment(self):
        document = {"array": [1, 2]}

        set_path(document, "array.0", 5)

        assert document == {"array": [5, 2]}

    def test_list_padding(self):
        document = {"array": [1]}

        set_path(document, "array.3", 4)

        assert document == {"array": [1, None, None, 4]}

    def test_through_scalar_raises(self):
        document = {"a": 1}

        with pytest.raises(SessionTypeMismatchError):
            set_path(document, "a.b", 2)
        assert document == {"a": 1}

    def test_named_field_in_list_raises(self):
        document = {"array": [1]}

        with pytest.raises(SessionTypeMismatchError):
            check_settable(document, "array.name")


class TestUnsetPath:
    """Removing values through dotted paths."""

    def test_removes_key(self):
        document = {"name": {"first": "a", "last": "b"}}

        removed = unset_path(document, "name.last")

        assert removed == "b"
        assert document == {"name": {"first": "a"}}

    def test_absent_is_noop(self):
        document = {"a": 1}

        assert unset_path(document, "b.c") is MISSING
        assert document == {"a": 1}

    def test_list_element_becomes_none(self):
        document = {"array": [1, 2, 3]}

        unset_path(document, "array.1")

        assert document == {"array": [1, None, 3]}


class TestDeepEqual:
    """Structural comparison used by add_to_set and pull."""

    def test_dict_key_order_ignored(self):
        assert deep_equal({"y": True, "x": 1}, {"x": 1, "y": True})

    def test_list_order_matters(self):
        assert not deep_equal([3, 4], [4, 3])

    def test_nested_structures(self):
        assert deep_equal({"x": {"y": [3, 4]}}, {"x": {"y": [3, 4]}})
        assert not deep_equal({"x": {"y": [3, 4]}}, {"x": {"y": [4, 3]}})

    def test_bool_is_not_number(self):
        assert not deep_equal(True, 1)
        assert not deep_equal(0, False)

    def test_int_equals_float(self):
        assert deep_equal(2, 2.0)

    def test_list_vs_dict(self):
        assert not deep_equal([], {})

    def test_extra_key(self):
        assert not deep_equal({"a": 1}, {"a": 1, "b": 2})

    def test_contains_equal(self):
        assert contains_equal([1, [1, [2], 3]], [1, [2], 3])
        assert not contains_equal([1, [1, [2], 3]], [1, 2, 3])
