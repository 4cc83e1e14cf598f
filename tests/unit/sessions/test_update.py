"""
Unit tests for docsession/sessions/update.py - partial-update operators.
"""

import pytest

from docsession.core.exceptions import SessionTypeMismatchError
from docsession.sessions.update import apply_update


class TestSetUnset:
    """$set and $unset."""

    def test_set_nested(self):
        document = apply_update({}, {"$set": {"name.last": "koa"}})

        assert document == {"name": {"last": "koa"}}

    def test_set_copies_value(self):
        value = {"a": [1]}
        document = apply_update({}, {"$set": {"x": value}})

        value["a"].append(2)

        assert document == {"x": {"a": [1]}}

    def test_unset(self):
        document = apply_update({"name": {"last": "koa"}}, {"$unset": {"name.last": 1}})

        assert document == {"name": {}}

    def test_unset_absent_is_noop(self):
        assert apply_update({"a": 1}, {"$unset": {"b": 1}}) == {"a": 1}


class TestInc:
    """$inc."""

    def test_absent_counts_as_zero(self):
        assert apply_update({}, {"$inc": {"views": 10}}) == {"views": 10}

    def test_adds_to_existing(self):
        assert apply_update({"views": 1}, {"$inc": {"views": 1}}) == {"views": 2}

    def test_float_amount(self):
        assert apply_update({"score": 1}, {"$inc": {"score": 0.5}}) == {"score": 1.5}

    def test_non_numeric_target(self):
        document = {"views": "many"}

        with pytest.raises(SessionTypeMismatchError):
            apply_update(document, {"$inc": {"views": 1}})
        assert document == {"views": "many"}

    def test_non_numeric_amount(self):
        with pytest.raises(SessionTypeMismatchError):
            apply_update({}, {"$inc": {"views": "1"}})

    def test_bool_amount_rejected(self):
        with pytest.raises(SessionTypeMismatchError):
            apply_update({}, {"$inc": {"views": True}})


class TestRename:
    """$rename."""

    def test_moves_value(self):
        assert apply_update({"vews": 1}, {"$rename": {"vews": "views"}}) == {"views": 1}

    def test_absent_source_is_noop(self):
        assert apply_update({"a": 1}, {"$rename": {"x": "y"}}) == {"a": 1}

    def test_overwrites_target(self):
        document = apply_update({"x": 1, "y": 2}, {"$rename": {"x": "y"}})

        assert document == {"y": 1}

    def test_overlapping_paths_rejected(self):
        with pytest.raises(ValueError):
            apply_update({"a": {"b": 1}}, {"$rename": {"a": "a.c"}})

    def test_target_through_scalar_leaves_source(self):
        document = {"x": 1, "y": 2}

        with pytest.raises(SessionTypeMismatchError):
            apply_update(document, {"$rename": {"x": "y.z"}})
        assert document == {"x": 1, "y": 2}


class TestArrayOperators:
    """$push, $pullAll, $pop and $addToSet."""

    def test_push_creates_array(self):
        assert apply_update({}, {"$push": {"array": 2}}) == {"array": [2]}

    def test_push_each(self):
        document = apply_update({"array": [1]}, {"$push": {"array": {"$each": [2, 4]}}})

        assert document == {"array": [1, 2, 4]}

    def test_push_to_scalar(self):
        with pytest.raises(SessionTypeMismatchError):
            apply_update({"array": 1}, {"$push": {"array": 2}})

    def test_pull_all_removes_every_match(self):
        document = {"array": [2, 4, ["hi"], 6, 4, {"y": {"z": True}}, 2]}

        apply_update(document, {"$pullAll": {"array": [2, 4, ["hi"], {"y": {"z": True}}]}})

        assert document == {"array": [6]}

    def test_pull_all_absent_is_noop(self):
        assert apply_update({}, {"$pullAll": {"array": [1]}}) == {}

    def test_pop_last(self):
        document = apply_update({"array": [1, 2, 3, 4]}, {"$pop": {"array": 1}})

        assert document == {"array": [1, 2, 3]}

    def test_pop_first(self):
        document = apply_update({"thing": {"array": [1, 2, 3, 4]}}, {"$pop": {"thing.array": -1}})

        assert document == {"thing": {"array": [2, 3, 4]}}

    def test_pop_empty_is_noop(self):
        assert apply_update({"array": []}, {"$pop": {"array": 1}}) == {"array": []}

    def test_pop_bad_direction(self):
        with pytest.raises(ValueError):
            apply_update({"array": [1]}, {"$pop": {"array": 2}})

    def test_add_to_set_skips_duplicates(self):
        document = apply_update({}, {"$addToSet": {"array": {"$each": [2, 4, 2, 6]}}})

        assert document == {"array": [2, 4, 6]}

    def test_add_to_set_nested_arrays(self):
        document = {"array": [1, [1, [2], 3]]}

        apply_update(
            document,
            {"$addToSet": {"array": {"$each": [[1, [2], 3], [1, [2], 3], 4]}}},
        )

        assert document == {"array": [1, [1, [2], 3], 4]}


class TestApplyUpdate:
    """Whole update specifications."""

    def test_multiple_operators(self):
        document = apply_update(
            {"_id": "abc", "views": 1},
            {"$inc": {"views": 1}, "$set": {"name": "koa"}, "$push": {"log": {"$each": ["x"]}}},
        )

        assert document == {"_id": "abc", "views": 2, "name": "koa", "log": ["x"]}

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            apply_update({}, {"$bit": {"flags": 1}})
