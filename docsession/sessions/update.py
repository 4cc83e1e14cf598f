"""
Update Engine - partial-update operators over plain documents.

Each operator function validates first and mutates second: when it raises,
the document is left exactly as it was. The same functions maintain the
in-memory session mirror and apply a journal's update specification inside
the document stores, so both sides agree on the result.

Supported update specification:

    {
        "$set":      {path: value},
        "$unset":    {path: 1},
        "$inc":      {path: amount},
        "$rename":   {old_path: new_path},
        "$push":     {path: {"$each": [values]}} | {path: value},
        "$pullAll":  {path: [values]},
        "$pop":      {path: 1 | -1},
        "$addToSet": {path: {"$each": [values]}} | {path: value},
    }
"""

import copy
from typing import Any, Callable

from docsession.core.exceptions import SessionTypeMismatchError
from docsession.sessions.values import (
    MISSING,
    check_settable,
    contains_equal,
    deep_equal,
    get_path,
    is_number,
    paths_overlap,
    set_path,
    unset_path,
)


# =============================================================================
# Operator Kinds
# =============================================================================

SET = "$set"
UNSET = "$unset"
INC = "$inc"
RENAME = "$rename"
PUSH = "$push"
PULL_ALL = "$pullAll"
POP = "$pop"
ADD_TO_SET = "$addToSet"


def _existing_list(document: dict[str, Any], path: str, operator: str) -> Any:
    """Return the list at `path`, MISSING if absent, or raise for other shapes."""
    current = get_path(document, path)
    if current is not MISSING and not isinstance(current, list):
        raise SessionTypeMismatchError(
            f"{operator} requires {path} to be an array, "
            f"found {type(current).__name__}",
            path=path,
        )
    return current


def _each(payload: Any) -> list[Any]:
    if isinstance(payload, dict) and "$each" in payload:
        return list(payload["$each"])
    return [payload]


# =============================================================================
# Operators
# =============================================================================


def set_value(document: dict[str, Any], path: str, value: Any) -> None:
    """$set: store a deep copy of `value` at `path`."""
    set_path(document, path, copy.deepcopy(value))


def unset_value(document: dict[str, Any], path: str, _payload: Any = 1) -> None:
    """$unset: remove `path`; no-op if absent."""
    unset_path(document, path)


def inc_value(document: dict[str, Any], path: str, amount: Any) -> None:
    """$inc: add `amount` to the number at `path`, treating absent as 0."""
    if not is_number(amount):
        raise SessionTypeMismatchError(
            f"Cannot increment {path} by non-numeric {type(amount).__name__}",
            path=path,
        )
    current = get_path(document, path)
    if current is MISSING or current is None:
        current = 0
    elif not is_number(current):
        raise SessionTypeMismatchError(
            f"Cannot apply $inc to {path} of non-numeric type "
            f"{type(current).__name__}",
            path=path,
        )
    set_path(document, path, current + amount)


def rename_value(document: dict[str, Any], old_path: str, new_path: str) -> None:
    """$rename: move the value at `old_path` to `new_path`; no-op if absent."""
    if not isinstance(new_path, str):
        raise ValueError(f"$rename target for {old_path} must be a string path")
    if paths_overlap(old_path, new_path):
        raise ValueError(
            f"$rename source and target must not overlap: {old_path} -> {new_path}"
        )
    if get_path(document, old_path) is MISSING:
        return
    check_settable(document, new_path)
    value = unset_path(document, old_path)
    set_path(document, new_path, value)


def push_values(document: dict[str, Any], path: str, values: list[Any]) -> None:
    """$push with $each: append `values` in order, creating the array."""
    current = _existing_list(document, path, PUSH)
    additions = copy.deepcopy(list(values))
    if current is MISSING:
        set_path(document, path, additions)
    else:
        current.extend(additions)


def pull_values(document: dict[str, Any], path: str, values: list[Any]) -> None:
    """$pullAll: remove every element deep-equal to any of `values`."""
    current = _existing_list(document, path, PULL_ALL)
    if current is MISSING:
        return
    current[:] = [
        element
        for element in current
        if not any(deep_equal(element, value) for value in values)
    ]


def pop_value(document: dict[str, Any], path: str, direction: Any = 1) -> None:
    """$pop: remove the last (1) or first (-1) element; no-op when empty."""
    if direction not in (1, -1) or isinstance(direction, bool):
        raise ValueError(f"$pop direction for {path} must be 1 or -1")
    current = _existing_list(document, path, POP)
    if not current:
        return
    if direction == 1:
        current.pop()
    else:
        current.pop(0)


def add_values_to_set(document: dict[str, Any], path: str, values: list[Any]) -> None:
    """$addToSet with $each: append values not already present, in order."""
    current = _existing_list(document, path, ADD_TO_SET)
    if current is MISSING:
        current = []
        set_path(document, path, current)
    for value in values:
        if not contains_equal(current, value):
            current.append(copy.deepcopy(value))


# =============================================================================
# Update Specification
# =============================================================================

OPERATORS: dict[str, Callable[[dict[str, Any], str, Any], None]] = {
    SET: set_value,
    UNSET: unset_value,
    INC: inc_value,
    RENAME: rename_value,
    PUSH: lambda document, path, payload: push_values(document, path, _each(payload)),
    PULL_ALL: pull_values,
    POP: pop_value,
    ADD_TO_SET: lambda document, path, payload: add_values_to_set(
        document, path, _each(payload)
    ),
}


def apply_update(document: dict[str, Any], update_spec: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """
    Apply an update specification to `document` in place.

    Callers that need all-or-nothing behavior apply the update to a copy.

    Args:
        document: Target document
        update_spec: Mapping of operator kind to {path: payload}

    Returns:
        The updated document

    Raises:
        ValueError: For unknown operators or malformed payloads
        SessionTypeMismatchError: If an operator meets an incompatible value
    """
    for kind, entries in update_spec.items():
        operator = OPERATORS.get(kind)
        if operator is None:
            raise ValueError(f"Unknown update operator: {kind}")
        for path, payload in entries.items():
            operator(document, path, payload)
    return document
