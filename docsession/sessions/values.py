"""
Session Values - dotted field paths and deep structural equality.

Session documents are plain JSON-like trees: dicts, lists and scalars.
This module provides the explicit path handling used by the mirror and by
the stores, plus the recursive comparator used for set semantics
(add_to_set) and exact-match removal (pull/pull_all).

Path rules:
- Segments are separated by "." and may not be empty.
- A segment addresses a dict key; a purely numeric segment addresses a
  list index when the container is a list.
"""

from typing import Any, Optional

from docsession.core.exceptions import SessionTypeMismatchError


class _Missing:
    """Sentinel type for absent values (distinct from a stored None)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


# =============================================================================
# Path Handling
# =============================================================================


def split_path(path: str) -> list[str]:
    """
    Split a dotted field path into its segments.

    Args:
        path: Dotted path such as "profile.name"

    Returns:
        List of path segments

    Raises:
        ValueError: If the path is empty or contains an empty segment
    """
    if not isinstance(path, str) or not path:
        raise ValueError(f"Invalid field path: {path!r}")
    segments = path.split(".")
    if any(segment == "" for segment in segments):
        raise ValueError(f"Invalid field path: {path!r}")
    return segments


def paths_overlap(first: str, second: str) -> bool:
    """Return True if two paths are equal or one contains the other."""
    return (
        first == second
        or first.startswith(second + ".")
        or second.startswith(first + ".")
    )


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    """Return True if `path` equals `ancestor` or lies beneath it."""
    return path == ancestor or path.startswith(ancestor + ".")


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, dict):
        return container.get(segment, MISSING)
    if isinstance(container, list) and segment.isdigit():
        index = int(segment)
        if index < len(container):
            return container[index]
    return MISSING


def get_path(document: dict[str, Any], path: str, default: Any = MISSING) -> Any:
    """
    Look up the value stored at a dotted path.

    Args:
        document: Root mapping
        path: Dotted field path
        default: Value returned when the path does not resolve

    Returns:
        The stored value, or `default`
    """
    current: Any = document
    for segment in split_path(path):
        current = _child(current, segment)
        if current is MISSING:
            return default
    return current


def has_path(document: dict[str, Any], path: str) -> bool:
    """Return True if the dotted path resolves to a stored value."""
    return get_path(document, path) is not MISSING


def _mismatch(path: str, message: str) -> SessionTypeMismatchError:
    return SessionTypeMismatchError(message, path=path)


def check_settable(document: dict[str, Any], path: str) -> None:
    """
    Verify that a value can be written at `path` without mutating anything.

    Raises:
        SessionTypeMismatchError: If an existing segment on the way is a
            scalar, or a list is addressed with a non-numeric segment
    """
    segments = split_path(path)
    current: Any = document
    walked: list[str] = []
    for segment in segments:
        if isinstance(current, list) and not segment.isdigit():
            raise _mismatch(
                path,
                f"Cannot create field '{segment}' in array '{'.'.join(walked)}'",
            )
        if not isinstance(current, (dict, list)):
            raise _mismatch(
                path,
                f"Cannot create field '{segment}' in non-container "
                f"'{'.'.join(walked)}'",
            )
        current = _child(current, segment)
        if current is MISSING:
            return
        walked.append(segment)


def _assign(container: Any, segment: str, value: Any) -> None:
    if isinstance(container, list):
        index = int(segment)
        if index >= len(container):
            container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    else:
        container[segment] = value


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """
    Store `value` at a dotted path, creating intermediate mappings.

    Writing past the end of a list pads it with None.

    Raises:
        SessionTypeMismatchError: If the path runs through a scalar
    """
    check_settable(document, path)
    segments = split_path(path)
    current: Any = document
    for segment in segments[:-1]:
        child = _child(current, segment)
        if child is MISSING:
            child = {}
            _assign(current, segment, child)
        current = child
    _assign(current, segments[-1], value)


def unset_path(document: dict[str, Any], path: str) -> Any:
    """
    Remove the value stored at a dotted path.

    A list element is replaced by None rather than removed, so the
    positions of its siblings do not shift.

    Returns:
        The removed value, or MISSING if the path did not resolve
    """
    segments = split_path(path)
    parent: Any = document
    for segment in segments[:-1]:
        parent = _child(parent, segment)
        if parent is MISSING:
            return MISSING
    last = segments[-1]
    value = _child(parent, last)
    if value is MISSING:
        return MISSING
    if isinstance(parent, list):
        parent[int(last)] = None
    else:
        del parent[last]
    return value


# =============================================================================
# Deep Structural Equality
# =============================================================================


def is_number(value: Any) -> bool:
    """Return True for ints and floats, excluding bools."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def deep_equal(first: Any, second: Any) -> bool:
    """
    Compare two JSON-like values structurally.

    - Mappings are equal when they have the same keys (in any order) and
      deep-equal values.
    - Sequences are equal when they have the same length and deep-equal
      elements in the same order.
    - Booleans only equal booleans; ints and floats compare numerically.
    - Other scalars use ==.
    """
    if isinstance(first, dict) or isinstance(second, dict):
        if not (isinstance(first, dict) and isinstance(second, dict)):
            return False
        if first.keys() != second.keys():
            return False
        return all(deep_equal(first[key], second[key]) for key in first)

    if isinstance(first, (list, tuple)) or isinstance(second, (list, tuple)):
        if not (isinstance(first, (list, tuple)) and isinstance(second, (list, tuple))):
            return False
        if len(first) != len(second):
            return False
        return all(deep_equal(a, b) for a, b in zip(first, second))

    if isinstance(first, bool) or isinstance(second, bool):
        return isinstance(first, bool) and isinstance(second, bool) and first == second

    if is_number(first) or is_number(second):
        return is_number(first) and is_number(second) and first == second

    return first == second


def contains_equal(sequence: list[Any], value: Any) -> bool:
    """Return True if any element of `sequence` is deep-equal to `value`."""
    return any(deep_equal(element, value) for element in sequence)
