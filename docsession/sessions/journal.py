"""
Update Journal - pending partial updates of one session document.

The journal accumulates one entry per field path per operator kind and
renders them as a single update specification for the document store.

Merge rules for a repeated (kind, path):
- $set, $unset: last payload wins
- $inc: amounts are summed
- $push, $addToSet ($each lists) and $pullAll: payload lists are extended
- $pop, $rename: not composable; the caller resolves them via collapse()

Entries under different kinds never overlap (same path, or one path inside
the other). When a new operation would overlap, the caller drops the
overlapping entries with collapse() and re-records the affected subtree
from the mirror.
"""

import copy
from typing import Any, Iterator

from docsession.sessions.update import ADD_TO_SET, INC, PULL_ALL, PUSH, RENAME, SET, UNSET
from docsession.sessions.values import is_ancestor_or_self, paths_overlap


COMPOSABLE_KINDS = frozenset({SET, UNSET, INC, PUSH, PULL_ALL, ADD_TO_SET})


def touched_paths(kind: str, path: str, payload: Any) -> tuple[str, ...]:
    """Return every field path an entry writes to."""
    if kind == RENAME:
        return (path, payload)
    return (path,)


class UpdateJournal:
    """
    Accumulator of pending update operations.

    Truthiness reflects whether any entry is pending, so
    `bool(journal)` is the document's dirty flag.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}

    def __bool__(self) -> bool:
        return any(self._entries.values())

    def __len__(self) -> int:
        return sum(len(paths) for paths in self._entries.values())

    def __repr__(self) -> str:
        return f"UpdateJournal({self._entries!r})"

    def entries(self) -> Iterator[tuple[str, str, Any]]:
        """Iterate over (kind, path, payload) in recording order."""
        for kind, paths in self._entries.items():
            for path, payload in paths.items():
                yield kind, path, payload

    def kinds(self) -> list[str]:
        """Operator kinds with at least one pending entry."""
        return [kind for kind, paths in self._entries.items() if paths]

    def conflicts(self, kind: str, path: str, payload: Any) -> bool:
        """
        Check whether recording the entry would make the update ambiguous.

        Only an entry for the same composable kind and the same path may
        share paths with the new one.
        """
        new_paths = touched_paths(kind, path, payload)
        for existing_kind, existing_path, existing_payload in self.entries():
            for existing in touched_paths(existing_kind, existing_path, existing_payload):
                if not any(paths_overlap(existing, new) for new in new_paths):
                    continue
                if existing_kind == kind and existing_path == path and kind in COMPOSABLE_KINDS:
                    continue
                return True
        return False

    def record(self, kind: str, path: str, payload: Any) -> None:
        """
        Add an entry, merging with a pending entry of the same kind and path.

        Args:
            kind: Operator kind, e.g. "$set"
            path: Dotted field path
            payload: Operator-specific payload (deep-copied)
        """
        paths = self._entries.setdefault(kind, {})
        payload = copy.deepcopy(payload)

        if path not in paths:
            paths[path] = payload
        elif kind == INC:
            paths[path] += payload
        elif kind in (PUSH, ADD_TO_SET):
            paths[path]["$each"].extend(payload["$each"])
        elif kind == PULL_ALL:
            paths[path].extend(payload)
        else:
            paths[path] = payload

    def collapse(self, paths: tuple[str, ...]) -> list[str]:
        """
        Drop every entry overlapping `paths`, transitively.

        Returns:
            The outermost field paths whose pending changes were dropped
            (including `paths`); the caller re-records each of them as a
            $set or $unset of the current mirror value.
        """
        roots = list(paths)
        changed = True
        while changed:
            changed = False
            for kind, path, payload in list(self.entries()):
                entry_paths = touched_paths(kind, path, payload)
                if any(paths_overlap(entry, root) for entry in entry_paths for root in roots):
                    del self._entries[kind][path]
                    roots.extend(entry_paths)
                    changed = True

        outermost: list[str] = []
        for root in roots:
            if any(other != root and is_ancestor_or_self(other, root) for other in roots):
                continue
            if root not in outermost:
                outermost.append(root)
        return outermost

    def clear(self) -> None:
        """Remove all entries."""
        self._entries = {}

    def to_update_spec(self) -> dict[str, dict[str, Any]]:
        """Render the pending entries as a plain update specification."""
        return {
            kind: copy.deepcopy(paths)
            for kind, paths in self._entries.items()
            if paths
        }
