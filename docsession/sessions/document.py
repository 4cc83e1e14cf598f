"""
Session Document - in-memory mirror of one stored session.

A SessionDocument holds the session's fields, an UpdateJournal of pending
partial updates and the lifecycle flags (is_new / saving). Every mutator
applies its change to the mirror immediately and journals the matching
update operator; save() sends the whole journal as one upsert.

Example:
    >>> session = SessionDocument(store)
    >>> session.inc("views", 1)
    >>> session.add_to_set("tags", ["a", "b", "a"])
    >>> session.get("tags")
    ['a', 'b']
    >>> await session.save()        # one store.update(...) call
    >>> await session.push("log", "x")  # mutators return an awaitable save
"""

import asyncio
import copy
import secrets
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Generator, Optional

from docsession.core.exceptions import SessionConflictError, SessionNotFoundError
from docsession.observability.logging import get_logger
from docsession.sessions import update as ops
from docsession.sessions.journal import UpdateJournal, touched_paths
from docsession.sessions.values import MISSING, deep_equal, get_path, has_path

if TYPE_CHECKING:
    from docsession.sessions.store import DocumentStore


logger = get_logger(__name__)

SESSION_ID_BYTES = 9

# Keys of a stored document that never become session fields.
RESERVED_KEYS = frozenset({"_id", "id", "is_new"})


def generate_session_id() -> str:
    """Return an unguessable 12 character URL-safe session id."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def is_reserved_key(key: str) -> bool:
    """Return True for identity/lifecycle keys and operator-like keys."""
    return key in RESERVED_KEYS or key.startswith("$")


def _as_values(values: Any, operator: str) -> list[Any]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeError(f"{operator} values must be a list, got {type(values).__name__}")
    return list(values)


# =============================================================================
# SaveAction
# =============================================================================


class SaveAction:
    """
    Awaitable that saves its document.

    One instance exists per document; every mutator returns it. Awaiting
    it runs SessionDocument.save(), ignoring it leaves the journal for the
    end-of-request commit.
    """

    def __init__(self, document: "SessionDocument") -> None:
        self._document = document

    def __await__(self) -> Generator[Any, None, "SessionDocument"]:
        return self._document.save().__await__()

    def __repr__(self) -> str:
        return f"<SaveAction session={self._document.id}>"


# =============================================================================
# SessionDocument
# =============================================================================


class SessionDocument:
    """
    In-memory mirror of a session document with a pending-update journal.

    Args:
        store: Document store the session is saved to and reloaded from.
        session_id: Id of an existing document. A new id is generated
            when omitted.
    """

    def __init__(self, store: "DocumentStore", session_id: Optional[str] = None) -> None:
        self._store = store
        self._id = session_id or generate_session_id()
        self._fields: dict[str, Any] = {}
        self._journal = UpdateJournal()
        self._is_new = True
        self._saving = False
        self._save_action: Optional[SaveAction] = None
        logger.debug("new session", session_id=self._id)

    @classmethod
    def from_stored(
        cls,
        store: "DocumentStore",
        session_id: str,
        document: Mapping[str, Any],
    ) -> "SessionDocument":
        """Hydrate a clean, not-new session from a stored document."""
        session = cls(store, session_id)
        session._fields = {
            key: copy.deepcopy(value)
            for key, value in document.items()
            if not is_reserved_key(key)
        }
        session._is_new = False
        return session

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def saving(self) -> bool:
        return self._saving

    @property
    def journal(self) -> UpdateJournal:
        return self._journal

    @property
    def fields(self) -> dict[str, Any]:
        return self._fields

    def is_dirty(self) -> bool:
        """True while the journal holds unsaved mutations."""
        return bool(self._journal)

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at a dotted path, or `default`."""
        value = get_path(self._fields, path)
        return default if value is MISSING else value

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and has_path(self._fields, path)

    def serialize(self) -> dict[str, Any]:
        """Plain copy of the fields, without id, journal or flags."""
        return copy.deepcopy(self._fields)

    def __repr__(self) -> str:
        return (
            f"<SessionDocument id={self._id} new={self._is_new} "
            f"dirty={self.is_dirty()} fields={self._fields!r}>"
        )

    # -------------------------------------------------------------------------
    # Journal bookkeeping
    # -------------------------------------------------------------------------

    def _record(self, kind: str, path: str, payload: Any) -> None:
        """
        Journal an operation already applied to the mirror.

        When the entry would overlap pending entries of another kind (or
        repeat a $pop/$rename), the overlapping entries are replaced by a
        $set/$unset of the mirror's current value at the outermost path.
        """
        if not self._journal.conflicts(kind, path, payload):
            self._journal.record(kind, path, payload)
            return

        roots = self._journal.collapse(touched_paths(kind, path, payload))
        logger.debug("journal collapsed", session_id=self._id, paths=roots)
        for root in roots:
            value = get_path(self._fields, root)
            if value is MISSING:
                self._journal.record(ops.UNSET, root, 1)
            else:
                self._journal.record(ops.SET, root, value)

    def _mutated(self, kind: str, path: str, payload: Any) -> SaveAction:
        self._record(kind, path, payload)
        logger.debug(kind, session_id=self._id, path=path)
        return self.save_action

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def set(self, path: str, value: Any) -> SaveAction:
        """Assign `value` at `path`."""
        ops.set_value(self._fields, path, value)
        return self._mutated(ops.SET, path, value)

    def unset(self, path: str) -> SaveAction:
        """Remove `path`."""
        ops.unset_value(self._fields, path)
        return self._mutated(ops.UNSET, path, 1)

    def inc(self, path: str, amount: int | float = 1) -> SaveAction:
        """Add `amount` to the number at `path` (absent counts as 0)."""
        ops.inc_value(self._fields, path, amount)
        return self._mutated(ops.INC, path, amount)

    def rename(self, old_path: str, new_path: str) -> SaveAction:
        """Move the value at `old_path` to `new_path`."""
        ops.rename_value(self._fields, old_path, new_path)
        return self._mutated(ops.RENAME, old_path, new_path)

    def push(self, path: str, value: Any) -> SaveAction:
        """Append one value to the array at `path`."""
        return self.push_all(path, [value])

    def push_all(self, path: str, values: Sequence[Any]) -> SaveAction:
        """Append `values` in order to the array at `path`, creating it if absent."""
        values = _as_values(values, ops.PUSH)
        ops.push_values(self._fields, path, values)
        return self._mutated(ops.PUSH, path, {"$each": values})

    def pull(self, path: str, value: Any) -> SaveAction:
        """Remove every element deep-equal to `value`."""
        return self.pull_all(path, [value])

    def pull_all(self, path: str, values: Sequence[Any]) -> SaveAction:
        """Remove every element deep-equal to any of `values`."""
        values = _as_values(values, ops.PULL_ALL)
        ops.pull_values(self._fields, path, values)
        return self._mutated(ops.PULL_ALL, path, values)

    def pop(self, path: str) -> SaveAction:
        """Remove the last element of the array at `path`."""
        ops.pop_value(self._fields, path, 1)
        return self._mutated(ops.POP, path, 1)

    def shift(self, path: str) -> SaveAction:
        """Remove the first element of the array at `path`."""
        ops.pop_value(self._fields, path, -1)
        return self._mutated(ops.POP, path, -1)

    def add_to_set(self, path: str, values: Sequence[Any]) -> SaveAction:
        """
        Append the values not already present in the array at `path`.

        Duplicates (deep structural equality) are skipped in the mirror; the
        journal keeps every requested value and the store deduplicates again.
        """
        values = _as_values(values, ops.ADD_TO_SET)
        ops.add_values_to_set(self._fields, path, values)
        return self._mutated(ops.ADD_TO_SET, path, {"$each": values})

    def become(self, document: Mapping[str, Any], memory_only: bool = False) -> None:
        """
        Replace the fields with those of `document`.

        Fields missing from `document` are removed and new or changed ones
        are assigned. Unless `memory_only`, the changes go through the
        mutators and are journaled; otherwise the mirror is replaced
        without touching the journal.

        Args:
            document: Mapping of field name to value.
            memory_only: Replace the mirror only (used by reload).
        """
        incoming = {
            key: value for key, value in document.items() if not is_reserved_key(key)
        }

        if memory_only:
            self._fields = copy.deepcopy(incoming)
            return

        for key in [key for key in self._fields if key not in incoming]:
            self.unset(key)
        for key, value in incoming.items():
            current = self._fields.get(key, MISSING)
            if current is MISSING or not deep_equal(current, value):
                self.set(key, value)

    # -------------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------------

    @property
    def save_action(self) -> SaveAction:
        """The document's save action; the same object on every access."""
        if self._save_action is None:
            self._save_action = SaveAction(self)
        return self._save_action

    async def save(self) -> "SessionDocument":
        """
        Persist the journal as a single upsert.

        Cancelling the caller does not cancel the store write: it runs to
        completion or failure, and the journal is settled from its outcome.

        Returns:
            This document.

        Raises:
            SessionConflictError: If a save of this document is in flight.
            SessionStoreError: If the store fails; the journal is kept so
                a later save can retry.
        """
        if self._saving:
            raise SessionConflictError(
                "The session is already being saved", session_id=self._id
            )
        if not self._journal:
            logger.debug("session clean, nothing to save", session_id=self._id)
            return self

        pending = self._journal
        self._journal = UpdateJournal()
        self._saving = True
        self._is_new = False
        logger.debug("saving session", session_id=self._id, operators=pending.kinds())

        write = asyncio.ensure_future(
            self._store.update(self._id, pending.to_update_spec(), upsert=True)
        )
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # The write keeps running; saving stays set until it settles.
            if write.done():
                self._settle(pending, write)
            else:
                logger.debug("save cancelled, store write continues", session_id=self._id)
                write.add_done_callback(lambda task: self._settle(pending, task))
            raise
        except Exception:
            self._settle(pending, write)
            raise

        self._settle(pending, write)
        return self

    def _settle(self, pending: UpdateJournal, write: "asyncio.Future[None]") -> None:
        """Clear the saving flag and keep the journal unless the write succeeded."""
        self._saving = False
        if write.cancelled():
            self._restore(pending)
            return
        error = write.exception()
        if error is not None:
            logger.debug("session save failed", session_id=self._id, error=str(error))
            self._restore(pending)
            return
        logger.debug("session saved", session_id=self._id)

    def _restore(self, pending: UpdateJournal) -> None:
        """Put unsaved entries back in front of those recorded meanwhile."""
        newer = self._journal
        self._journal = pending
        for kind, path, payload in newer.entries():
            self._record(kind, path, payload)
        logger.debug("session save failed, journal kept", session_id=self._id)

    async def reload(self) -> "SessionDocument":
        """
        Replace the mirror with the stored document.

        The journal is not touched.

        Raises:
            SessionNotFoundError: If the document is not in the store.
        """
        logger.debug("reloading session", session_id=self._id)
        document = await self._store.find_one(self._id)
        if document is None:
            raise SessionNotFoundError(
                f"Could not find session {self._id}", session_id=self._id
            )
        self.become(document, memory_only=True)
        self._is_new = False
        return self
