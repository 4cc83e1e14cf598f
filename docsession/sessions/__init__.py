"""
Sessions Package

Session documents backed by a document store and mutated through
incremental partial-update operators.

Modules:
- values: dotted paths and deep structural equality
- update: partial-update operators and update specifications
- journal: pending-update accumulator
- document: SessionDocument mirror, mutators, save and reload
- store: DocumentStore protocol, Redis and in-memory stores
- manager: create/get/remove lifecycle hooks
"""

from docsession.sessions.document import (
    SaveAction,
    SessionDocument,
    generate_session_id,
)
from docsession.sessions.journal import UpdateJournal
from docsession.sessions.manager import SessionManager
from docsession.sessions.store import (
    DocumentStore,
    InMemoryDocumentStore,
    RedisDocumentStore,
)
from docsession.sessions.update import apply_update
from docsession.sessions.values import deep_equal

__all__ = [
    "DocumentStore",
    "RedisDocumentStore",
    "InMemoryDocumentStore",
    "SessionDocument",
    "SaveAction",
    "SessionManager",
    "UpdateJournal",
    "apply_update",
    "deep_equal",
    "generate_session_id",
]
