"""Session Manager - lifecycle hooks bound to one document store."""

from docsession.core.exceptions import SessionConfigurationError, SessionNotFoundError
from docsession.observability.logging import get_logger
from docsession.sessions.document import SessionDocument
from docsession.sessions.store import DocumentStore


logger = get_logger(__name__)


class SessionManager:
    """Service layer for creating, loading and removing session documents.

    Args:
        store: DocumentStore the sessions are persisted to.

    Raises:
        SessionConfigurationError: If no store is given.
    """

    def __init__(self, store: DocumentStore | None) -> None:
        if store is None:
            raise SessionConfigurationError(
                "missing session document store", setting="store"
            )
        self._store = store

    @property
    def store(self) -> DocumentStore:
        return self._store

    def create(self) -> SessionDocument:
        """Create a new, unsaved session with a fresh id.

        Nothing is written until the session is saved with pending changes.
        """
        return SessionDocument(self._store)

    async def get(self, session_id: str) -> SessionDocument:
        """Load a session by ID.

        Args:
            session_id: The session identifier.

        Returns:
            A clean SessionDocument mirroring the stored document.

        Raises:
            SessionNotFoundError: If session does not exist.
        """
        logger.debug("get session", session_id=session_id)
        document = await self._store.find_one(session_id)
        if document is None:
            raise SessionNotFoundError(
                f"Session not found: {session_id}", session_id=session_id
            )
        return SessionDocument.from_stored(self._store, session_id, document)

    async def remove(self, session_id: str) -> None:
        """Delete a stored session.

        Args:
            session_id: The session identifier.

        Note:
            Deleting a non-existent session does not raise an error.
        """
        if not session_id:
            raise ValueError("missing session id")
        logger.debug("remove session", session_id=session_id)
        await self._store.remove(session_id)
