"""
Session Middleware

Binds a SessionDocument to each request and commits it when the request
ends.

Per request:
1. If the session cookie is present, load the document (a cookie whose
   document no longer exists is treated as no session).
2. Expose a SessionContext at request.state.session_context; handlers use
   context.session (or the get_session dependency).
3. After the handler, also when it raised:
   - new session never accessed or left clean: nothing is written
   - session set to None: cookie cleared and stored document removed
   - dirty session: cookie set and the journal saved as one upsert
   - handler raised: a dirty loaded session is still saved; a new session
     is dropped, since no response carries its cookie. A failing commit is
     logged and the handler's exception propagates.

Cookie signing is not handled here; the cookie carries the bare session id.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from docsession.core.config import Settings, get_settings
from docsession.core.exceptions import SessionConfigurationError, SessionNotFoundError
from docsession.observability.logging import correlation_id_context
from docsession.sessions.document import SessionDocument
from docsession.sessions.manager import SessionManager
from docsession.sessions.store import DocumentStore


logger = logging.getLogger(__name__)


# =============================================================================
# SessionContext - per-request session holder
# =============================================================================


class SessionContext:
    """
    Request-scoped access to the session.

    Reading `session` returns the loaded document or lazily creates a new
    one. Assigning None marks the session for removal; assigning a mapping
    makes the session become that mapping (journaled, so it is saved).
    """

    def __init__(
        self,
        manager: SessionManager,
        document: Optional[SessionDocument] = None,
    ) -> None:
        self._manager = manager
        self._document = document
        self._removed = False
        self._remove_id: Optional[str] = None

    @property
    def accessed(self) -> bool:
        """True once a document is bound to the request."""
        return self._document is not None

    @property
    def removed(self) -> bool:
        return self._removed

    @property
    def session(self) -> Optional[SessionDocument]:
        if self._removed:
            return None
        if self._document is None:
            self._document = self._manager.create()
        return self._document

    @session.setter
    def session(self, value: Any) -> None:
        if value is None:
            if self._document is not None and not self._document.is_new:
                self._remove_id = self._document.id
            self._document = None
            self._removed = True
            return

        if isinstance(value, Mapping):
            if self._document is None:
                self._document = self._manager.create()
            self._removed = False
            self._document.become(value)
            return

        raise TypeError("session can only be set to None or a mapping")

    async def commit(self, response: Optional[Response], cookie: "SessionCookie") -> None:
        """
        Persist the outcome of the request.

        Args:
            response: Outgoing response, or None when the handler raised.
            cookie: Cookie settings used to set or clear the session id.
        """
        if self._remove_id is not None:
            logger.debug(f"Removing session {self._remove_id}")
            await self._manager.remove(self._remove_id)
            self._remove_id = None

        document = self._document
        if document is None:
            if self._removed and response is not None:
                cookie.clear(response)
            return

        if not document.is_dirty():
            return

        if response is None and document.is_new:
            logger.debug(f"Dropping new session {document.id}: no response carries its cookie")
            return

        logger.debug(f"Committing session {document.id}")
        if response is not None:
            cookie.attach(response, document.id)
        await document.save()


# =============================================================================
# Cookie settings
# =============================================================================


class SessionCookie:
    """Cookie name and options, read from Settings unless overridden."""

    def __init__(self, settings: Settings, **overrides: Any) -> None:
        self.name: str = overrides.get("name", settings.session_cookie_name)
        self.max_age: Optional[int] = overrides.get(
            "max_age", settings.session_cookie_max_age
        )
        self.path: str = overrides.get("path", settings.session_cookie_path)
        self.httponly: bool = overrides.get("httponly", settings.session_cookie_httponly)
        self.secure: bool = overrides.get("secure", settings.session_cookie_secure)
        self.samesite: str = overrides.get("samesite", settings.session_cookie_samesite)

    def read(self, request: Request) -> Optional[str]:
        return request.cookies.get(self.name) or None

    def attach(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            self.name,
            session_id,
            max_age=self.max_age,
            path=self.path,
            httponly=self.httponly,
            secure=self.secure,
            samesite=self.samesite,
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            self.name,
            path=self.path,
            httponly=self.httponly,
            secure=self.secure,
            samesite=self.samesite,
        )


# =============================================================================
# DocumentSessionMiddleware
# =============================================================================


class DocumentSessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware binding a store-backed session to every request.

    Args:
        app: The ASGI application.
        store: DocumentStore holding the session documents (required).
        settings: Settings providing cookie defaults.
        **cookie_options: Overrides for name, max_age, path, httponly,
            secure and samesite.

    Raises:
        SessionConfigurationError: If no store is given.
    """

    def __init__(
        self,
        app: ASGIApp,
        store: Optional[DocumentStore] = None,
        settings: Optional[Settings] = None,
        **cookie_options: Any,
    ) -> None:
        super().__init__(app)
        if store is None:
            raise SessionConfigurationError(
                "missing session document store", setting="store"
            )
        self.manager = SessionManager(store)
        self.cookie = SessionCookie(settings or get_settings(), **cookie_options)
        logger.info(f"Session middleware enabled: cookie={self.cookie.name}")

    async def _load(self, session_id: Optional[str]) -> Optional[SessionDocument]:
        if not session_id:
            return None
        try:
            return await self.manager.get(session_id)
        except SessionNotFoundError:
            logger.debug(f"Session cookie {session_id} has no stored document")
            return None

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """
        Load the session, run the handler, then commit the session.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response from the handler
        """
        session_id = self.cookie.read(request)
        document = await self._load(session_id)
        context = SessionContext(self.manager, document)
        request.state.session_context = context

        with correlation_id_context(document.id if document else "anonymous"):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Request failed, committing session anyway: "
                    f"{type(e).__name__}: {e}"
                )
                try:
                    await context.commit(None, self.cookie)
                except Exception as commit_error:
                    logger.error(
                        f"Session commit failed after request error: "
                        f"{type(commit_error).__name__}: {commit_error}"
                    )
                raise

            await context.commit(response, self.cookie)
        return response
