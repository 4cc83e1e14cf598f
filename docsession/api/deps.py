"""
API Dependencies

FastAPI dependency injection functions for the session layer.

All dependencies are plain functions so they can be overridden in tests
through FastAPI's dependency_overrides mechanism.
"""

import logging

from fastapi import Request

from docsession.api.middleware.session import SessionContext
from docsession.core.exceptions import SessionConfigurationError
from docsession.sessions.document import SessionDocument


logger = logging.getLogger(__name__)


def get_session_context(request: Request) -> SessionContext:
    """
    Get the request's SessionContext.

    Raises:
        SessionConfigurationError: If DocumentSessionMiddleware is not installed.
    """
    context = getattr(request.state, "session_context", None)
    if context is None:
        logger.error("get_session used without DocumentSessionMiddleware")
        raise SessionConfigurationError(
            "DocumentSessionMiddleware is not installed", setting="middleware"
        )
    return context


def get_session(request: Request) -> SessionDocument | None:
    """
    Get the request's session, creating a new one on first access.

    Returns:
        The SessionDocument, or None if the handler removed the session
        earlier in this request.
    """
    return get_session_context(request).session
