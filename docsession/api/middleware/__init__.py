"""
API Middleware Package

Middleware Components:
- session: store-backed session per request, committed when the request ends
"""

from docsession.api.middleware.session import (
    DocumentSessionMiddleware,
    SessionContext,
    SessionCookie,
)

__all__ = [
    "DocumentSessionMiddleware",
    "SessionContext",
    "SessionCookie",
]
