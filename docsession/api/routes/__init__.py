"""API Routes Package."""

from docsession.api.routes.session import router as session_router

__all__ = ["session_router"]
