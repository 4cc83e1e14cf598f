"""API Package - session middleware and FastAPI dependencies.

Components:
- middleware: DocumentSessionMiddleware
- deps: FastAPI dependency injection functions

Note: Import `app` directly from `docsession.main` to avoid circular imports.
"""

__all__ = ["middleware", "deps"]
