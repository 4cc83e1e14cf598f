"""docsession - store-backed sessions mutated through partial-update operators.

Note: Import `app` directly from `docsession.main` to avoid circular imports.
"""

__all__ = ["main", "api", "core", "observability", "sessions"]
