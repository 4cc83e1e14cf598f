"""
Core module for docsession.

This module contains configuration and exceptions shared by the session
layer and the HTTP integration.
"""

from docsession.core.config import Settings, get_settings
from docsession.core.exceptions import (
    DocSessionException,
    ErrorCode,
    SessionConfigurationError,
    SessionConflictError,
    SessionNotFoundError,
    SessionStoreError,
    SessionTypeMismatchError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "DocSessionException",
    "SessionConfigurationError",
    "SessionTypeMismatchError",
    "SessionConflictError",
    "SessionNotFoundError",
    "SessionStoreError",
]
