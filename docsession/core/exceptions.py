"""
Custom exceptions for docsession.

This module provides the exception hierarchy for the session layer.
All exceptions inherit from DocSessionException and include error codes for
consistent error handling and logging.

Taxonomy:
- SessionConfigurationError: missing collaborator at setup time
- SessionTypeMismatchError: operator applied to an incompatible value
- SessionConflictError: save attempted while another save is outstanding
- SessionNotFoundError: get/reload of a missing document
- SessionStoreError: the underlying document store failed
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for docsession exceptions.

    These codes provide a consistent way to identify error types
    across the API and in logging.
    """

    SESSION_ERROR = "SESSION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    STORE_FAILURE = "STORE_FAILURE"


# =============================================================================
# Base Exception
# =============================================================================


class DocSessionException(Exception):
    """
    Base exception for all docsession errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SESSION_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# SessionConfigurationError
# =============================================================================


class SessionConfigurationError(DocSessionException):
    """
    Exception for invalid setup.

    Raised before any request is served, e.g. when the session middleware
    is installed without a document store.

    Attributes:
        setting: Name of the missing or invalid setting (if known).
    """

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        error_code: str = ErrorCode.CONFIGURATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.setting = setting


# =============================================================================
# SessionTypeMismatchError
# =============================================================================


class SessionTypeMismatchError(DocSessionException, TypeError):
    """
    Exception for operators applied to a value of the wrong shape.

    Raised synchronously, before the journal is touched; the mirror is left
    unchanged. Also a TypeError so callers may catch it generically.

    Attributes:
        path: Dotted field path the operator was applied to.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        error_code: str = ErrorCode.TYPE_MISMATCH,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.path = path


# =============================================================================
# SessionConflictError
# =============================================================================


class SessionConflictError(DocSessionException):
    """
    Exception for overlapping saves of the same session instance.

    The save already in flight is not affected.

    Attributes:
        session_id: ID of the affected session.
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.CONFLICT,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id


# =============================================================================
# SessionNotFoundError
# =============================================================================


class SessionNotFoundError(DocSessionException):
    """
    Exception raised when a session document cannot be found.

    Attributes:
        session_id: ID of the missing session.
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id


# =============================================================================
# SessionStoreError
# =============================================================================


class SessionStoreError(DocSessionException):
    """
    Exception raised for document store errors.

    Raised when backend operations fail due to connection issues,
    serialization errors, or documents the update cannot be applied to.

    Attributes:
        session_id: ID of the affected session (if known).
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.STORE_FAILURE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id
