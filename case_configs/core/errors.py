"""
Error kinds raised by the case configs core.

Every error carries the most specific message available, falling back to
the kind's generic text.
"""

from typing import Optional


class CaseConfigsError(Exception):
    """Base class for all case configs errors."""
    default_message = "An error occurred"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(CaseConfigsError):
    """Referenced case or entries do not exist."""
    default_message = "The requested record was not found"


class DataAccessError(CaseConfigsError):
    """Query or insert failure in the record store."""
    default_message = "The record store could not complete the request"


class SelectionError(CaseConfigsError):
    """Submit was invoked with nothing selected."""
    default_message = "No records selected"


class CaseClosedError(CaseConfigsError):
    """Attach or submit was attempted against a closed case."""
    default_message = "The case is closed"


class ExternalServiceError(CaseConfigsError):
    """The external endpoint answered with a non-200 status or was unreachable."""
    default_message = "The external service rejected the request"

    def __init__(
        self,
        message: Optional[str] = None,
        status: Optional[int] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
