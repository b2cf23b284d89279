"""
Error taxonomy shared by the journal stores.

Failures are classified coarsely so the UI can decide how to report them:
- validation: a client-side rule failed, nothing reached the database
- database:   the database rejected or failed the operation
- network:    the database could not be reached
- unknown:    anything else
"""

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError


class ErrorType(str, Enum):
    """Coarse failure classification."""
    VALIDATION = "validation"
    DATABASE = "database"
    NETWORK = "network"
    UNKNOWN = "unknown"


class JournalError(Exception):
    """Base class for errors raised by the journal services."""

    error_type: ErrorType = ErrorType.UNKNOWN

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(JournalError):
    """Input rejected before any database call."""

    error_type = ErrorType.VALIDATION


class NotAuthenticatedError(JournalError):
    """Mutation attempted without a signed-in user."""

    error_type = ErrorType.VALIDATION


class RecordNotFound(JournalError):
    """Update/delete targeted a row the user does not own or that no longer exists."""

    error_type = ErrorType.DATABASE


@dataclass(frozen=True)
class StoreError:
    """Last failure recorded by a store."""
    message: str
    type: ErrorType


def classify_exception(exc: BaseException) -> ErrorType:
    """Map an exception to its coarse error type."""
    if isinstance(exc, JournalError):
        return exc.error_type
    if isinstance(exc, (OperationalError, DisconnectionError, ConnectionError, TimeoutError)):
        return ErrorType.NETWORK
    if isinstance(exc, SQLAlchemyError):
        return ErrorType.DATABASE
    return ErrorType.UNKNOWN


def describe_exception(exc: BaseException, action: str) -> str:
    """Human-readable message for a failed operation."""
    if isinstance(exc, JournalError):
        return exc.message
    error_type = classify_exception(exc)
    if error_type is ErrorType.NETWORK:
        return f"Failed to {action}: database unavailable ({exc.__class__.__name__})"
    if error_type is ErrorType.DATABASE:
        # SQLAlchemy messages carry the statement; keep only the first line
        detail = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
        return f"Failed to {action}: {detail}"
    return f"Failed to {action}: {exc}" if str(exc) else f"Failed to {action}"
