"""Exception hierarchy for quiz-intake.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import ConnectionFailureKind, ErrorCategory, RecoveryStrategy

__all__ = (
    'QuizIntakeError',
    'ConfigurationError',
    'DatabaseConnectionError',
    'SubmissionValidationError',
    'StoreError',
    'StoreTimeoutError',
    'RouteNotFoundError',
    'AdminAccessError',
    'ClientRequestError',
    'classify_connection_failure',
    'classify_error',
)


class QuizIntakeError(Exception):
    """Base exception for all quiz-intake errors.

    All exceptions in the service inherit from this class, enabling
    catch-all handling at application boundaries.

    Attributes:
        context: Additional context for debugging.
        recoverable: Whether the error can potentially be recovered.
    """

    def __init__(self, message: str, *, context: dict[str, Any] | None = None, recoverable: bool = True) -> None:
        self.context = context or {}
        self.recoverable = recoverable
        super().__init__(message)


# =============================================================================
# Connection Exceptions
# =============================================================================
class ConfigurationError(QuizIntakeError):
    """Raised when the store connection string is missing."""

    def __init__(self, setting: str, message: str | None = None) -> None:
        self.setting = setting
        super().__init__(
            message or f'{setting} environment variable is required',
            context={'setting': setting},
            recoverable=False,
        )


class DatabaseConnectionError(QuizIntakeError):
    """Raised when a store connection attempt fails.

    Attributes:
        kind: One of ``authentication``, ``network`` or ``timeout``.
    """

    def __init__(self, kind: ConnectionFailureKind, message: str, *, cause: Exception | None = None) -> None:
        self.kind = kind
        self.cause = cause
        ctx: dict[str, Any] = {'kind': kind}
        if cause:
            ctx['cause_type'] = type(cause).__name__
        super().__init__(f'[{kind}] {message}', context=ctx)


# =============================================================================
# Submission Exceptions
# =============================================================================
class SubmissionValidationError(QuizIntakeError):
    """Raised when a submission payload is missing required fields.

    Every offending field is reported, never only the first.
    """

    def __init__(
        self,
        missing: list[str],
        *,
        invalid: list[str] | None = None,
        required: tuple[str, ...] = (),
    ) -> None:
        self.missing = missing
        self.invalid = invalid or []
        self.required = required
        parts = []
        if self.missing:
            parts.append(f'missing: {", ".join(self.missing)}')
        if self.invalid:
            parts.append(f'invalid: {", ".join(self.invalid)}')
        super().__init__(
            f'Submission rejected ({"; ".join(parts)})',
            context={'missing': self.missing, 'invalid': self.invalid},
        )


class StoreError(QuizIntakeError):
    """Raised when a store operation fails."""

    def __init__(self, operation: str, message: str, *, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        ctx: dict[str, Any] = {'operation': operation}
        if cause:
            ctx['cause_type'] = type(cause).__name__
        super().__init__(f'Store {operation} failed: {message}', context=ctx)


class StoreTimeoutError(StoreError):
    """Raised when a store operation exceeds its timeout."""


# =============================================================================
# HTTP Exceptions
# =============================================================================
class RouteNotFoundError(QuizIntakeError):
    """Raised when no route matches the requested path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f'Route not found: {path}', context={'path': path}, recoverable=False)


class AdminAccessError(QuizIntakeError):
    """Raised when admin credentials are absent or rejected.

    Attributes:
        status_code: 401 for absent credentials, 403 for rejected ones.
    """

    def __init__(self, message: str, *, status_code: int = 403) -> None:
        self.status_code = status_code
        super().__init__(message, context={'status_code': status_code}, recoverable=False)


class ClientRequestError(QuizIntakeError):
    """Raised by the HTTP client with a user-facing message."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message, context={'status_code': status_code})


def classify_connection_failure(exc: BaseException) -> ConnectionFailureKind:
    """Classify a connection failure by its exception type and message."""
    if isinstance(exc, DatabaseConnectionError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return 'timeout'
    message = str(exc).lower()
    if 'authentication failed' in message or 'auth failed' in message or 'unauthorized' in message:
        return 'authentication'
    if 'timed out' in message or 'timeout' in message:
        return 'timeout'
    return 'network'


def classify_error(exc: Exception) -> tuple[ErrorCategory, RecoveryStrategy]:
    """Classify errors into recovery categories and strategies."""
    if isinstance(exc, ConfigurationError):
        return 'fatal', 'abort'
    if isinstance(exc, DatabaseConnectionError):
        if exc.kind == 'authentication':
            return 'recoverable', 'retry'
        return 'transient', 'retry'
    if isinstance(exc, StoreError):
        return 'transient', 'retry'
    if isinstance(exc, (SubmissionValidationError, RouteNotFoundError, AdminAccessError)):
        return 'recoverable', 'reject'
    if isinstance(exc, QuizIntakeError):
        return ('recoverable', 'reject') if exc.recoverable else ('fatal', 'abort')
    return 'transient', 'retry'
