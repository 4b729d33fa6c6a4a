"""Module-level constants for quiz-intake.

All constants are declared with Final type annotation for immutability
and IDE support.
"""
from __future__ import annotations

from typing import Final

# =============================================================================
# Section 1: Module Exports
# =============================================================================
__all__ = [
    # Server
    'DEFAULT_PORT',
    'DEFAULT_HOST',
    'DEFAULT_ENVIRONMENT',
    'PRODUCTION_ENVIRONMENTS',
    'MAX_BODY_BYTES',
    # Store
    'DEFAULT_DATABASE_NAME',
    'DEFAULT_COLLECTION_NAME',
    'MEMORY_URI_SCHEME',
    # Retry
    'RETRY_DELAY_SECONDS',
    'MAX_RETRY_DELAY_SECONDS',
    'RETRY_BACKOFF_FACTOR',
    'HEARTBEAT_INTERVAL_SECONDS',
    # Timeouts
    'SERVER_SELECTION_TIMEOUT_MS',
    'SOCKET_TIMEOUT_MS',
    'CONNECT_TIMEOUT_MS',
    'MAX_POOL_SIZE',
    'MIN_POOL_SIZE',
    # Submissions
    'STRING_FIELDS',
    'PROFILE_A_REQUIRED',
    'PROFILE_B_REQUIRED',
    'DEFAULT_CORS_ORIGINS',
    'CONNECTION_FAILURE_HINTS',
]

# =============================================================================
# Section 2: Server Constants
# =============================================================================
DEFAULT_PORT: Final[int] = 5000
DEFAULT_HOST: Final[str] = '0.0.0.0'
DEFAULT_ENVIRONMENT: Final[str] = 'development'
PRODUCTION_ENVIRONMENTS: Final[frozenset[str]] = frozenset({'production', 'prod'})
MAX_BODY_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MiB

# =============================================================================
# Section 3: Store Constants
# =============================================================================
DEFAULT_DATABASE_NAME: Final[str] = 'quiz'
DEFAULT_COLLECTION_NAME: Final[str] = 'users'
MEMORY_URI_SCHEME: Final[str] = 'memory://'

# =============================================================================
# Section 4: Retry Constants (seconds)
# =============================================================================
RETRY_DELAY_SECONDS: Final[float] = 10.0
MAX_RETRY_DELAY_SECONDS: Final[float] = 60.0
RETRY_BACKOFF_FACTOR: Final[float] = 1.0
HEARTBEAT_INTERVAL_SECONDS: Final[float] = 10.0

# =============================================================================
# Section 5: Timeout Constants (milliseconds)
# =============================================================================
SERVER_SELECTION_TIMEOUT_MS: Final[int] = 10_000
SOCKET_TIMEOUT_MS: Final[int] = 30_000
CONNECT_TIMEOUT_MS: Final[int] = 10_000
MAX_POOL_SIZE: Final[int] = 10
MIN_POOL_SIZE: Final[int] = 1

# =============================================================================
# Section 6: Collection Constants (immutable)
# =============================================================================
STRING_FIELDS: Final[tuple[str, ...]] = (
    'name',
    'email',
    'phone',
    'school',
    'class',
    'language',
)

PROFILE_A_REQUIRED: Final[tuple[str, ...]] = ('name', 'email', 'phone', 'school', 'language')
PROFILE_B_REQUIRED: Final[tuple[str, ...]] = ('name', 'phone', 'language')

DEFAULT_CORS_ORIGINS: Final[tuple[str, ...]] = (
    'http://localhost:5173',
    'http://localhost:3000',
)

CONNECTION_FAILURE_HINTS: Final[dict[str, str]] = {
    'authentication': 'Check the database username and password',
    'network': 'Check that this host is allowed by the database network access list',
    'timeout': 'Check that the database cluster is running and reachable',
}
