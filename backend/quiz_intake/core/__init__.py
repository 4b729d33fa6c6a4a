"""Core domain types, settings and errors for quiz-intake.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Local imports (core first, then alphabetical)
from .exceptions import (
    AdminAccessError,
    ClientRequestError,
    ConfigurationError,
    DatabaseConnectionError,
    QuizIntakeError,
    RouteNotFoundError,
    StoreError,
    StoreTimeoutError,
    SubmissionValidationError,
)
from .models import PROFILES, ConnectionState, SubmissionDraft, SubmissionProfile, SubmissionRecord, get_profile
from .settings import ServiceSettings, load_settings

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "AdminAccessError",
    "ClientRequestError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "QuizIntakeError",
    "RouteNotFoundError",
    "StoreError",
    "StoreTimeoutError",
    "SubmissionValidationError",
    "PROFILES",
    "ConnectionState",
    "SubmissionDraft",
    "SubmissionProfile",
    "SubmissionRecord",
    "get_profile",
    "ServiceSettings",
    "load_settings",
)
