"""Application services."""
from __future__ import annotations

from .access import AdminAuthorizer
from .submission import ServiceResponse, SubmissionService
from .validator import SubmissionValidator, parse_int

__all__ = [
    'AdminAuthorizer',
    'ServiceResponse',
    'SubmissionService',
    'SubmissionValidator',
    'parse_int',
]
