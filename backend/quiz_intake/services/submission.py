"""Submission service for quiz-intake.

Each operation follows the same path: readiness check, then (for submit)
validation, then one store call. Every outcome, including failures, comes
back as a :class:`ServiceResponse` so the HTTP layer only has to serialize.
Nothing is retried within a request.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..core.exceptions import (
    AdminAccessError,
    StoreError,
    StoreTimeoutError,
    SubmissionValidationError,
    classify_error,
)
from ..core.models import ConnectionState, SubmissionProfile
from ..core.protocols import ReadinessProbe, SubmissionStore
from ..infra.instrumentation import Metrics
from ..infra.logging import get_logger
from .access import AdminAuthorizer
from .validator import SubmissionValidator

__all__ = ['ServiceResponse', 'SubmissionService']

logger = get_logger('services.submission')


@dataclass(frozen=True, slots=True)
class ServiceResponse:
    """Status code and JSON body for one handled request."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class SubmissionService:
    """Submit, list and admin-list operations."""

    def __init__(
        self,
        readiness: ReadinessProbe,
        store: SubmissionStore,
        profile: SubmissionProfile,
        *,
        authorizer: AdminAuthorizer | None = None,
        expose_errors: bool = False,
    ) -> None:
        self.readiness = readiness
        self.store = store
        self.profile = profile
        self.validator = SubmissionValidator(profile)
        self.authorizer = authorizer or AdminAuthorizer(None)
        self.expose_errors = expose_errors

    def _unavailable(self) -> ServiceResponse | None:
        state = self.readiness.current_state()
        if state is ConnectionState.CONNECTED:
            return None
        logger.warning('database_unavailable', state=state.value)
        return ServiceResponse(
            503,
            {
                'success': False,
                'message': 'Database not connected',
                'error': 'Please wait for database connection',
                'database': state.value,
            },
        )

    def _store_failure(self, message: str, exc: StoreError) -> ServiceResponse:
        category, strategy = classify_error(exc)
        logger.error(
            'store_request_failed',
            operation=exc.operation,
            error=str(exc),
            category=category,
            strategy=strategy,
            context=exc.context,
        )
        if isinstance(exc, StoreTimeoutError):
            message = f'{message} (database operation timed out)'
        body: dict[str, Any] = {'success': False, 'message': message}
        if self.expose_errors:
            body['error'] = str(exc)
        return ServiceResponse(500, body)

    async def submit(self, payload: Mapping[str, Any]) -> ServiceResponse:
        """Validate and persist one submission."""
        if (unavailable := self._unavailable()) is not None:
            return unavailable

        try:
            draft = self.validator.validate(payload)
        except SubmissionValidationError as exc:
            logger.info('submission_rejected', missing=exc.missing, invalid=exc.invalid)
            body: dict[str, Any] = {
                'success': False,
                'message': 'Missing required fields' if exc.missing else 'Invalid field values',
                'missing': exc.missing,
                'required': list(exc.required),
            }
            if exc.invalid:
                body['invalid'] = exc.invalid
            return ServiceResponse(400, body)

        try:
            record = await self.store.insert(draft)
        except StoreError as exc:
            return self._store_failure('Error saving submission', exc)

        Metrics.record_submission(record.id, self.profile.name, record.metric_field, record.metric_value)
        body = {
            'success': True,
            'message': 'Quiz submitted successfully!',
            'userId': record.id,
        }
        if self.profile.include_summary:
            body['data'] = record.summary()
        else:
            body[record.metric_field] = record.metric_value
        return ServiceResponse(201, body)

    async def list_submissions(self, *, failure_message: str = 'Error fetching submissions') -> ServiceResponse:
        """Return every submission, newest first."""
        if (unavailable := self._unavailable()) is not None:
            return unavailable

        try:
            records = await self.store.list_all()
        except StoreError as exc:
            return self._store_failure(failure_message, exc)

        return ServiceResponse(
            200,
            {
                'success': True,
                'count': len(records),
                'users': [record.to_public() for record in records],
            },
        )

    async def admin_list(self, authorization: str | None) -> ServiceResponse:
        """Same as :meth:`list_submissions`, behind the admin credential check."""
        try:
            self.authorizer.authorize(authorization)
        except AdminAccessError as exc:
            logger.warning('admin_access_denied', status_code=exc.status_code, reason=str(exc))
            return ServiceResponse(exc.status_code, {'success': False, 'message': str(exc)})
        return await self.list_submissions(failure_message='Error fetching admin submissions')

    async def check_database(self) -> ServiceResponse:
        """Round-trip to the store and report its collections."""
        if (unavailable := self._unavailable()) is not None:
            return unavailable

        try:
            ping = await self.store.ping()
            collections = await self.store.describe()
        except StoreError as exc:
            return self._store_failure('Database test failed', exc)

        return ServiceResponse(
            200,
            {
                'success': True,
                'message': 'Database connection test successful',
                'ping': ping,
                'collections': collections,
            },
        )
