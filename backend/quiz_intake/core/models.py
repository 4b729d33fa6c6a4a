"""Core domain models for quiz-intake.

These models represent the submission entity in its draft and persisted
forms, the submission profiles that decide which fields are required, and
the readiness state of the store connection.

Drafts and records are immutable (frozen=True) so a record handed to one
caller cannot be changed under another.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Final, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import PROFILE_A_REQUIRED, PROFILE_B_REQUIRED
from .types import FieldName, MetricField, ProfileName, SubmissionId

__all__ = [
    # Enums
    'ConnectionState',
    # Profile models
    'SubmissionProfile',
    'PROFILES',
    'get_profile',
    # Submission models
    'SubmissionDraft',
    'SubmissionRecord',
    # Helpers
    'isoformat_utc',
    'utc_now',
]


# =============================================================================
# Enumerations
# =============================================================================
class ConnectionState(str, Enum):
    """Reachability of the document store."""

    DISCONNECTED = 'Disconnected'
    CONNECTING = 'Connecting'
    CONNECTED = 'Connected'
    DISCONNECTING = 'Disconnecting'


# =============================================================================
# Profile Models
# =============================================================================
class SubmissionProfile(BaseModel):
    """Versioned rule set for incoming submissions.

    A deployment runs with exactly one profile. The profile decides the
    required field set, which metric field is stored, and whether the
    submit response echoes a summary of the created record.
    """

    model_config = ConfigDict(frozen=True)

    name: ProfileName
    required: tuple[FieldName, ...] = Field(..., min_length=1)
    metric_field: MetricField = 'score'
    include_summary: bool = False

    @field_validator('required')
    @classmethod
    def validate_required(cls, v: tuple[FieldName, ...]) -> tuple[FieldName, ...]:
        """Identity and language fields are required by every profile."""
        for field_name in ('name', 'phone', 'language'):
            if field_name not in v:
                raise ValueError(f'{field_name} must be required by every profile')
        return v

    def is_required(self, field_name: FieldName) -> bool:
        return field_name in self.required


PROFILES: Final[dict[str, SubmissionProfile]] = {
    'A': SubmissionProfile(name='A', required=PROFILE_A_REQUIRED, metric_field='score'),
    'B': SubmissionProfile(
        name='B',
        required=PROFILE_B_REQUIRED,
        metric_field='completionTime',
        include_summary=True,
    ),
}


def get_profile(name: str, *, metric_field: MetricField | None = None) -> SubmissionProfile:
    """Return the named profile, optionally overriding its metric field."""
    try:
        profile = PROFILES[name.upper()]
    except KeyError:
        raise ValueError(f'Unknown submission profile: {name!r} (expected one of {sorted(PROFILES)})') from None
    if metric_field is not None and metric_field != profile.metric_field:
        profile = profile.model_copy(update={'metric_field': metric_field})
    return profile


# =============================================================================
# Submission Models
# =============================================================================
class SubmissionDraft(BaseModel):
    """Validated and normalized submission awaiting persistence.

    Carries no identifier or timestamp; both are assigned by the store.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: str = ''
    school: str = ''
    class_name: str = Field(default='', alias='class')
    language: str = Field(..., min_length=1)
    answers: list[Any] = Field(default_factory=list)
    metric_field: MetricField = 'score'
    metric_value: int = 0

    def to_document(self) -> dict[str, Any]:
        """Document fields as stored, without ``_id`` and ``submittedAt``."""
        return {
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'school': self.school,
            'class': self.class_name,
            'language': self.language,
            'answers': list(self.answers),
            self.metric_field: self.metric_value,
        }


class SubmissionRecord(SubmissionDraft):
    """Persisted submission with its store-assigned identity."""

    id: SubmissionId = Field(..., min_length=1)
    submitted_at: datetime

    @field_validator('submitted_at')
    @classmethod
    def validate_submitted_at_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps coming back from the store are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @classmethod
    def from_draft(cls, draft: SubmissionDraft, *, record_id: SubmissionId, submitted_at: datetime) -> Self:
        return cls(**draft.model_dump(), id=record_id, submitted_at=submitted_at)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Build a record from a stored document."""
        if 'completionTime' in document and 'score' not in document:
            metric_field: MetricField = 'completionTime'
        else:
            metric_field = 'score'
        return cls(
            id=str(document['_id']),
            submitted_at=document['submittedAt'],
            name=document['name'],
            phone=document['phone'],
            email=document.get('email') or '',
            school=document.get('school') or '',
            class_name=document.get('class') or '',
            language=document['language'],
            answers=list(document.get('answers') or []),
            metric_field=metric_field,
            metric_value=int(document.get(metric_field) or 0),
        )

    def to_public(self) -> dict[str, Any]:
        """JSON-ready representation used by the list endpoints."""
        return {
            '_id': self.id,
            **self.to_document(),
            'submittedAt': isoformat_utc(self.submitted_at),
        }

    def summary(self) -> dict[str, Any]:
        """Identifying subset echoed back by the submit endpoint."""
        return {
            '_id': self.id,
            'name': self.name,
            'language': self.language,
            self.metric_field: self.metric_value,
            'submittedAt': isoformat_utc(self.submitted_at),
        }


def isoformat_utc(dt: datetime | None = None) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision stores keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
