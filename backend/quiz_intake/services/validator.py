"""Submission validation and normalization."""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final

from ..core.constants import STRING_FIELDS
from ..core.exceptions import SubmissionValidationError
from ..core.models import SubmissionDraft, SubmissionProfile

__all__ = ['SubmissionValidator', 'parse_int']

_LEADING_INT: Final[re.Pattern[str]] = re.compile(r'^\s*([+-]?\d+)')

# Values outside the signed 64-bit range cannot be stored as BSON integers.
_INT64_MIN: Final[int] = -(2**63)
_INT64_MAX: Final[int] = 2**63 - 1


class SubmissionValidator:
    """Turns a raw payload into a :class:`SubmissionDraft` for one profile.

    Every required field must be present and non-empty after trimming.
    Failures are collected across all fields before raising, so the caller
    always sees the complete list.

    Example:
        >>> validator = SubmissionValidator(get_profile('B'))
        >>> validator.validate({'name': ' Ana ', 'phone': '555', 'language': 'en'}).name
        'Ana'
    """

    def __init__(self, profile: SubmissionProfile) -> None:
        self.profile = profile

    def validate(self, payload: Mapping[str, Any]) -> SubmissionDraft:
        """Validate and normalize ``payload``.

        Raises:
            SubmissionValidationError: Listing every missing and invalid field.
        """
        missing: list[str] = []
        invalid: list[str] = []
        values: dict[str, str] = {}

        for field_name in STRING_FIELDS:
            try:
                value = _clean_string(payload.get(field_name))
            except TypeError:
                invalid.append(field_name)
                continue
            if not value and self.profile.is_required(field_name):
                missing.append(field_name)
            values[field_name] = value

        answers = payload.get('answers')
        if answers is None:
            answers = []
        elif not isinstance(answers, list):
            invalid.append('answers')

        if missing or invalid:
            # Report missing fields in profile order.
            ordered = [name for name in self.profile.required if name in missing]
            raise SubmissionValidationError(ordered, invalid=invalid, required=self.profile.required)

        metric_field = self.profile.metric_field
        return SubmissionDraft(
            name=values['name'],
            phone=values['phone'],
            email=values['email'].lower(),
            school=values['school'],
            class_name=values['class'],
            language=values['language'],
            answers=answers,
            metric_field=metric_field,
            metric_value=parse_int(payload.get(metric_field)),
        )


def parse_int(value: Any) -> int:
    """Best-effort integer parse; anything unparsable becomes 0.

    Follows leading-integer semantics: ``'42abc'`` is 42, ``3.9`` is 3.
    Results outside the signed 64-bit range are also 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return 0
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return 0
        try:
            parsed = int(match.group(1))
        except ValueError:
            # Digit strings past the interpreter's conversion limit.
            return 0
    else:
        return 0
    return parsed if _INT64_MIN <= parsed <= _INT64_MAX else 0


def _clean_string(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        raise TypeError('boolean is not a string value')
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    raise TypeError(f'{type(value).__name__} is not a string value')
