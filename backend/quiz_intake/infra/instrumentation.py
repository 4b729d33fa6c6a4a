"""Centralized instrumentation for quiz-intake.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import os
from functools import wraps
from typing import TYPE_CHECKING, Literal, ParamSpec, TypeVar

# Third-party (alphabetical)
import logfire

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI

P = ParamSpec("P")
"""Parameter specification for traced decorators."""

R = TypeVar("R")
"""Type variable for traced return values."""

__all__ = ("configure_instrumentation", "traced", "Metrics")


class Metrics:
    """Centralized metrics recording.

    Provides methods for recording various metric types consistently
    across the application.
    """

    @staticmethod
    def record_api_call(method: str, path: str, status_code: int, duration_ms: float) -> None:
        """Record API call metrics."""
        logfire.info("api_call", method=method, path=path, status_code=status_code, duration_ms=duration_ms)

    @staticmethod
    def record_submission(submission_id: str, profile: str, metric_field: str, metric_value: int) -> None:
        """Record an accepted submission."""
        logfire.info("submission", submission_id=submission_id, profile=profile, metric_field=metric_field, metric_value=metric_value)

    @staticmethod
    def record_connection_attempt(attempt: int, success: bool, duration_ms: float, kind: str | None = None) -> None:
        """Record a store connection attempt."""
        logfire.info("connection_attempt", attempt=attempt, success=success, duration_ms=duration_ms, kind=kind)


def configure_instrumentation(
    *,
    service_name: str = "quiz-intake",
    environment: str | None = None,
    app: FastAPI | None = None,
    send_to_logfire: bool | Literal["if-token-present"] | None = "if-token-present",
) -> None:
    """Configure global instrumentation settings.

    This function should be called once at application startup.

    Args:
        service_name: Name of the service for tracing.
        environment: Deployment environment (development, production).
        app: FastAPI application to instrument, if any.
        send_to_logfire: Whether to send telemetry to Logfire.
    """
    environment = environment or os.getenv("ENVIRONMENT", "development")

    logfire.configure(service_name=service_name, environment=environment, send_to_logfire=send_to_logfire)

    # Instrument common libraries
    logfire.instrument_pymongo()
    logfire.instrument_httpx()
    if app is not None:
        logfire.instrument_fastapi(app)


# =============================================================================
# Span Decorators
# =============================================================================
def traced(name: str | None = None) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Wrap a coroutine function in a Logfire span.

    Failures are tagged on the span and re-raised unchanged.

    Example:
        >>> @traced('store.insert')
        ... async def insert(self, draft: SubmissionDraft) -> SubmissionRecord:
        ...     ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with logfire.span(span_name) as span:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", str(e))
                    span.set_attribute("error_type", type(e).__name__)
                    raise

        return wrapper

    return decorator

