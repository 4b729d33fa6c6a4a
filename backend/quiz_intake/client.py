"""Async HTTP client for the quiz-intake API.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import asyncio
from collections.abc import Mapping
from typing import Any, Final

# Third-party (alphabetical)
import httpx

# Local imports (core first, then alphabetical)
from .core.exceptions import ClientRequestError, SubmissionValidationError
from .core.models import SubmissionProfile, get_profile
from .infra.logging import get_logger
from .services.validator import SubmissionValidator

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("QuizIntakeClient",)

# =============================================================================
# Section 3: Constants
# =============================================================================
DEFAULT_TIMEOUT_SECONDS: Final[float] = 60.0
"""Generous enough to cover a cold start of a sleeping host."""

DEFAULT_WAKE_DELAY_SECONDS: Final[float] = 2.0

logger = get_logger("client")


# =============================================================================
# Section 11: Classes
# =============================================================================
class QuizIntakeClient:
    """Client for the submission endpoints.

    Payloads are validated locally with the same profile rules the server
    applies, so obviously incomplete submissions never leave the browser
    tier. Server and transport failures are raised as
    :class:`ClientRequestError` with a message fit for end users.

    Example:
        >>> async with QuizIntakeClient('https://quiz.example.org', profile='B') as client:
        ...     result = await client.save_submission({'name': 'Ana', 'phone': '555', 'language': 'en'})
        ...     print(result['userId'])
    """

    def __init__(
        self,
        base_url: str,
        *,
        profile: SubmissionProfile | str = "A",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        wake_delay: float = DEFAULT_WAKE_DELAY_SECONDS,
        admin_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.profile = get_profile(profile) if isinstance(profile, str) else profile
        self.validator = SubmissionValidator(self.profile)
        self.wake_delay = wake_delay
        self.admin_token = admin_token
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> QuizIntakeClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Server status
    # -------------------------------------------------------------------------
    async def wake_up(self) -> dict[str, Any]:
        """Hit the root route so a sleeping host starts up."""
        return await self._get("/", failure="Server wake-up failed")

    async def health(self) -> dict[str, Any]:
        return await self._get("/health", failure="Connection test failed")

    # -------------------------------------------------------------------------
    # Submissions
    # -------------------------------------------------------------------------
    async def save_submission(self, payload: Mapping[str, Any], *, wake_first: bool = True) -> dict[str, Any]:
        """Validate ``payload`` locally and submit it.

        Raises:
            ClientRequestError: On missing or invalid fields, or any request failure.
        """
        try:
            draft = self.validator.validate(payload)
        except SubmissionValidationError as exc:
            problems = []
            if exc.missing:
                problems.append(f"Missing required fields: {', '.join(exc.missing)}")
            if exc.invalid:
                problems.append(f"Invalid field values: {', '.join(exc.invalid)}")
            raise ClientRequestError("; ".join(problems), payload=exc.context) from exc

        if wake_first:
            try:
                await self.wake_up()
                await asyncio.sleep(self.wake_delay)
            except ClientRequestError as exc:
                logger.warning("wake_up_failed", error=str(exc))

        return await self._request("POST", "/api/users", json=draft.to_document())

    async def list_submissions(self) -> dict[str, Any]:
        return await self._get("/api/users", failure="Failed to fetch submissions")

    async def list_admin_submissions(self) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.admin_token}"} if self.admin_token else None
        return await self._request("GET", "/api/admin/users", headers=headers)

    async def run_diagnostics(self, *, include_save_test: bool = False) -> dict[str, dict[str, Any]]:
        """Probe each endpoint in turn and report per-step outcomes.

        The save test writes a real record, so it only runs when asked for.
        """
        results: dict[str, dict[str, Any]] = {}

        try:
            results["serverPing"] = {"status": "SUCCESS", "data": await self.wake_up()}
        except ClientRequestError as exc:
            results["serverPing"] = {"status": "FAILED", "error": str(exc)}

        try:
            results["healthCheck"] = {"status": "SUCCESS", "data": await self.health()}
        except ClientRequestError as exc:
            results["healthCheck"] = {"status": "FAILED", "error": str(exc)}

        try:
            listing = await self.list_submissions()
            results["usersEndpoint"] = {"status": "SUCCESS", "count": len(listing.get("users") or [])}
        except ClientRequestError as exc:
            results["usersEndpoint"] = {"status": "FAILED", "error": str(exc)}

        if include_save_test:
            probe = {
                "name": "Diagnostics Probe",
                "email": "diagnostics@example.com",
                "phone": "0000000000",
                "school": "Diagnostics",
                "language": "English",
                "answers": ["A", "B", "C"],
            }
            try:
                saved = await self.save_submission(probe, wake_first=False)
                results["saveTest"] = {"status": "SUCCESS", "userId": saved.get("userId")}
            except ClientRequestError as exc:
                results["saveTest"] = {"status": "FAILED", "error": str(exc)}

        logger.info("diagnostics_completed", results={step: outcome["status"] for step, outcome in results.items()})
        return results

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    async def _get(self, url: str, *, failure: str) -> dict[str, Any]:
        try:
            return await self._request("GET", url)
        except ClientRequestError as exc:
            logger.warning("request_failed", url=url, reason=failure, error=str(exc))
            raise

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ClientRequestError(
                "Request timeout. The server may be starting up; please wait 30 seconds and try again."
            ) from exc
        except httpx.TransportError as exc:
            raise ClientRequestError("Cannot connect to server. Please check your internet connection.") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_success:
            return body
        raise ClientRequestError(_failure_message(response.status_code, body), status_code=response.status_code, payload=body)


# =============================================================================
# Section 12: Functions
# =============================================================================
def _failure_message(status_code: int, body: dict[str, Any]) -> str:
    if status_code == 503:
        return "Database connection issue. Please try again in a moment."
    if status_code == 404:
        return "API endpoint not found. Backend deployment issue."
    if status_code in (401, 403):
        return body.get("message") or "Access denied."
    if status_code >= 500:
        return "Server error. Please try again later."
    return body.get("message") or f"Request failed with status {status_code}."
