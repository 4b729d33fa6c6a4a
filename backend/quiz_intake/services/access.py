"""Admin access checks."""
from __future__ import annotations

import secrets

from pydantic import SecretStr

from ..core.exceptions import AdminAccessError

__all__ = ['AdminAuthorizer']

_BEARER_PREFIX = 'bearer '


class AdminAuthorizer:
    """Checks the bearer token presented to admin routes.

    With no token configured, admin access is refused outright rather than
    left open.
    """

    def __init__(self, token: SecretStr | None) -> None:
        self._token = token

    @property
    def enabled(self) -> bool:
        return self._token is not None

    def authorize(self, authorization: str | None) -> None:
        """Validate an ``Authorization`` header value.

        Raises:
            AdminAccessError: 401 when no credentials were sent, 403 when
                they do not match or admin access is not configured.
        """
        if self._token is None:
            raise AdminAccessError('Admin access is not configured', status_code=403)
        if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
            raise AdminAccessError('Admin credentials required', status_code=401)
        presented = authorization[len(_BEARER_PREFIX):].strip()
        if not secrets.compare_digest(presented.encode(), self._token.get_secret_value().encode()):
            raise AdminAccessError('Invalid admin credentials', status_code=403)
