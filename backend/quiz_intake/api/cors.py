"""Cross-origin policy for the HTTP API."""
from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..core.settings import ServiceSettings
from ..infra.logging import get_logger

__all__ = ['OriginPolicy']

logger = get_logger('api.cors')

_ALLOWED_METHODS = ['GET', 'POST', 'OPTIONS']
_ALLOWED_HEADERS = ['Content-Type', 'Authorization']


class OriginPolicy:
    """Static allow-list of browser origins.

    Origins match exactly or against ``origin_regex`` (full match). Requests
    from any other origin are served without CORS headers, so browsers
    block them, and the rejection is logged. ``allow_all`` opts into the
    permissive behavior explicitly.
    """

    def __init__(self, origins: Iterable[str], *, origin_regex: str | None = None, allow_all: bool = False) -> None:
        self.origins = frozenset(origin.rstrip('/') for origin in origins)
        self.origin_regex = origin_regex
        self.allow_all = allow_all
        self._pattern = re.compile(origin_regex) if origin_regex else None

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> OriginPolicy:
        return cls(settings.cors_origins, origin_regex=settings.cors_origin_regex, allow_all=settings.cors_allow_all)

    def is_allowed(self, origin: str) -> bool:
        if self.allow_all or origin in self.origins:
            return True
        return bool(self._pattern and self._pattern.fullmatch(origin))

    def install(self, app: FastAPI) -> None:
        """Add the CORS middleware and rejection logging to ``app``."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=['*'] if self.allow_all else sorted(self.origins),
            allow_origin_regex=None if self.allow_all else self.origin_regex,
            allow_credentials=False,
            allow_methods=_ALLOWED_METHODS,
            allow_headers=_ALLOWED_HEADERS,
        )
        app.middleware('http')(self._log_rejections)

    async def _log_rejections(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        origin = request.headers.get('origin')
        if origin and not self.is_allowed(origin):
            logger.warning('cors_origin_rejected', origin=origin, method=request.method, path=request.url.path)
        return await call_next(request)
