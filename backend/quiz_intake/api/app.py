"""FastAPI application for quiz submissions.

Routes translate :class:`~quiz_intake.services.ServiceResponse` values into
JSON responses. Every error leaves the service in the same
``{success: false, message}`` envelope.
"""
from __future__ import annotations

import json
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .._version import __version__
from ..core.exceptions import RouteNotFoundError, classify_error
from ..core.models import isoformat_utc
from ..core.protocols import SubmissionStore
from ..core.settings import ServiceSettings, load_settings
from ..infra.instrumentation import Metrics
from ..infra.logging import get_logger
from ..services import AdminAuthorizer, ServiceResponse, SubmissionService
from ..storage import ConnectionManager, create_store
from .cors import OriginPolicy

__all__ = ['create_app', 'get_service']

logger = get_logger('api')


class _BadRequestBody(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def get_service(request: Request) -> SubmissionService:
    """Dependency returning the app's submission service."""
    return request.app.state.service


def create_app(
    settings: ServiceSettings | None = None,
    *,
    connection: ConnectionManager | None = None,
    store: SubmissionStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings; read from the environment when omitted.
        connection: Connection manager; built from ``settings`` when omitted.
        store: Submission store; chosen to match the connection backend when omitted.
    """
    settings = settings or load_settings()
    connection = connection or ConnectionManager.from_settings(settings)
    store = store or create_store(connection, collection_name=settings.collection_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            'server_starting',
            environment=settings.environment,
            port=settings.port,
            profile=settings.profile.name,
            database_configured=settings.mongodb_uri is not None,
            admin_enabled=app.state.service.authorizer.enabled,
        )
        await connection.start()
        try:
            yield
        finally:
            await connection.stop()
            logger.info('server_stopped')

    app = FastAPI(
        title='Quiz Intake',
        description='Quiz submission ingestion service',
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.connection = connection
    app.state.started_at = time.monotonic()
    app.state.service = SubmissionService(
        connection,
        store,
        settings.profile,
        authorizer=AdminAuthorizer(settings.admin_token),
        expose_errors=not settings.is_production,
    )

    OriginPolicy.from_settings(settings).install(app)

    @app.middleware('http')
    async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        Metrics.record_api_call(request.method, request.url.path, response.status_code, (time.perf_counter() - started) * 1000)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # A known path under an unrouted method is still an unknown route.
        if exc.status_code in (404, 405):
            error = RouteNotFoundError(_requested_path(request))
            logger.info('route_not_found', path=error.path, method=request.method)
            return JSONResponse(status_code=404, content={'success': False, 'message': 'Route not found', 'path': error.path})
        return JSONResponse(
            status_code=exc.status_code,
            content={'success': False, 'message': str(exc.detail)},
            headers=getattr(exc, 'headers', None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        category, strategy = classify_error(exc)
        logger.exception(
            'server_error',
            path=request.url.path,
            error_type=type(exc).__name__,
            category=category,
            strategy=strategy,
        )
        content: dict[str, Any] = {'success': False, 'message': 'Internal server error'}
        if not settings.is_production:
            content['error'] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get('/')
    async def root() -> dict[str, Any]:
        """Service banner with database state."""
        return {
            'message': 'Quiz intake server is running!',
            'timestamp': isoformat_utc(),
            'database': connection.current_state().value,
            'environment': settings.environment,
            'version': __version__,
        }

    @app.get('/health')
    async def health_check(request: Request) -> JSONResponse:
        """Health check with database state and uptime."""
        try:
            state = connection.current_state()
        except Exception as exc:
            logger.exception('health_check_failed', error=str(exc))
            return JSONResponse(status_code=500, content={'status': 'ERROR', 'message': 'Unable to read database state'})
        return JSONResponse(
            content={
                'status': 'OK',
                'database': state.value,
                'timestamp': isoformat_utc(),
                'port': settings.port,
                'uptime': round(time.monotonic() - request.app.state.started_at, 3),
            }
        )

    @app.get('/test-db')
    async def test_database(service: SubmissionService = Depends(get_service)) -> JSONResponse:
        """Round-trip to the database."""
        return _respond(await service.check_database())

    @app.post('/api/users')
    async def submit(request: Request, service: SubmissionService = Depends(get_service)) -> JSONResponse:
        """Accept one quiz submission."""
        try:
            payload = await _read_json_object(request, settings.max_body_bytes)
        except _BadRequestBody as exc:
            return JSONResponse(status_code=exc.status_code, content={'success': False, 'message': exc.message})
        return _respond(await service.submit(payload))

    @app.get('/api/users')
    async def list_submissions(service: SubmissionService = Depends(get_service)) -> JSONResponse:
        """List every submission, newest first."""
        return _respond(await service.list_submissions())

    @app.get('/api/admin/users')
    async def admin_list_submissions(
        authorization: str | None = Header(default=None),
        service: SubmissionService = Depends(get_service),
    ) -> JSONResponse:
        """List every submission for admin views."""
        response = await service.admin_list(authorization)
        headers = {'WWW-Authenticate': 'Bearer'} if response.status_code == 401 else None
        return _respond(response, headers=headers)

    return app


def _respond(response: ServiceResponse, *, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=response.status_code, content=response.body, headers=headers)


def _requested_path(request: Request) -> str:
    query = request.url.query
    return f'{request.url.path}?{query}' if query else request.url.path


async def _read_json_object(request: Request, max_bytes: int) -> dict[str, Any]:
    declared = request.headers.get('content-length')
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise _BadRequestBody(413, 'Request body too large')
    body = await request.body()
    if len(body) > max_bytes:
        raise _BadRequestBody(413, 'Request body too large')
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except ValueError:
        raise _BadRequestBody(400, 'Invalid JSON body') from None
    if not isinstance(payload, dict):
        raise _BadRequestBody(400, 'Request body must be a JSON object')
    return payload
