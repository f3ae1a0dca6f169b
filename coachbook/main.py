import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from coachbook.core.config import Settings, load_settings, validate_runtime_config
from coachbook.core.exceptions import DomainException, ValidationException
from coachbook.core.logging_config import configure_logging
from coachbook.database import Base, create_db_engine, create_session_factory, ensure_appointment_schema
from coachbook.models import appointment, user  # noqa: F401
from coachbook.routes import appointment_routes

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}
DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def _validation_details(exc: RequestValidationError) -> dict[str, str]:
    details: dict[str, str] = {}
    for error in exc.errors():
        location = '.'.join(str(part) for part in error['loc'] if part != 'body') or 'body'
        details.setdefault(location, error['msg'])
    return details


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    validate_runtime_config(settings)

    engine = create_db_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            Base.metadata.create_all(bind=engine)
            ensure_appointment_schema(engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
        yield
        engine.dispose()

    app = FastAPI(title='coachbook', lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.middleware('http')
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        if settings.security_headers_enabled:
            for header, value in SECURITY_HEADERS.items():
                response.headers.setdefault(header, value)
        return response

    @app.exception_handler(DomainException)
    async def handle_domain_exception(request: Request, exc: DomainException):
        http_exc = exc.to_http_exception()
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        domain_exc = ValidationException('Invalid request', details=_validation_details(exc))
        return await handle_domain_exception(request, domain_exc)

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error('Database error while handling %s %s', request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=503, content={'error': DATABASE_UNAVAILABLE})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == 'Not Found':
            return JSONResponse(status_code=404, content={'error': 'Route not found'})
        return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)

    @app.get('/health')
    def health():
        return {
            'status': 'OK',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'uptime': time.monotonic() - app.state.started_at,
        }

    app.include_router(appointment_routes.router, prefix='/api/appointments')

    return app
