import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streampromo.api.v1 import api_router
from streampromo.core.codes import CodeGenerator
from streampromo.core.config import settings
from streampromo.core.errors import CapacityExhaustedError, ConflictError, NotFoundError, PromoError
from streampromo.core.logging_config import configure_logging
from streampromo.core.sentry import init_sentry
from streampromo.core.startup_checks import validate_production_settings
from streampromo.db.session import SessionLocal
from streampromo.middleware import RequestLoggingMiddleware
from streampromo.schemas.envelope import ErrorEnvelope
from streampromo.services.store import EntityStore

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


def _envelope(status_code: int, message: str, data=None) -> JSONResponse:
    payload = ErrorEnvelope(status=status_code, message=message, data=data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload.model_dump()))


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_production_settings()
    if settings.create_schema_on_startup:
        # SchemaError propagates and aborts startup.
        await app.state.store.create_schema()
    yield


def get_application() -> FastAPI:
    configure_logging(settings.log_json, settings.log_level)
    init_sentry()
    tags_metadata = [
        {"name": "discounts", "description": "Discount codes linked to streams"},
        {"name": "gifts", "description": "Gift codes and redemption"},
        {"name": "streams", "description": "Live-stream sessions"},
    ]
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.store = EntityStore(SessionLocal, timeout=settings.store_timeout_seconds)
    app.state.codes = CodeGenerator()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.exception_handler(CapacityExhaustedError)
    async def capacity_exhausted_handler(request: Request, exc: CapacityExhaustedError):
        return _envelope(status.HTTP_412_PRECONDITION_FAILED, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _envelope(status.HTTP_404_NOT_FOUND, f"{exc.kind} not found")

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        logger.warning("Conflict on %s %s, Reason: %s", request.method, request.url.path, exc)
        return _envelope(status.HTTP_409_CONFLICT, "Conflict, please retry")

    @app.exception_handler(PromoError)
    async def promo_error_handler(request: Request, exc: PromoError):
        logger.error(
            "Error while handling %s %s, Reason: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope(422, "Invalid request", jsonable_encoder(exc.errors()))

    return app


app = get_application()
