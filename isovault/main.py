# isovault/main.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from isovault.api.v1.router import build_api_router_v1
from isovault.core.config import Settings, settings
from isovault.core.logging import setup_logging
from isovault.core.rate_limit import build_limiter, rate_limit_exceeded_handler
from isovault.core.security import TokenRegistry
from isovault.domain.exceptions import (
    DecryptionError,
    FieldValidationError,
    MessageFormatError,
    RecordNotFound,
    StoreError,
)
from isovault.infra.crypto.pan_cipher import build_pan_cipher
from isovault.infra.db.session import build_engine, build_session_factory, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db(app.state.engine)
    logger.info(f"{app.title} iniciado")

    yield

    await app.state.engine.dispose()
    logger.info(f"{app.title} detenido")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.LOG_LEVEL)

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version=app_settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    # Dependencias de proceso: se construyen una vez y son de solo lectura
    app.state.settings = app_settings
    app.state.engine = build_engine(app_settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.pan_cipher = build_pan_cipher(app_settings)
    app.state.token_registry = TokenRegistry(app_settings.API_TOKENS)

    # Rate limiting
    limiter = build_limiter(app_settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["OPTIONS", "GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        max_age=3600,
    )

    _register_exception_handlers(app)

    # Routers
    app.include_router(build_api_router_v1(limiter, app_settings))

    @app.get("/")
    async def root():
        return {"service": app_settings.PROJECT_NAME, "status": "ok"}

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MessageFormatError)
    async def _format_error(request: Request, exc: MessageFormatError):
        logger.warning(f"XML rechazado: {exc.message}")
        return JSONResponse(
            status_code=400,
            content={"message": f"XML parsing error: {exc.message}"},
        )

    @app.exception_handler(FieldValidationError)
    async def _validation_error(request: Request, exc: FieldValidationError):
        logger.warning(f"Mensaje ISO rechazado: campo {exc.field}: {exc.message}")
        return JSONResponse(
            status_code=400,
            content={"message": f"XML parsing error: {exc.message}", "field": exc.field},
        )

    @app.exception_handler(RecordNotFound)
    async def _not_found(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content={"message": "Message not found."})

    @app.exception_handler(DecryptionError)
    async def _decryption_error(request: Request, exc: DecryptionError):
        logger.error(f"PAN almacenado ilegible: {exc.message}")
        return JSONResponse(
            status_code=500,
            content={"message": "Stored PAN failed integrity check.", "error": "pan_integrity_error"},
        )

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error(f"Error de persistencia: {exc.message}")
        return JSONResponse(status_code=503, content={"message": exc.message})


app = create_app()
