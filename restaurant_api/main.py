"""Application factory for the restaurant ordering API.

    uvicorn restaurant_api.main:app

Tests build their own instance with ``create_app(database=...)``.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings, setup_logging
from .db import Database
from .errors import AppError
from .events import EventBus
from .routes import ROUTERS
from .services.auth import purge_expired_tokens
from .storage import ImageStore

logger = logging.getLogger(__name__)


def _describe(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = ".".join(loc)
    return f"{field}: {error.get('msg')}" if field else error.get("msg", "Invalid request")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = _describe(errors[0]) if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(database: Optional[Database] = None, events: Optional[EventBus] = None, images: Optional[ImageStore] = None) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    owns_database = database is None
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting restaurant API %s (%s)", __version__, settings.app_env)
        database.create_all()
        with database.session() as db:
            purge_expired_tokens(db)
        yield
        logger.info("Shutting down")
        if owns_database:
            database.dispose()

    app = FastAPI(title="Restaurant Ordering API", version=__version__, lifespan=lifespan)
    app.state.database = database
    app.state.events = events or EventBus()
    app.state.images = images or ImageStore(settings.upload_dir)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    for router in ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
