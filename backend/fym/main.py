# /backend/fym/main.py
# uvicorn fym.main:create_app --factory
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fym.api.routers import (
    admin, appointments, assessments, auth, buddies, courses, journals, mood, notifications,
    organizations, rants, therapists, user,
)
from fym.config import Settings, get_settings
from fym.errors import DuplicateEmailError, StorageError
from fym.security import configure_password_hashing
from fym.storage import create_storage
from fym.storage.base import Storage

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _install_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                            content={"message": "Invalid request data", "details": details})

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email(request: Request, exc: DuplicateEmailError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "User already exists"})

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("storage error on %s %s: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        content = {"message": "Internal server error"}
        if not settings.is_production:
            content["error"] = exc.detail or exc.message
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        content = {"message": "Internal server error"}
        if not settings.is_production:
            content["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)
    configure_password_hashing(settings.password_hash_rounds)
    storage = storage or create_storage(settings)
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await storage.init()
        logger.info("storage ready (%s), environment=%s", storage.name, settings.environment)
        try:
            yield
        finally:
            await storage.close()

    app = FastAPI(title="For Your Mind API", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_exception_handlers(app, settings)

    for module in (auth, user, notifications, journals, mood, rants, therapists, appointments,
                   courses, organizations, admin, buddies, assessments):
        app.include_router(module.router, prefix=API_PREFIX)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - started, 3),
            "environment": settings.environment,
            "storage": storage.name,
            "version": settings.version,
        }

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz():
        return "OK"

    @app.get("/ready")
    async def ready():
        return {"ready": True, "storage": storage.name}

    return app
