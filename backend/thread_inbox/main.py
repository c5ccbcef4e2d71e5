# backend/thread_inbox/main.py

import logging
import os
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from . import models  # noqa: F401  (register tables on Base.metadata)
from .api import api_message, api_threads, api_uploads
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine, get_db_session

setup_logging()
logger = logging.getLogger(__name__)

_BOOT_TS = time.time()

app = FastAPI(title="Thread Inbox API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)
app.add_middleware(GZipMiddleware, minimum_size=1024)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Return JSON responses for HTTP errors and log them."""
    try:
        response = await call_next(request)
    except StarletteHTTPException as exc:  # return the original status and detail
        logger.error(
            "HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail
        )
        response = ORJSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 so pollers back off to the next tick
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database busy, please retry"},
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging.

    A multipart upload without any image gets a short, UI-friendly message.
    """
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)

    for err in errors:
        if tuple(err.get("loc") or ())[:2] == ("body", "images"):
            return ORJSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content={
                    "detail": {
                        "message": "No file provided",
                        "field_errors": {"images": "required"},
                    }
                },
            )

    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


api_prefix = settings.API_V1_STR  # usually "/api/v1"

app.include_router(api_threads.router, prefix=api_prefix)
app.include_router(api_message.router, prefix=api_prefix)
app.include_router(api_uploads.router, prefix=api_prefix)

# Uploaded chat images; the directory is created lazily by the storage.
if not settings.UPLOAD_URL_PREFIX.startswith("http"):
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )


def _db_ping_sync() -> None:
    with get_db_session() as db:
        db.execute(text("SELECT 1"))


@app.get("/healthz", tags=["health"])
def healthz():
    """Readiness probe: the database answers a trivial query."""
    try:
        _db_ping_sync()
    except OperationalError as exc:
        logger.warning("Health check DB ping failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "reason": "db_unavailable"},
            headers={"Cache-Control": "no-store"},
        )
    return ORJSONResponse(
        content={
            "status": "ok",
            "uptime_s": round(time.time() - _BOOT_TS, 1),
            "pid": os.getpid(),
        },
        headers={"Cache-Control": "no-store"},
    )


@app.on_event("startup")
def create_tables() -> None:
    """Create missing tables for local runs; production uses Alembic."""
    if os.getenv("AUTO_CREATE_TABLES", "1") == "1":
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")


@app.get("/")
async def root():
    return {"message": "Welcome to the Thread Inbox API"}
