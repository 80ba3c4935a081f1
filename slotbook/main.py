import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slotbook.api.routes import auth, booking_links, bookings, public_booking, public_manage, templates
from slotbook.core.config import _ENV_FILE, Settings, settings
from slotbook.core.db import Database
from slotbook.core.exceptions import DomainException
from slotbook.storage.memory import MemoryBookingStore

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Authorization", "Content-Type"]


def _cors_headers(app_settings: Settings, origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
    }
    origins = app_settings.cors_origins_list
    if origin and origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    elif origins:
        headers["Access-Control-Allow-Origin"] = origins[0]
    return headers


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_settings: Settings = app.state.settings
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if app_settings.storage_backend == "memory":
        logger.info("Storage: in-memory (data is lost on restart)")
        app.state.memory_store = MemoryBookingStore()
        yield
        return

    db = Database(app_settings)
    app.state.db = db
    if app_settings.create_tables_on_startup:
        await db.create_all()
    logger.info("Storage: SQL (%s)", db.engine.url.get_backend_name())
    if not app_settings.admin_password_hash:
        logger.warning("ADMIN_PASSWORD_HASH is not set; admin login is disabled")
    if not app_settings.email_enabled:
        logger.warning("SMTP not configured; booking emails will not be sent")
    try:
        yield
    finally:
        await db.dispose()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    app = FastAPI(
        title="SlotBook API",
        description="Backend for SlotBook: schedule templates, booking links, public booking",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.memory_store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    for module in (auth, templates, booking_links, bookings, public_booking, public_manage):
        app.include_router(module.router, prefix="/api/v1")

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        http_exc = exc.to_http_exception()
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail},
            headers=_cors_headers(app_settings, request.headers.get("origin")),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
        headers = _cors_headers(app_settings, request.headers.get("origin"))
        if isinstance(exc, HTTPException):
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": f"{type(exc).__name__}: {exc}"},
            headers=headers,
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
