# medcamp/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from medcamp.core.config import Settings, get_settings
from medcamp.core.errors import AppError, StoreError, ValidationError
from medcamp.database import build_engine, create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from medcamp.models import user as _user_models  # noqa: F401
from medcamp.models import appointment as _appointment_models  # noqa: F401

# Routers
from medcamp.routers.users import router as users_router
from medcamp.routers.appointments import router as appointments_router

logger = logging.getLogger("uvicorn")
error_logger = logging.getLogger(__name__)


def _lifespan_for(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Verify DB connectivity and create tables.

        Shutdown:
          - No special cleanup needed for sync engine.
        """
        if settings.DB_CREATE_TABLES:
            logger.info("🔄 Startup: Connecting to Supabase Postgres...")
            try:
                engine = build_engine(
                    settings.DATABASE_URL,
                    settings.DB_STATEMENT_TIMEOUT_MS,
                    settings.DB_POOL_SIZE,
                )
                create_db_and_tables(engine)
                logger.info("✅ Startup: DB connection OK, tables verified.")
            except Exception as e:
                logger.error(f"❌ Startup: DB connection FAILED: {e}")
                raise
        yield

    return lifespan


# --- Error rendering: every failure is {"message": ...} ---


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_payload()),
        headers=exc.headers,
    )


async def http_error_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return await app_error_handler(
        request,
        ValidationError(errors=exc.errors()),
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    error_logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    orig = getattr(exc, "orig", None)
    return await app_error_handler(
        request,
        StoreError(error=str(orig or exc)),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error_logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=_lifespan_for(settings),
    )

    # Every dependency (engine, verifier, RLS options) reads this instance.
    app.dependency_overrides[get_settings] = lambda: settings

    # --- CORS configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # API prefix, e.g. /api
    app.include_router(users_router, prefix=settings.API_PREFIX)
    app.include_router(appointments_router, prefix=settings.API_PREFIX)

    @app.get(f"{settings.API_PREFIX}/health")
    def health():
        """Liveness probe; does not touch the database."""
        return {"status": "ok", "message": "Backend is healthy"}

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "medcamp-backend"}

    return app


app = create_app()
