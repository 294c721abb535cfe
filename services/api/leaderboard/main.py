"""FastAPI application entry point.

Ranking API - best score per player, sorted leaderboard.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leaderboard.routes import build_api_router
from leaderboard.schemas import ErrorDetail, ErrorResponse
from leaderboard.services.ranking import (
    ClearDisabledError,
    ConflictError,
    RankingStore,
    StorageError,
    ValidationError,
)
from leaderboard.settings import Settings, get_settings
from leaderboard.stores.database import Database

logger = logging.getLogger("uvicorn.error")


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager.

        Owns the database handle: opened on startup, disposed on shutdown.
        """
        db = Database.from_settings(settings)
        try:
            await db.ping()
            if settings.db_auto_create:
                await db.create_tables()
            logger.info("Database connected")
        except Exception:
            logger.exception("Database init failed")

        app.state.db = db
        app.state.ranking_store = RankingStore(
            db,
            clear_enabled=settings.ranking_clear_enabled,
            conflict_retries=settings.ranking_conflict_retries,
        )

        yield

        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Best-score leaderboard API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON or wrong field types."""
        return _error_response(
            400,
            "BAD_REQUEST",
            "Invalid JSON payload",
            {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]},
        )

    @app.exception_handler(ValidationError)
    async def ranking_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(400, "BAD_REQUEST", str(exc))

    @app.exception_handler(ConflictError)
    async def ranking_conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return _error_response(409, "CONFLICT", str(exc))

    @app.exception_handler(ClearDisabledError)
    async def clear_disabled_handler(request: Request, exc: ClearDisabledError) -> JSONResponse:
        return _error_response(405, "METHOD_NOT_ALLOWED", str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        message = f"{exc}: {exc.__cause__}" if settings.debug and exc.__cause__ else str(exc)
        return _error_response(500, "STORAGE_ERROR", message)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(build_api_router(settings.ranking_path))

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "leaderboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
