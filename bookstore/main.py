"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookstore.api.admin_routes import router as admin_router
from bookstore.api.public_routes import assets_router
from bookstore.api.public_routes import router as public_router
from bookstore.api.schemas import ErrorResponse
from bookstore.core.config import Settings, get_settings
from bookstore.core.errors import BookstoreError
from bookstore.infrastructure.database.connection import Database

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def bookstore_error_handler(request: Request, exc: BookstoreError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(400, f"Invalid request: {details}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the application.

    *settings* defaults to the environment; *http_client* (tests) replaces
    the shared outbound client and is not closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info("Starting bookstore application")
        database = Database(settings.database_url)
        await database.init_models()
        logger.info("Database initialized")

        owns_client = http_client is None
        app.state.settings = settings
        app.state.database = database
        app.state.http_client = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
        try:
            yield
        finally:
            logger.info("Shutting down bookstore application")
            if owns_client:
                await app.state.http_client.aclose()
            await database.dispose()

    app = FastAPI(
        title="Bookstore",
        description="Secondhand bookstore catalogue and ingestion API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(public_router)
    app.include_router(admin_router)
    app.include_router(assets_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bookstore.main:app", host="0.0.0.0", port=8000)
