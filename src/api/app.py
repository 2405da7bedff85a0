"""FastAPI application for the bulk operations service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.bulk_handler import error_body
from src.api.routes import router
from src.models.config import Config
from src.services.database import Database
from src.utils.logger import configure_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger(__name__)

_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the local schema on startup when serving from SQLite."""
    config: Config = app.state.config
    if not config.uses_postgrest:
        db = Database(db_path=config.database_path)
        try:
            db.init_db()
        finally:
            db.close()
    yield


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report unparseable request bodies in the bulk error format."""
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": error.get("msg", "Invalid request")})
    logger.warning("bulk_request_unparseable", path=request.url.path, details=details)
    return JSONResponse(status_code=400, content=error_body("Invalid JSON body", details))


def create_app(config: Config | None = None) -> FastAPI:
    """Build the application; each request gets its own resource client."""
    config = config or Config()  # type: ignore[call-arg]
    configure_logging(config.log_level, json_output=config.log_json)

    app = FastAPI(
        title="Restaurant Bulk Operations",
        description="Bulk delete, activate and deactivate menu products",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=_CORS_HEADERS,
    )
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.include_router(router, prefix=config.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
