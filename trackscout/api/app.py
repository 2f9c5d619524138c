"""
FastAPI application factory.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import ScoutConfig, configure_logging, scout_config
from ..errors import DiscoveryError, InvalidArgument
from ..service import DiscoveryService
from .responses import error_from_exception
from .routers import health_router, music_router

logger = logging.getLogger(__name__)

API_TITLE = "trackscout"
API_DESCRIPTION = "Similar-track discovery over audio embeddings"
API_VERSION = "0.1.0"


def create_app(
    service: Optional[DiscoveryService] = None,
    config: Optional[ScoutConfig] = None,
) -> FastAPI:
    """
    Create the API application.

    Args:
        service: Prebuilt service (tests inject one); when omitted the
            lifespan builds it from ``config`` and closes it on shutdown
        config: Configuration; the global instance when omitted
    """
    config = config or scout_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        owned = None
        if app.state.service is None:
            logger.info("Starting trackscout API...")
            config.validate_config()
            owned = DiscoveryService.from_config(config)
            app.state.service = owned

        logger.info("API startup complete")
        yield

        if owned is not None:
            await owned.close()
            app.state.service = None
        logger.info("API shutdown complete")

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(DiscoveryError)
    async def discovery_error_handler(request: Request, exc: DiscoveryError):
        body, status = error_from_exception(exc)
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ())) or "request"
        message = f"Invalid {location}: {first.get('msg', 'invalid value')}"
        body, status = error_from_exception(InvalidArgument(message))
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        body, status = error_from_exception(exc)
        return JSONResponse(status_code=status, content=body)

    app.include_router(health_router)
    app.include_router(music_router)

    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn --factory trackscout.api.app:build_app``."""
    configure_logging(scout_config.LOG_LEVEL)
    return create_app()
