"""FastAPI application - alpha wallet copy trader.

Hosts the copy trading pipeline inside the application lifespan and
exposes liveness and status endpoints.

Run with:
    alphacopy            # console script
    uvicorn alphacopy.main:app
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from alphacopy import __version__
from alphacopy.bootstrap import Container, build_container
from alphacopy.config import Settings, get_logger, get_settings, setup_logging
from alphacopy.domain.shared import DomainException
from alphacopy.presentation.api import dependencies
from alphacopy.presentation.api.routes import status_router

logger = get_logger(__name__)

ContainerFactory = Callable[[Settings], Awaitable[Container]]


def create_app(
    settings: Settings | None = None,
    container_factory: ContainerFactory = build_container,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to run with (defaults to environment settings).
        container_factory: Builds the component graph at startup.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: build container, start pipeline. Shutdown: stop and release."""
        logger.info("application.startup.started", environment=settings.environment)

        container = await container_factory(settings)
        await container.service.start()
        dependencies.init_dependencies(container.service)
        app.state.container = container

        logger.info("application.startup.completed")

        yield  # Application running

        logger.info("application.shutdown.started")
        dependencies.init_dependencies(None)
        await container.aclose()
        logger.info("application.shutdown.completed")

    app = FastAPI(
        title=settings.app_name,
        description="Copy trading core for Solana alpha wallets",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        logger.warning("api.domain_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": type(exc).__name__, "message": exc.message},
        )

    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check (liveness)",
    )
    async def health_check() -> dict:
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    app.include_router(status_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "alphacopy.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
