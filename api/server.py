"""
FastAPI application entry point.

Sets up the application with:
- Lifespan management (startup/shutdown)
- Route registration
- Middleware configuration
- Error handling
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import set_manager
from api.routes import dispatch_router, health_router
from core.config import settings
from core.logging import configure_logging, get_logger
from manager.manager import get_manager


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan.

    Startup: configure logging, build the driver manager from settings
    Shutdown: close every resolved driver
    """
    configure_logging()

    logger.info(
        "Starting driver dispatch service...",
        default_driver=settings.default_driver,
        drivers=list(settings.drivers),
    )

    manager = get_manager()
    set_manager(manager)

    logger.info(
        "Driver dispatch service started",
        host=settings.server_host,
        port=settings.server_port,
        execute_timeout=settings.timeout,
    )

    yield

    logger.info("Shutting down driver dispatch service...")
    await manager.close()
    set_manager(None)
    logger.info("Driver dispatch service stopped")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    app = FastAPI(
        title="Driver Dispatch",
        description=(
            "Named driver resolution with fluent, single-use commands.\n\n"
            "Drivers: SMTP, filesystem, S3-compatible object store, append-only log, memory"
        ),
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(dispatch_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.server:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
