"""
Storefront E2E - FastAPI Application

Stores scenarios and runs them, or the built-in suites, against the storefront.
"""

import logging

import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from storefront_e2e import __version__
from storefront_e2e.config import settings
from storefront_e2e.api import api_router
from storefront_e2e.steps import LIBRARIES
from storefront_e2e.suites import SUITES


def configure_logging():
    """JSON lines in production, readable console output otherwise."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = structlog.get_logger()
    logger.info(
        "application_starting",
        version=__version__,
        environment=settings.app_env,
        base_url=settings.base_url,
        step_libraries=list(LIBRARIES),
    )
    yield
    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Storefront E2E",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": "Storefront E2E",
            "version": __version__,
            "base_url": settings.base_url,
            "suites": sorted(SUITES),
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        structlog.get_logger().exception("unhandled_exception", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.is_development else "An error occurred",
            },
        )

    return app


app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "storefront_e2e.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
