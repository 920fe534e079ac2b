"""
FastAPI Application

Main FastAPI application for Stella with:
- Lifespan management for the database connector and the pipeline
- CORS middleware for the dashboard front end
- Exception handlers that always answer with a JSON envelope

Usage:
    uvicorn stella.api.main:app --reload --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stella import __version__
from stella.api.routes import chat, health, operations
from stella.config import get_settings
from stella.connectors.postgres import PostgresConnector
from stella.models.api import ErrorResponse
from stella.operations.catalog import build_default_catalog
from stella.pipeline.orchestrator import AssistantPipeline

logger = logging.getLogger(__name__)

# Global state for pipeline and components
app_state = {
    "pipeline": None,
    "connector": None,
    "catalog": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - Operation catalog
    - Database connector (PostgreSQL)
    - Pipeline orchestrator
    """
    config = get_settings()
    config.logging.configure()
    logger.info(f"Starting {config.app_name} API server...")

    try:
        app_state["catalog"] = build_default_catalog()

        logger.info("Initializing database connector...")
        if config.database.url:
            connector = PostgresConnector.from_url(
                str(config.database.url),
                pool_size=config.database.pool_size,
                timeout=config.database.pool_timeout,
                statement_timeout=config.database.statement_timeout,
            )
            await connector.connect()
            app_state["connector"] = connector
        else:
            logger.warning("DATABASE_URL not set; database connector not initialized.")
            app_state["connector"] = None

        logger.info("Initializing pipeline orchestrator...")
        if app_state["connector"] is not None:
            app_state["pipeline"] = AssistantPipeline(
                connector=app_state["connector"],
                catalog=app_state["catalog"],
                settings=config,
            )
        else:
            logger.warning("Pipeline not initialized; database is missing.")
            app_state["pipeline"] = None

        logger.info(f"{config.app_name} API server started successfully")

        yield

    finally:
        logger.info(f"Shutting down {config.app_name} API server...")

        if app_state["connector"]:
            try:
                await app_state["connector"].close()
                logger.info("Database connector closed")
            except Exception as e:
                logger.error(f"Error closing connector: {e}")

        app_state["pipeline"] = None
        app_state["connector"] = None


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        message = str(error.get("msg", "Invalid request"))
        messages.append(message.removeprefix("Value error, "))
    return "; ".join(messages) or "Invalid request"


def create_app() -> FastAPI:
    config = get_settings()

    app = FastAPI(
        title=f"{config.app_name} API",
        description="Business assistant that answers sales questions in plain language",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials="*" not in config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _validation_message(exc)
        logger.warning(f"Invalid request to {request.url.path}: {message}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(content=message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(content=f"I'm sorry, I encountered an error: {exc}").model_dump(),
        )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
    app.include_router(operations.router, prefix="/api/v1", tags=["operations"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": f"{config.app_name} API",
            "version": __version__,
            "description": "Plain-language questions over the sales dashboard database",
            "docs": "/docs",
        }

    return app


app = create_app()


def get_catalog():
    """Get the operation catalog, building the default one on first use."""
    if app_state["catalog"] is None:
        app_state["catalog"] = build_default_catalog()
    return app_state["catalog"]
