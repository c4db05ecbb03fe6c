"""
Retention API - FastAPI application.

Usage:
    python -m dashboard.main

Or:
    uvicorn dashboard.main:create_app --factory
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from core.settings import RetentionSettings
from dashboard.container import RetentionContainer, build_container
from dashboard.routers import board, customers, scoring_config, tags, workflow

logger = logging.getLogger(__name__)

API_PREFIX = "/retention"


def create_app(container: Optional[RetentionContainer] = None) -> FastAPI:
    """
    Build the API.

    Without a container, settings come from the environment and
    the SQL-backed stores are used.
    """
    if container is None:
        settings = RetentionSettings.from_env()
        setup_logging(settings.log_level, settings.log_format)
        container = build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.startup()
        logger.info("Retention API started")
        try:
            yield
        finally:
            await container.shutdown()
            logger.info("Retention API stopped")

    app = FastAPI(
        title="Customer Retention API",
        description="Churn risk scoring, retention workflow and board.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS (Allow local frontend development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include Routers
    app.include_router(board.router, prefix=API_PREFIX)
    app.include_router(workflow.router, prefix=API_PREFIX)
    app.include_router(customers.router, prefix=API_PREFIX)
    app.include_router(scoring_config.router, prefix=API_PREFIX)
    app.include_router(tags.router, prefix=API_PREFIX)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Retention API is running"}

    return app


def main():
    """Run the API server."""
    import uvicorn

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", os.getenv("PORT", "8000")))

    logger.info(f"Starting Retention API on {host}:{port}")

    try:
        uvicorn.run(create_app(), host=host, port=port, log_level="info", access_log=True)
    except Exception as e:
        logger.error(f"Failed to start API: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
