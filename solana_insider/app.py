"""
Main entry point for the Solana Insider API.

This module initializes the FastAPI application, sets up middleware,
configures routes, and manages the application lifecycle.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solana_insider import __version__
from solana_insider.api.error_handlers import register_error_handlers
from solana_insider.api.routes import router
from solana_insider.config import AppConfig, get_server_config
from solana_insider.logging_config import RequestIdMiddleware, configure_logging, get_logger
from solana_insider.services.context import AnalysisContext, close_context, create_context

logger = get_logger(__name__)


def create_application(
    context: Optional[AnalysisContext] = None,
    config: Optional[AppConfig] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context: Pre-built analysis context; the lifespan builds and owns one if None
        config: Application configuration used when building the context

    Returns:
        The configured FastAPI application
    """
    server_config = config.server if config else get_server_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(server_config.log_level)
        owned = getattr(app.state, "context", None) is None
        if owned:
            app.state.context = create_context(config)
        logger.info(f"Solana Insider {__version__} started ({server_config.environment})")

        yield

        logger.info("Application shutting down...")
        if owned:
            await close_context(app.state.context)
            app.state.context = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Solana Insider API",
        description="Insider wallet and rug-pull analysis for Solana SPL tokens",
        version=__version__,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", tags=["system"])
    async def health_check() -> Dict[str, Any]:
        """Liveness check."""
        return {"status": "Server is running", "version": __version__}

    return app
