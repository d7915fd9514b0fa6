"""
FastAPI application for Nova.

Usage:
    # Development server with auto-reload
    uvicorn nova.api.main:app --reload --host 127.0.0.1 --port 3000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn nova.api.main:app --reload --port 3000

Only one worker should serve a given set of conversations: sessions
live in process memory.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..assistant import Assistant
from ..config import config
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import chat, health


def configure_logging():
    """Configure logging based on the configured log level."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("nova").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    assistant: Assistant = app.state.assistant
    logger.info("Starting Nova API server")

    logger.info("=" * 60)
    logger.info("MODEL GATEWAY")
    logger.info(f"  Base URL: {assistant.config.gateway.base_url}")
    logger.info(f"  Model: {assistant.gateway.model}")
    logger.info(f"  API key: {'set' if assistant.config.gateway.api_key else 'NOT SET'}")
    logger.info(f"  Max tool rounds: {assistant.orchestrator.max_rounds}")
    logger.info(f"  Turn timeout: {assistant.orchestrator.turn_timeout:g}s")

    logger.info("-" * 60)
    logger.info("REGISTERED TOOLS")
    for spec in assistant.registry.list_specs():
        logger.info(f"  - {spec.name}: {spec.description[:60]}")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(assistant.config.langfuse)
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down Nova API server")
    assistant.close()
    shutdown_tracing()


def create_app(assistant: Optional[Assistant] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        assistant: Assistant to serve; built from configuration if omitted

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Nova API",
        description=(
            "Conversational assistant backend. Relays user text and files to a "
            "language model and lets the model call local tools."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.assistant = assistant or Assistant()

    # CORS middleware - the bundled frontend may be served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        return JSONResponse(
            status_code=400,
            content={"detail": exc.errors()},
        )

    static_dir = Path(app.state.assistant.config.server.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
        logger.debug(f"Serving frontend from {static_dir.resolve()}")

    return app


# Create the application instance
app = create_app()


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "nova.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        workers=1,
    )


if __name__ == "__main__":
    run_server()
