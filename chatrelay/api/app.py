"""FastAPI application for the chat relay.

Builds the app with its lifespan hook, CORS for the browser client, the
relay router and a health check.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatrelay import __version__
from chatrelay.api.chat import method_not_allowed_handler
from chatrelay.api.chat import router as chat_router
from chatrelay.upstream.client import close_upstream_client
from chatrelay.upstream.config import get_upstream_config

logger = logging.getLogger(__name__)

SERVICE_NAME = "chatrelay"


def _log_upstream_target() -> None:
    try:
        config = get_upstream_config()
    except ValidationError:
        logger.warning("No upstream API key configured; POST /chat will answer 500")
        return
    logger.info(f"Relaying to {config.completions_url}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Report the upstream target on startup, release its connections on shutdown.

    The upstream client itself is created lazily by the first relay call.
    """
    logger.info(f"Chat relay API {__version__} starting")
    _log_upstream_target()
    try:
        yield
    finally:
        await close_upstream_client()
        logger.info("Chat relay API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Chat Relay API",
        description=(
            "Streaming relay between the chat UI and an OpenAI-compatible "
            "completion API. Forwards server-sent events verbatim as the "
            "model generates them."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # The browser client may be served from another origin in separate mode.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    application.include_router(chat_router)
    application.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": SERVICE_NAME}

    return application


app = create_app()
