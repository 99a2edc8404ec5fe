"""FastAPI application factory for the gcproxy API server."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gcproxy import __version__
from gcproxy.api.middleware.errors import setup_error_handlers
from gcproxy.api.routes.chat import router as chat_router
from gcproxy.api.routes.health import router as health_router
from gcproxy.api.routes.models import router as models_router
from gcproxy.config.settings import Settings, get_settings
from gcproxy.core.http_client import HTTPClientFactory
from gcproxy.core.logging import get_logger, resolve_json_logs, setup_logging
from gcproxy.services.chat_service import ChatService
from gcproxy.services.gemini_client import GeminiApiClient, ModelClient
from gcproxy.services.image_fetcher import ImageFetcher


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the shared HTTP client and services; close them on shutdown."""
    settings: Settings = app.state.settings

    logger.info(
        "server_start",
        host=settings.server.host,
        port=settings.server.port,
        url=settings.server_url,
        model=settings.gemini.model,
        category="lifecycle",
    )
    if settings.gemini.api_key is None:
        logger.warning("gemini_api_key_missing", category="config")

    http_client = HTTPClientFactory.create_client(settings=settings)
    model_client: ModelClient = app.state.model_client or GeminiApiClient(
        http_client, settings.gemini
    )
    fetcher = ImageFetcher(http_client, settings.image_fetch)

    app.state.http_client = http_client
    app.state.image_fetcher = fetcher
    app.state.chat_service = ChatService(model_client, fetcher)

    try:
        yield
    finally:
        logger.debug("server_stop", category="lifecycle")
        await http_client.aclose()


def create_app(
    settings: Settings | None = None, model_client: ModelClient | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override. If None, uses get_settings().
        model_client: Optional model client replacing the Gemini REST client.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    if not structlog.is_configured():
        setup_logging(
            json_logs=resolve_json_logs(settings.logging.format),
            log_level_name=settings.logging.level,
        )

    app = FastAPI(
        title="gcproxy API Server",
        description="OpenAI-compatible chat completions API backed by Google Gemini",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.model_client = model_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=settings.cors.credentials,
        allow_methods=settings.cors.methods,
        allow_headers=settings.cors.headers,
        max_age=settings.cors.max_age,
    )

    setup_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(models_router, prefix="/v1", tags=["models"])
    app.include_router(chat_router, prefix="/v1", tags=["chat"])

    return app
