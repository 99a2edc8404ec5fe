"""Shared dependencies for the gcproxy API server."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from gcproxy.config.settings import Settings
from gcproxy.core.logging import get_logger
from gcproxy.services.chat_service import ChatService


logger = get_logger(__name__)


def get_cached_settings(request: Request) -> Settings:
    """Get the settings the app was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_chat_service(request: Request) -> ChatService:
    """Get the chat service created by the application lifespan."""
    service: ChatService | None = getattr(request.app.state, "chat_service", None)
    if service is None:
        logger.error("chat_service_missing_on_app_state", category="lifecycle")
        raise HTTPException(status_code=503, detail="Chat service not initialized")
    return service


SettingsDep = Annotated[Settings, Depends(get_cached_settings)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
