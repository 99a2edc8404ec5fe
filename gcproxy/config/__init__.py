"""Configuration module for the gcproxy API server."""

from .core import CORSSettings, LoggingSettings, ServerSettings
from .gemini import GeminiSettings, ImageFetchSettings
from .settings import ConfigurationError, Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "ConfigurationError",
    "ServerSettings",
    "LoggingSettings",
    "CORSSettings",
    "GeminiSettings",
    "ImageFetchSettings",
]
