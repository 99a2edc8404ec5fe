import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gcproxy.core.logging import get_logger

from .core import CORSSettings, LoggingSettings, ServerSettings
from .gemini import GeminiSettings, ImageFetchSettings
from .utils import find_toml_config_file


logger = get_logger(__name__)


__all__ = ["Settings", "ConfigurationError", "get_settings"]


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class Settings(BaseSettings):
    """
    Configuration settings for the gcproxy API server.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML values; explicit overrides
    (CLI flags) take precedence over both.
    TOML configuration files are looked up in the following order:
    1. $CONFIG_FILE
    2. .gcproxy.toml in current directory
    3. config.toml in XDG_CONFIG_HOME/gcproxy/
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    cors: CORSSettings = Field(
        default_factory=CORSSettings,
        description="CORS configuration settings",
    )

    gemini: GeminiSettings = Field(
        default_factory=GeminiSettings,
        description="Upstream Gemini API settings",
    )

    image_fetch: ImageFetchSettings = Field(
        default_factory=ImageFetchSettings,
        description="Remote image fetch limits",
    )

    @property
    def server_url(self) -> str:
        """Get the complete server URL."""
        return f"http://{self.server.host}:{self.server.port}"

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read TOML config file {toml_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @staticmethod
    def resolve_config_path(config_path: Path | str | None) -> Path | None:
        """Explicit path, then ``$CONFIG_FILE``, then the discovered file."""
        if config_path is not None:
            return Path(config_path)
        env_path = os.environ.get("CONFIG_FILE")
        if env_path:
            return Path(env_path)
        return find_toml_config_file()

    def _apply_toml(self, config_data: dict[str, Any]) -> None:
        # Section keys already set through SECTION__KEY env vars keep the env value
        for section, values in config_data.items():
            target = getattr(self, section, None)
            if not isinstance(target, BaseModel) or not isinstance(values, dict):
                continue
            for key, value in values.items():
                if os.getenv(f"{section.upper()}__{key.upper()}") is None:
                    setattr(target, key, value)

    def _apply_overrides(self, overrides: dict[str, Any]) -> None:
        # CLI flags left unset arrive as None and must not clobber lower layers
        for section, values in overrides.items():
            target = getattr(self, section, None)
            if not isinstance(target, BaseModel) or not isinstance(values, dict):
                continue
            for key, value in values.items():
                if value is not None:
                    setattr(target, key, value)

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from the TOML file, the environment and CLI overrides.

        Precedence, strongest first: ``overrides``, environment variables,
        TOML file, defaults.

        Args:
            config_path: Explicit TOML path; discovered when omitted
            **overrides: Section overrides, e.g. ``server={"port": 9000}``

        Raises:
            ConfigurationError: If the file cannot be read or a value is invalid
        """
        path = cls.resolve_config_path(config_path)

        settings = cls()
        if path is not None and path.exists():
            settings._apply_toml(cls.load_toml_config(path))
            logger.debug("config_file_loaded", path=str(path), category="config")
        settings._apply_overrides(overrides)

        # Values set by attribute skipped validation; run it once over the result
        try:
            return cls.model_validate(settings.model_dump())
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings, loaded once."""
    return Settings.from_config()
