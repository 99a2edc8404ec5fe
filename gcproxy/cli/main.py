"""Main entry point for the gcproxy API server."""

import os
from pathlib import Path

import typer
import uvicorn
from rich.console import Console

from gcproxy._version import __version__
from gcproxy.config.settings import ConfigurationError, Settings
from gcproxy.core.logging import get_logger, resolve_json_logs, setup_logging


console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"gcproxy {__version__}")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=False,
    pretty_exceptions_enable=False,
)


@app.callback()
def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """gcproxy - OpenAI-compatible chat completions API backed by Google Gemini."""


def _export_for_factory(config: Path | None, settings: Settings) -> None:
    # The app factory runs in the uvicorn (or reloader) process and rebuilds
    # settings from the environment, so CLI overrides must be exported
    if config is not None:
        os.environ["CONFIG_FILE"] = str(config)
    os.environ["SERVER__HOST"] = settings.server.host
    os.environ["SERVER__PORT"] = str(settings.server.port)
    os.environ["LOGGING__LEVEL"] = settings.logging.level


@app.command()
def serve(
    host: str | None = typer.Option(
        None, "--host", "-h", help="Host to bind the server to"
    ),
    port: int | None = typer.Option(
        None, "--port", "-p", help="Port to bind the server to"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    reload: bool | None = typer.Option(
        None, "--reload/--no-reload", help="Enable auto-reload for development"
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Run the API server."""
    try:
        settings = Settings.from_config(
            config_path=config,
            server={"host": host, "port": port, "reload": reload},
            logging={"level": log_level},
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=resolve_json_logs(settings.logging.format),
        log_level_name=settings.logging.level,
    )
    _export_for_factory(config, settings)

    logger.info(
        "server_starting",
        host=settings.server.host,
        port=settings.server.port,
        url=settings.server_url,
        reload=settings.server.reload,
    )

    uvicorn.run(
        app="gcproxy.api.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
        reload_dirs=["gcproxy"] if settings.server.reload else None,
        log_config=None,
        access_log=False,
        server_header=False,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
