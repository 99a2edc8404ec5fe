"""Configuration file discovery utilities."""

import os
from pathlib import Path


def get_gcproxy_config_dir() -> Path:
    """Return the XDG configuration directory for gcproxy."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base / "gcproxy"


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file for gcproxy.

    Searches in the following order:
    1. .gcproxy.toml in current directory
    2. config.toml in XDG_CONFIG_HOME/gcproxy/

    Returns:
        Path to the first found configuration file, or None if not found.
    """
    current_dir_config = Path.cwd() / ".gcproxy.toml"
    if current_dir_config.exists():
        return current_dir_config

    xdg_config = get_gcproxy_config_dir() / "config.toml"
    if xdg_config.exists():
        return xdg_config

    return None
