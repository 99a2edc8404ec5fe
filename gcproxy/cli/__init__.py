"""Command line interface for gcproxy."""

from .main import app, main


__all__ = ["app", "main"]
