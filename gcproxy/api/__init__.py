"""API layer for the gcproxy API server."""

from gcproxy.api.app import create_app


__all__ = ["create_app"]
