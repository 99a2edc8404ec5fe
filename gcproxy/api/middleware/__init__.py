"""API middleware for the gcproxy API server."""
