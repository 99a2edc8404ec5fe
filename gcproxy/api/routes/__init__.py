"""API routes for the gcproxy API server."""
