"""Core infrastructure: errors, logging and HTTP client construction."""
