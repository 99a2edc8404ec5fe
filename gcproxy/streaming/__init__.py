"""Streaming response mapping and SSE framing."""
