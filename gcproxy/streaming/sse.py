"""OpenAI-format Server-Sent Events framing."""

import json
from typing import Any

from gcproxy.models.openai import ChatCompletionChunk


class OpenAIStreamingFormatter:
    """Formats streaming responses to match OpenAI's SSE format."""

    @staticmethod
    def format_data_event(data: dict[str, Any]) -> str:
        """
        Format a data event for OpenAI-compatible Server-Sent Events.

        Args:
            data: Event data dictionary

        Returns:
            Formatted SSE string
        """
        json_data = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        return f"data: {json_data}\n\n"

    @staticmethod
    def format_chunk(chunk: ChatCompletionChunk) -> str:
        return OpenAIStreamingFormatter.format_data_event(chunk.to_event_data())

    @staticmethod
    def format_error_event(error: dict[str, Any]) -> str:
        """
        Format an error for a stream whose status line is already sent.

        Args:
            error: OpenAI error object, ``{"error": {...}}``

        Returns:
            Formatted SSE string
        """
        return OpenAIStreamingFormatter.format_data_event(error)

    @staticmethod
    def format_done() -> str:
        """
        Format the final DONE event.

        Returns:
            Formatted SSE termination string
        """
        return "data: [DONE]\n\n"
