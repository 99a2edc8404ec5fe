"""Literal type aliases shared by the wire models."""

from typing import Literal


OpenAIMessageRole = Literal["system", "user", "assistant"]
OpenAIFinishReason = Literal["stop", "length", "tool_calls", "content_filter"]

GeminiRole = Literal["user", "model"]

VALID_MESSAGE_ROLES: tuple[OpenAIMessageRole, ...] = ("system", "user", "assistant")
