"""Translation of OpenAI chat completion requests into Gemini requests."""

from dataclasses import dataclass
from typing import Protocol

from gcproxy.core.logging import get_logger
from gcproxy.formatters.tools import ToolRegistry, map_tools
from gcproxy.models.gemini import (
    GeminiContent,
    GeminiRequest,
    GenerationConfig,
    InlineData,
    InlineDataPart,
    ProviderPart,
    TextPart,
)
from gcproxy.models.openai import (
    ChatCompletionRequest,
    ChatMessage,
    ContentItem,
    ImageUrlContent,
    TextContent,
    UnknownContent,
)


logger = get_logger(__name__)

# Thinking budget applied when reasoning is requested without an explicit budget
DEFAULT_THINKING_BUDGET = 2048

# Context window requested unless the caller sets maxInputTokens (the provider default is smaller)
CONTEXT_WINDOW_TOKENS = 1_000_000

SYSTEM_INSTRUCTION_SEPARATOR = "\n\n"


class ImageResolver(Protocol):
    """Anything that can turn an image URL into inline data."""

    async def fetch(self, url: str) -> InlineData: ...


@dataclass
class MappedRequest:
    """Result of mapping: the Gemini request plus the declared custom tools."""

    gemini_request: GeminiRequest
    tools: ToolRegistry


def skip_unknown_content(item: UnknownContent) -> None:
    """Policy for content items the proxy cannot translate: drop them."""
    logger.debug("content_item_skipped", item_type=item.type, category="request")


def _system_text(message: ChatMessage) -> str:
    if isinstance(message.content, str):
        return message.content
    return "\n".join(
        item.text for item in message.content if isinstance(item, TextContent)
    )


async def content_to_parts(
    content: str | list[ContentItem], images: ImageResolver
) -> list[ProviderPart]:
    """Expand message content into Gemini parts, preserving order.

    Images are resolved one at a time in encounter order; a failed fetch
    propagates and aborts the whole mapping.
    """
    if isinstance(content, str):
        return [TextPart(text=content)]

    parts: list[ProviderPart] = []
    for item in content:
        if isinstance(item, ImageUrlContent):
            inline = await images.fetch(item.image_url.url)
            parts.append(InlineDataPart(inline_data=inline))
        elif isinstance(item, TextContent):
            parts.append(TextPart(text=item.text))
        else:
            skip_unknown_content(item)
    return parts


def build_generation_config(request: ChatCompletionRequest) -> GenerationConfig:
    """Build the generation config from named fields, raw overrides and defaults."""
    config = GenerationConfig(
        temperature=request.temperature,
        max_output_tokens=request.output_token_limit,
        top_p=request.top_p,
    )
    if request.generation_config:
        config.merge(request.generation_config)

    if request.include_reasoning is True:
        # Both flag names have been used by the API; set both
        config.enable_thoughts = True
        config.thinking = True
        if config.thinking_budget is None:
            config.thinking_budget = DEFAULT_THINKING_BUDGET

    if config.max_input_tokens is None:
        config.max_input_tokens = CONTEXT_WINDOW_TOKENS

    return config


async def map_openai_to_gemini(
    request: ChatCompletionRequest, images: ImageResolver
) -> MappedRequest:
    """Convert a validated OpenAI request to a Gemini request.

    Args:
        request: Validated chat completion request
        images: Resolver used for ``image_url`` content items

    Returns:
        The Gemini request and the registry of custom tools

    Raises:
        ImageFetchError: If any image cannot be resolved
    """
    system_instruction: str | None = None
    contents: list[GeminiContent] = []

    for message in request.messages:
        if message.role == "system":
            text = _system_text(message)
            system_instruction = (
                f"{system_instruction}{SYSTEM_INSTRUCTION_SEPARATOR}{text}"
                if system_instruction is not None
                else text
            )
            continue

        role = "model" if message.role == "assistant" else "user"
        parts = await content_to_parts(message.content, images)
        contents.append(GeminiContent(role=role, parts=parts))

    builtin_tools, registry = map_tools(request.declared_functions())

    gemini_request = GeminiRequest(
        contents=contents,
        generation_config=build_generation_config(request),
        system_instruction=system_instruction,
        tools=builtin_tools,
        stream=bool(request.stream),
        model=request.model,
    )

    logger.debug(
        "chat_request_mapped",
        contents=len(contents),
        has_system_instruction=system_instruction is not None,
        builtin_tools=len(builtin_tools),
        custom_tools=registry.names(),
        generation_config=gemini_request.generation_config.to_wire(),
        category="request",
    )

    return MappedRequest(gemini_request=gemini_request, tools=registry)
