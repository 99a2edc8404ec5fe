"""Translation of Gemini responses back into OpenAI chat completion objects."""

from gcproxy.core.errors import ContentBlockedError
from gcproxy.core.logging import get_logger
from gcproxy.models.gemini import GeminiResponse, UsageMetadata
from gcproxy.models.openai import (
    ChatCompletionResponse,
    Choice,
    ResponseMessage,
    Usage,
)
from gcproxy.models.types import OpenAIFinishReason


logger = get_logger(__name__)

FINISH_REASON_MAP: dict[str, OpenAIFinishReason] = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "BLOCKLIST": "content_filter",
    "PROHIBITED_CONTENT": "content_filter",
    "SPII": "content_filter",
}


def _first_count(*values: int | None) -> int:
    for value in values:
        if value is not None:
            return value
    return 0


def map_usage(metadata: UsageMetadata | None) -> Usage:
    """Map usage under either Gemini naming scheme; absent counts become 0."""
    if metadata is None:
        return Usage()
    return Usage(
        prompt_tokens=_first_count(
            metadata.prompt_token_count, metadata.prompt_tokens
        ),
        completion_tokens=_first_count(
            metadata.candidates_token_count, metadata.candidates_tokens
        ),
        total_tokens=_first_count(metadata.total_token_count, metadata.total_tokens),
    )


def map_finish_reason(reason: str | None) -> OpenAIFinishReason | None:
    """Map a Gemini finish reason; None stays None, unknown values become "stop"."""
    if reason is None:
        return None
    return FINISH_REASON_MAP.get(reason.upper(), "stop")


def map_gemini_to_openai_response(
    response: GeminiResponse, model: str
) -> ChatCompletionResponse:
    """Build a non-streaming chat completion from a Gemini response.

    Raises:
        ContentBlockedError: If the response carries no candidates
    """
    if not response.candidates:
        block_reason = (
            response.prompt_feedback.block_reason if response.prompt_feedback else None
        )
        logger.warning(
            "upstream_no_candidates", block_reason=block_reason, category="response"
        )
        raise ContentBlockedError(block_reason or "No candidates returned.")

    return ChatCompletionResponse(
        model=model,
        choices=[
            Choice(
                index=0,
                message=ResponseMessage(content=response.text or ""),
                finish_reason="stop",
            )
        ],
        usage=map_usage(response.usage_metadata),
    )
