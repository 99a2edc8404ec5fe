"""OpenAI-compatible Pydantic models for the gcproxy API server.

Request models are deliberately lenient about fields the proxy does not use
(``extra="allow"``): clients send many OpenAI knobs that have no Gemini
counterpart, and rejecting them would break drop-in compatibility. The
message and content models are closed, since the translation depends on them.
"""

import time
import uuid
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
)

from gcproxy.models.types import OpenAIFinishReason, OpenAIMessageRole


# === Message content ===


class TextContent(BaseModel):
    """Plain text content item."""

    type: Literal["text"] = "text"
    text: str

    model_config = ConfigDict(frozen=True, extra="allow")


class ImageUrl(BaseModel):
    """Image reference: a network URL or an inline ``data:`` URL."""

    url: str
    detail: str | None = None

    model_config = ConfigDict(frozen=True, extra="allow")


class ImageUrlContent(BaseModel):
    """Image content item."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl

    model_config = ConfigDict(frozen=True, extra="allow")


class UnknownContent(BaseModel):
    """Content item of a kind the proxy does not translate (e.g. ``input_audio``)."""

    type: str

    model_config = ConfigDict(frozen=True, extra="allow")


def _content_item_kind(value: Any) -> str:
    item_type = (
        value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    )
    if item_type in ("text", "image_url"):
        return str(item_type)
    return "unknown"


ContentItem = Annotated[
    Annotated[TextContent, Tag("text")]
    | Annotated[ImageUrlContent, Tag("image_url")]
    | Annotated[UnknownContent, Tag("unknown")],
    Discriminator(_content_item_kind),
]


class ChatMessage(BaseModel):
    """OpenAI-compatible message model."""

    role: Annotated[
        OpenAIMessageRole, Field(description="The role of the message sender")
    ]
    content: Annotated[
        str | list[ContentItem],
        Field(description="The content of the message"),
    ]
    name: str | None = Field(None, description="The name of the participant")

    model_config = ConfigDict(frozen=True, extra="allow")


# === Tools ===


class FunctionDefinition(BaseModel):
    """OpenAI function definition (legacy ``functions`` or ``tools[].function``)."""

    name: str = Field(..., description="The name of the function")
    description: str | None = Field(
        None, description="A description of what the function does"
    )
    parameters: dict[str, Any] | None = Field(
        None,
        description="The parameters the function accepts, described as a JSON Schema object",
    )

    model_config = ConfigDict(extra="allow")


class ToolDefinition(BaseModel):
    """OpenAI tool definition."""

    type: str = Field("function", description="The type of tool")
    function: FunctionDefinition | None = Field(
        None, description="The function definition"
    )

    model_config = ConfigDict(extra="allow")


# === Request ===


class ChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request model."""

    model: str | None = Field(None, description="ID of the model to use")
    messages: list[ChatMessage] = Field(
        ...,
        description="A list of messages comprising the conversation so far",
        min_length=1,
    )
    temperature: float | None = Field(None, description="Sampling temperature")
    top_p: float | None = Field(None, description="Nucleus sampling parameter")
    max_tokens: int | None = Field(
        None, description="The maximum number of tokens to generate"
    )
    max_completion_tokens: int | None = Field(
        None, description="Newer alias of max_tokens"
    )
    stream: bool | None = Field(
        False, description="Whether to stream back partial progress"
    )
    include_reasoning: bool | None = Field(
        None, description="Surface the model's thinking as <think> tagged content"
    )
    generation_config: dict[str, Any] | None = Field(
        None,
        alias="generationConfig",
        description="Raw Gemini generationConfig entries merged over the named fields",
    )
    functions: list[FunctionDefinition] | None = Field(
        None, description="Deprecated function declarations"
    )
    tools: list[ToolDefinition] | None = Field(
        None, description="A list of tools the model may call"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def output_token_limit(self) -> int | None:
        """``max_tokens`` with ``max_completion_tokens`` as a fallback."""
        if self.max_tokens is not None:
            return self.max_tokens
        return self.max_completion_tokens

    def declared_functions(self) -> list[FunctionDefinition]:
        """All declared functions: legacy ``functions`` first, then ``tools``."""
        declared = list(self.functions or [])
        for tool in self.tools or []:
            if tool.type == "function" and tool.function is not None:
                declared.append(tool.function)
        return declared


# === Response ===


class Usage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = Field(0, description="Number of tokens in the prompt")
    completion_tokens: int = Field(
        0, description="Number of tokens in the completion"
    )
    total_tokens: int = Field(0, description="Total number of tokens used")


class ResponseMessage(BaseModel):
    """OpenAI response message model."""

    role: Literal["assistant"] = "assistant"
    content: str = ""


class Choice(BaseModel):
    """OpenAI choice in a non-streaming response."""

    index: int = 0
    message: ResponseMessage
    finish_reason: OpenAIFinishReason = "stop"


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion response model."""

    id: str = Field(default_factory=lambda: new_completion_id())
    object: Literal["chat.completion"] = "chat.completion"
    created: int = Field(default_factory=lambda: int(time.time()))
    model: str
    choices: list[Choice]
    usage: Usage = Field(default_factory=Usage)


class Delta(BaseModel):
    """OpenAI streaming delta message."""

    role: Literal["assistant"] | None = "assistant"
    content: str | None = None


class StreamChoice(BaseModel):
    """OpenAI choice in a streaming chunk."""

    index: int = 0
    delta: Delta = Field(default_factory=Delta)
    finish_reason: OpenAIFinishReason | None = None


class ChatCompletionChunk(BaseModel):
    """OpenAI-compatible streaming chunk."""

    id: str
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    created: int
    model: str
    choices: list[StreamChoice]
    usage: Usage | None = None

    def to_event_data(self) -> dict[str, Any]:
        """Serialize for an SSE data line, leaving out unset optional fields."""
        return self.model_dump(exclude_none=True)


# === Errors ===


class ErrorDetail(BaseModel):
    """OpenAI error detail."""

    message: str
    type: str = "invalid_request_error"
    code: str | None = None


class ErrorResponse(BaseModel):
    """OpenAI error response envelope."""

    error: ErrorDetail


# === Models listing ===


class ModelInfo(BaseModel):
    """Entry of the ``/v1/models`` listing."""

    id: str
    object: Literal["model"] = "model"
    created: int = Field(default_factory=lambda: int(time.time()))
    owned_by: str = "google"


class ModelList(BaseModel):
    """Response of the ``/v1/models`` endpoint."""

    object: Literal["list"] = "list"
    data: list[ModelInfo]


def new_completion_id() -> str:
    """Generate a locally unique chat completion identifier."""
    return f"chatcmpl-{uuid.uuid4().hex[:29]}"
