"""Gemini-side models: request parts/contents/config and tolerant response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gcproxy.models.types import GeminiRole


# === Parts ===


class TextPart(BaseModel):
    """Ordinary text part."""

    text: str

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return {"text": self.text}


class ThoughtPart(BaseModel):
    """Reasoning ("thinking") part."""

    text: str

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return {"thought": True, "text": self.text}


class InlineData(BaseModel):
    """Base64 payload with its mime type."""

    mime_type: str = Field(alias="mimeType")
    data: str

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class InlineDataPart(BaseModel):
    """Inline binary part (images)."""

    inline_data: InlineData = Field(alias="inlineData")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return {
            "inlineData": {
                "mimeType": self.inline_data.mime_type,
                "data": self.inline_data.data,
            }
        }


ProviderPart = TextPart | ThoughtPart | InlineDataPart


def parse_part(raw: Any) -> ProviderPart | None:
    """Turn a raw upstream part into a typed part.

    Returns None for part kinds that are not translated back to OpenAI
    (function calls, executable code, ...).
    """
    if not isinstance(raw, dict):
        return None
    text = raw.get("text")
    if raw.get("thought") is True:
        return ThoughtPart(text=text if isinstance(text, str) else "")
    if isinstance(text, str):
        return TextPart(text=text)
    inline = raw.get("inlineData")
    if isinstance(inline, dict):
        return InlineDataPart(
            inline_data=InlineData(
                mime_type=str(inline.get("mimeType", "")),
                data=str(inline.get("data", "")),
            )
        )
    return None


# === Request ===


class GeminiContent(BaseModel):
    """One conversation turn."""

    role: GeminiRole
    parts: list[ProviderPart] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part.to_wire() for part in self.parts]}


# Wire names of the known generation config fields
_KNOWN_CONFIG_FIELDS: dict[str, str] = {
    "temperature": "temperature",
    "topP": "top_p",
    "maxOutputTokens": "max_output_tokens",
    "enable_thoughts": "enable_thoughts",
    "thinking": "thinking",
    "thinking_budget": "thinking_budget",
    "maxInputTokens": "max_input_tokens",
}


class GenerationConfig(BaseModel):
    """Known generation knobs plus an escape hatch for provider-specific ones.

    ``extensions`` holds caller-supplied entries with no named field; they are
    emitted verbatim after the known fields.
    """

    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    enable_thoughts: bool | None = None
    thinking: bool | None = None
    thinking_budget: int | None = None
    max_input_tokens: int | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    def merge(self, raw: dict[str, Any]) -> None:
        """Shallow-merge raw wire-named entries; raw values win on conflict."""
        for key, value in raw.items():
            field_name = _KNOWN_CONFIG_FIELDS.get(key)
            if field_name is not None:
                setattr(self, field_name, value)
            else:
                self.extensions[key] = value

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {}
        for wire_name, field_name in _KNOWN_CONFIG_FIELDS.items():
            value = getattr(self, field_name)
            if value is not None:
                wire[wire_name] = value
        wire.update(self.extensions)
        return wire


class GeminiRequest(BaseModel):
    """Provider request produced by the request mapper."""

    contents: list[GeminiContent] = Field(default_factory=list)
    generation_config: GenerationConfig = Field(default_factory=GenerationConfig)
    system_instruction: str | None = None
    tools: list[dict[str, Any]] = Field(default_factory=list)
    stream: bool = False
    model: str | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "contents": [content.to_wire() for content in self.contents],
            "generationConfig": self.generation_config.to_wire(),
            "stream": self.stream,
        }
        if self.system_instruction is not None:
            wire["systemInstruction"] = self.system_instruction
        if self.tools:
            wire["tools"] = self.tools
        return wire


# === Response ===


class UsageMetadata(BaseModel):
    """Usage counts under either of the two naming schemes Gemini has used."""

    prompt_token_count: int | None = Field(None, alias="promptTokenCount")
    prompt_tokens: int | None = Field(None, alias="promptTokens")
    candidates_token_count: int | None = Field(None, alias="candidatesTokenCount")
    candidates_tokens: int | None = Field(None, alias="candidatesTokens")
    total_token_count: int | None = Field(None, alias="totalTokenCount")
    total_tokens: int | None = Field(None, alias="totalTokens")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CandidateContent(BaseModel):
    role: str | None = None
    parts: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class Candidate(BaseModel):
    content: CandidateContent | None = None
    finish_reason: str | None = Field(None, alias="finishReason")
    index: int | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def typed_parts(self) -> list[ProviderPart]:
        """Parts of this candidate in order, skipping untranslatable kinds."""
        if self.content is None:
            return []
        parts = [parse_part(raw) for raw in self.content.parts]
        return [part for part in parts if part is not None]


class PromptFeedback(BaseModel):
    block_reason: str | None = Field(None, alias="blockReason")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class GeminiResponse(BaseModel):
    """Non-streaming response or a single streamed chunk."""

    text: str | None = None
    candidates: list[Candidate] | None = None
    usage_metadata: UsageMetadata | None = Field(None, alias="usageMetadata")
    prompt_feedback: PromptFeedback | None = Field(None, alias="promptFeedback")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def first_candidate(self) -> Candidate | None:
        if not self.candidates:
            return None
        return self.candidates[0]
