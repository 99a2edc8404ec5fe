"""Streaming chunk mapping with an emulated ``<think>`` reasoning channel.

OpenAI chat deltas have no field for model reasoning, so thought parts are
surfaced inline: the first reasoning part of a run is prefixed with
``<think>`` and the first plain-text part after it with ``</think>``. A run
may span any number of upstream chunks, so the mapper remembers whether the
channel is open between chunks.
"""

import time
from dataclasses import dataclass
from typing import Any

from gcproxy.formatters.gemini_to_openai import map_finish_reason, map_usage
from gcproxy.models.gemini import GeminiResponse, TextPart, ThoughtPart
from gcproxy.models.openai import (
    ChatCompletionChunk,
    Delta,
    StreamChoice,
    new_completion_id,
)


THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


@dataclass
class ReasoningState:
    """Whether the reasoning channel is open at the end of the last chunk."""

    was_thinking: bool = False


def _as_response(chunk: GeminiResponse | dict[str, Any]) -> GeminiResponse:
    if isinstance(chunk, GeminiResponse):
        return chunk
    return GeminiResponse.model_validate(chunk)


class GeminiStreamMapper:
    """Maps the chunks of one upstream stream to OpenAI chunks.

    One instance per stream; the id, creation time and reasoning state are
    shared by every chunk it emits.
    """

    def __init__(
        self,
        model: str,
        completion_id: str | None = None,
        created: int | None = None,
    ) -> None:
        self.model = model
        self.completion_id = completion_id or new_completion_id()
        self.created = created if created is not None else int(time.time())
        self.state = ReasoningState()

    def map_chunk(self, chunk: GeminiResponse | dict[str, Any]) -> ChatCompletionChunk:
        response = _as_response(chunk)
        candidate = response.first_candidate

        pieces: list[str] = []
        is_open = self.state.was_thinking
        for part in candidate.typed_parts() if candidate else []:
            if isinstance(part, ThoughtPart):
                if not is_open:
                    pieces.append(THINK_OPEN)
                    is_open = True
                pieces.append(part.text)
            elif isinstance(part, TextPart):
                if is_open:
                    pieces.append(THINK_CLOSE)
                    is_open = False
                pieces.append(part.text)
        self.state.was_thinking = is_open

        finish_reason = map_finish_reason(candidate.finish_reason if candidate else None)
        return ChatCompletionChunk(
            id=self.completion_id,
            created=self.created,
            model=self.model,
            choices=[
                StreamChoice(
                    index=0,
                    delta=Delta(content="".join(pieces) if pieces else None),
                    finish_reason=finish_reason,
                )
            ],
            usage=map_usage(response.usage_metadata)
            if response.usage_metadata is not None
            else None,
        )

    def close_chunk(self) -> ChatCompletionChunk:
        """Closing chunk for this stream; also marks the channel closed."""
        self.state.was_thinking = False
        return close_reasoning_chunk(self.completion_id, self.created, self.model)


def close_reasoning_chunk(
    completion_id: str, created: int, model: str
) -> ChatCompletionChunk:
    """Chunk whose only content is ``</think>``."""
    return ChatCompletionChunk(
        id=completion_id,
        created=created,
        model=model,
        choices=[StreamChoice(index=0, delta=Delta(content=THINK_CLOSE))],
    )


def map_stream_chunk_legacy(chunk: GeminiResponse | dict[str, Any]) -> dict[str, Any]:
    """Stateless mapping of one chunk.

    Every reasoning part is prefixed with ``<think>`` and the channel is never
    closed. Kept for clients that tolerate the unbalanced markers.
    """
    candidate = _as_response(chunk).first_candidate
    pieces: list[str] = []
    for part in candidate.typed_parts() if candidate else []:
        if isinstance(part, ThoughtPart):
            pieces.append(f"{THINK_OPEN}{part.text}")
        elif isinstance(part, TextPart):
            pieces.append(part.text)

    delta: dict[str, Any] = {"role": "assistant"}
    if pieces:
        delta["content"] = "".join(pieces)
    return {"choices": [{"delta": delta, "index": 0}]}
