"""Chat completion orchestration: map, invoke the model, map back."""

from collections.abc import AsyncIterator

from gcproxy.core.errors import ProxyError
from gcproxy.core.logging import get_logger
from gcproxy.formatters.gemini_to_openai import map_gemini_to_openai_response
from gcproxy.formatters.openai_to_gemini import (
    ImageResolver,
    MappedRequest,
    map_openai_to_gemini,
)
from gcproxy.models.openai import ChatCompletionRequest, ChatCompletionResponse
from gcproxy.services.gemini_client import ModelClient
from gcproxy.streaming.reasoning import GeminiStreamMapper
from gcproxy.streaming.sse import OpenAIStreamingFormatter


logger = get_logger(__name__)


class ChatService:
    """Runs validated chat completion requests against a model client."""

    def __init__(self, client: ModelClient, images: ImageResolver) -> None:
        self.client = client
        self.images = images

    @property
    def model(self) -> str:
        return self.client.model

    async def complete(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        mapped = await map_openai_to_gemini(request, self.images)
        response = await self.client.generate_once(
            mapped.gemini_request, mapped.tools
        )
        result = map_gemini_to_openai_response(response, self.model)
        logger.info(
            "chat_completion_finished",
            completion_id=result.id,
            model=self.model,
            total_tokens=result.usage.total_tokens,
            category="request",
        )
        return result

    async def stream_chat(self, request: ChatCompletionRequest) -> AsyncIterator[str]:
        """Map the request and return the SSE event stream for it.

        Mapping (and so every image fetch) happens before the response
        starts, so those failures still get their own HTTP status.
        """
        mapped = await map_openai_to_gemini(request, self.images)
        return self._stream_events(mapped)

    async def _stream_events(self, mapped: MappedRequest) -> AsyncIterator[str]:
        # Errors raised here cannot change the HTTP status any more; they are
        # sent as an error event and [DONE] always comes last
        formatter = OpenAIStreamingFormatter
        mapper = GeminiStreamMapper(self.model)
        chunk_count = 0
        try:
            async for chunk in self.client.generate_streaming(
                mapped.gemini_request, mapped.tools
            ):
                chunk_count += 1
                yield formatter.format_chunk(mapper.map_chunk(chunk))

            if mapper.state.was_thinking:
                yield formatter.format_chunk(mapper.close_chunk())
        except ProxyError as e:
            logger.warning(
                "chat_stream_failed",
                completion_id=mapper.completion_id,
                error=e.message,
                error_type=e.error_type,
                category="streaming",
            )
            yield formatter.format_error_event(e.to_error_response())
        except Exception as e:
            logger.error(
                "chat_stream_failed",
                completion_id=mapper.completion_id,
                error=str(e),
                category="streaming",
                exc_info=True,
            )
            yield formatter.format_error_event(
                {"error": {"message": str(e), "type": "api_error"}}
            )

        logger.info(
            "chat_stream_finished",
            completion_id=mapper.completion_id,
            chunk_count=chunk_count,
            category="streaming",
        )
        yield formatter.format_done()
