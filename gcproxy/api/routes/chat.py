"""OpenAI-compatible chat completions endpoint."""

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from gcproxy.api.dependencies import ChatServiceDep
from gcproxy.core.errors import InvalidJSONError
from gcproxy.core.logging import get_logger
from gcproxy.formatters.validation import validate_chat_request


router = APIRouter()
logger = get_logger(__name__)


async def _read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug("request_body_invalid_json", error=str(e), category="request")
        raise InvalidJSONError() from e


@router.post("/chat/completions", response_model=None)
async def create_chat_completion(
    request: Request, service: ChatServiceDep
) -> JSONResponse | StreamingResponse:
    """Create a chat completion, streamed as SSE when ``stream`` is true."""
    chat_request = validate_chat_request(await _read_json_body(request))

    logger.info(
        "chat_completion_requested",
        requested_model=chat_request.model,
        messages=len(chat_request.messages),
        stream=bool(chat_request.stream),
        category="request",
    )

    if chat_request.stream:
        events = await service.stream_chat(chat_request)
        return StreamingResponse(
            events,
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    response = await service.complete(chat_request)
    return JSONResponse(content=response.model_dump())
