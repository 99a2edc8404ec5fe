"""Model client seam and the Gemini REST implementation behind it."""

import json
from collections.abc import AsyncIterator
from typing import Any, Protocol

import httpx

from gcproxy.config.gemini import GeminiSettings
from gcproxy.core.errors import UpstreamError
from gcproxy.core.logging import get_logger
from gcproxy.formatters.tools import ToolRegistry
from gcproxy.models.gemini import GeminiRequest, GeminiResponse, TextPart


logger = get_logger(__name__)

# Generation config keys folded into ``thinkingConfig`` on the REST wire
_THINKING_FLAGS = ("enable_thoughts", "thinking")


class ModelClient(Protocol):
    """Invokes the model with a mapped request."""

    @property
    def model(self) -> str: ...

    async def generate_once(
        self, request: GeminiRequest, tools: ToolRegistry | None = None
    ) -> GeminiResponse: ...

    def generate_streaming(
        self, request: GeminiRequest, tools: ToolRegistry | None = None
    ) -> AsyncIterator[GeminiResponse]: ...


def build_rest_body(
    request: GeminiRequest, tools: ToolRegistry | None = None
) -> dict[str, Any]:
    """Convert a mapped request into the ``generateContent`` JSON body."""
    wire = request.to_wire()
    wire.pop("stream", None)

    system_instruction = wire.pop("systemInstruction", None)
    if system_instruction is not None:
        wire["systemInstruction"] = {"parts": [{"text": system_instruction}]}

    config: dict[str, Any] = wire.get("generationConfig", {})
    # No REST counterpart; the context window is fixed by the model
    config.pop("maxInputTokens", None)

    flags = [config.pop(flag, None) for flag in _THINKING_FLAGS]
    include_thoughts = any(value is True for value in flags)
    thinking_budget = config.pop("thinking_budget", None)
    if include_thoughts or thinking_budget is not None:
        thinking_config = dict(config.get("thinkingConfig") or {})
        if include_thoughts:
            thinking_config["includeThoughts"] = True
        if thinking_budget is not None:
            thinking_config["thinkingBudget"] = thinking_budget
        config["thinkingConfig"] = thinking_config

    rest_tools = list(wire.pop("tools", []))
    if tools is not None and len(tools):
        rest_tools.append({"functionDeclarations": tools.function_declarations()})
    if rest_tools:
        wire["tools"] = rest_tools

    return wire


def parse_response(data: dict[str, Any]) -> GeminiResponse:
    """Parse a REST response and add the convenience ``text`` field.

    ``text`` concatenates the non-thought text parts of the first candidate,
    matching what the Gemini SDKs expose.
    """
    response = GeminiResponse.model_validate(data)
    candidate = response.first_candidate
    if candidate is not None and response.text is None:
        texts = [p.text for p in candidate.typed_parts() if isinstance(p, TextPart)]
        response.text = "".join(texts) if texts else None
    return response


class GeminiApiClient:
    """Calls the Gemini ``generateContent`` REST API over httpx."""

    def __init__(self, client: httpx.AsyncClient, settings: GeminiSettings) -> None:
        self._client = client
        self.settings = settings

    @property
    def model(self) -> str:
        return self.settings.model

    def _url(self, method: str) -> str:
        base_url = self.settings.base_url.rstrip("/")
        return f"{base_url}/models/{self.model}:{method}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key is not None:
            headers["x-goog-api-key"] = self.settings.api_key.get_secret_value()
        return headers

    async def generate_once(
        self, request: GeminiRequest, tools: ToolRegistry | None = None
    ) -> GeminiResponse:
        body = build_rest_body(request, tools)
        logger.debug("gemini_request_sent", model=self.model, category="upstream")
        try:
            response = await self._client.post(
                self._url("generateContent"), json=body, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Gemini request failed: {e}") from e

        if response.is_error:
            raise _upstream_error(response.status_code, response.text)

        data = response.json()
        logger.debug(
            "gemini_response_received",
            model=self.model,
            candidates=len(data.get("candidates") or []),
            category="upstream",
        )
        return parse_response(data)

    async def generate_streaming(
        self, request: GeminiRequest, tools: ToolRegistry | None = None
    ) -> AsyncIterator[GeminiResponse]:
        body = build_rest_body(request, tools)
        logger.debug("gemini_stream_started", model=self.model, category="upstream")
        chunk_count = 0
        try:
            async with self._client.stream(
                "POST",
                self._url("streamGenerateContent"),
                params={"alt": "sse"},
                json=body,
                headers=self._headers(),
            ) as response:
                if response.is_error:
                    detail = (await response.aread()).decode("utf-8", "replace")
                    raise _upstream_error(response.status_code, detail)

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data_str = line[5:].strip()
                    if not data_str or data_str == "[DONE]":
                        continue
                    try:
                        chunk_data = json.loads(data_str)
                    except json.JSONDecodeError:
                        logger.warning(
                            "sse_parse_failed", data=data_str, category="upstream"
                        )
                        continue
                    chunk_count += 1
                    yield parse_response(chunk_data)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Gemini stream failed: {e}") from e

        logger.debug(
            "gemini_stream_completed",
            model=self.model,
            chunk_count=chunk_count,
            category="upstream",
        )


def _upstream_error(status_code: int, detail: str) -> UpstreamError:
    message = detail
    try:
        payload = json.loads(detail)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        message = str(payload["error"].get("message") or detail)

    logger.warning(
        "gemini_upstream_error",
        status_code=status_code,
        message=message,
        category="upstream",
    )
    return UpstreamError(
        f"Gemini API error (HTTP {status_code}): {message}",
        upstream_status=status_code,
    )
